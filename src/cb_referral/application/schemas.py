"""Pydantic schemas for referrals and invitation links."""

import base64
import binascii
import json
import uuid
from datetime import datetime

from pydantic import BaseModel

from src.cb_common.money import from_cents
from src.cb_referral.domain.models import Referral


def referral_cursor_encode(joined_at: datetime, user_id: str) -> str:
    """Opaque cursor over the (joined_at, user_id) sort key."""
    payload = json.dumps({"at": joined_at.isoformat(), "id": user_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def referral_cursor_decode(cursor: str | None) -> tuple[datetime, str] | None:
    """Decode a referral cursor. Garbage restarts from the top."""
    if not cursor:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["at"]), str(uuid.UUID(str(payload["id"])))
    except (binascii.Error, ValueError, KeyError, TypeError):
        return None


class ReferralResponse(BaseModel):
    user_id: str
    name: str
    user_type: str
    store_name: str | None
    is_active: bool
    joined_at: str
    completed_sales: int
    bonus_earned: str

    @classmethod
    def from_domain(cls, r: Referral) -> "ReferralResponse":
        return cls(
            user_id=r.user_id,
            name=r.name,
            user_type=r.user_type,
            store_name=r.store_name,
            is_active=r.is_active,
            joined_at=r.joined_at.isoformat(),
            completed_sales=r.completed_sales,
            bonus_earned=str(from_cents(r.bonus_earned)),
        )


class ReferralOverviewResponse(BaseModel):
    invitation_code: str
    referral_bonus_percent: str
    referral_count: int
    total_earned: str
    items: list[ReferralResponse]
    next_cursor: str | None
    has_more: bool


class InviteResponse(BaseModel):
    valid: bool
    invitation_code: str
    referrer_name: str
    referrer_type: str
    referral_bonus_percent: str
