from dataclasses import dataclass
from datetime import datetime


@dataclass
class Referral:
    """A user who signed up with someone's invitation code."""

    user_id: str
    name: str
    user_type: str
    store_name: str | None
    is_active: bool
    joined_at: datetime
    completed_sales: int = 0
    bonus_earned: int = 0           # cents the referrer earned from this user's sales


@dataclass
class ReferralTotals:
    referral_count: int = 0
    total_earned: int = 0           # cents, completed sales only
