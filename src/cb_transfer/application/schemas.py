from decimal import Decimal

from pydantic import BaseModel, Field

from src.cb_common.money import from_cents
from src.cb_transfer.domain.models import Transfer


class CreateTransferRequest(BaseModel):
    to_user_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: str | None = Field(None, max_length=500)


class TransferResponse(BaseModel):
    id: str
    from_user_id: str
    to_user_id: str
    direction: str
    amount: str
    status: str
    type: str
    description: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, transfer: Transfer, viewer_id: str) -> "TransferResponse":
        return cls(
            id=transfer.id,
            from_user_id=transfer.from_user_id,
            to_user_id=transfer.to_user_id,
            direction=transfer.direction_for(viewer_id),
            amount=str(from_cents(transfer.amount)),
            status=transfer.status,
            type=transfer.type,
            description=transfer.description,
            created_at=transfer.created_at.isoformat() if transfer.created_at else None,
        )


class TransferListResponse(BaseModel):
    items: list[TransferResponse]
    next_cursor: str | None
    has_more: bool
