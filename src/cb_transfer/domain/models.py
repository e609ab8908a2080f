"""Transfer domain model. Transfers are immutable once recorded."""

from dataclasses import dataclass
from datetime import datetime

from src.cb_common.enums import TransferStatus, TransferType


@dataclass(frozen=True)
class Transfer:
    id: str
    from_user_id: str
    to_user_id: str
    amount: int                  # cents
    status: str = TransferStatus.COMPLETED.value
    type: str = TransferType.P2P.value
    description: str | None = None
    created_at: datetime | None = None

    def direction_for(self, user_id: str) -> str:
        return "out" if user_id == self.from_user_id else "in"
