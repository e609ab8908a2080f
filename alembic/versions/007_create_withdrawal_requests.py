"""007: create withdrawal_requests

Revision ID: 007
Revises: 006
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE withdrawal_requests (
            id              VARCHAR(64)  PRIMARY KEY,
            merchant_id     VARCHAR(64)  NOT NULL,
            amount          BIGINT       NOT NULL,
            fee_amount      BIGINT       NOT NULL,
            net_amount      BIGINT       NOT NULL,
            fee_rate        NUMERIC(9,6) NOT NULL,
            status          VARCHAR(16)  NOT NULL DEFAULT 'pending',
            bank_details    JSONB        NOT NULL DEFAULT '{}'::jsonb,
            admin_notes     VARCHAR(500),
            processed_by    VARCHAR(64),
            processed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_withdrawals_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_withdrawals_fee_sums CHECK (fee_amount + net_amount = amount),
            CONSTRAINT ck_withdrawals_status CHECK (
                status IN ('pending', 'completed', 'rejected', 'cancelled')
            )
        );
    """)
    op.execute("CREATE INDEX idx_withdrawals_merchant ON withdrawal_requests (merchant_id, id DESC);")
    op.execute("CREATE INDEX idx_withdrawals_status ON withdrawal_requests (status, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_withdrawal_requests_updated_at
            BEFORE UPDATE ON withdrawal_requests
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS withdrawal_requests CASCADE;")
