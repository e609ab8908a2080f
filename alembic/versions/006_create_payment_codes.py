"""006: create payment_codes

Revision ID: 006
Revises: 005
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_codes (
            code            VARCHAR(32)  PRIMARY KEY,
            merchant_id     VARCHAR(64)  NOT NULL,
            amount          BIGINT       NOT NULL,
            status          VARCHAR(16)  NOT NULL DEFAULT 'active',
            description     VARCHAR(500),
            expires_at      TIMESTAMPTZ  NOT NULL,
            used_by         VARCHAR(64),
            used_at         TIMESTAMPTZ,
            sale_id         VARCHAR(64),
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payment_codes_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_payment_codes_status CHECK (status IN ('active', 'used', 'expired')),
            CONSTRAINT ck_payment_codes_used CHECK (
                status <> 'used' OR (used_by IS NOT NULL AND sale_id IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_payment_codes_merchant ON payment_codes (merchant_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_codes CASCADE;")
