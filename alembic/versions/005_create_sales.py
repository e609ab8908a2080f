"""005: create sales

Revision ID: 005
Revises: 004
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE sales (
            id                  VARCHAR(64)  PRIMARY KEY,
            merchant_id         VARCHAR(64)  NOT NULL,
            customer_id         VARCHAR(64)  NOT NULL,
            amount              BIGINT       NOT NULL,
            payment_method      VARCHAR(16)  NOT NULL,
            status              VARCHAR(16)  NOT NULL,
            platform_fee        BIGINT       NOT NULL,
            client_cashback     BIGINT       NOT NULL,
            referral_bonus      BIGINT       NOT NULL,
            merchant_commission BIGINT       NOT NULL DEFAULT 0,
            merchant_net        BIGINT       NOT NULL,
            referrer_id         VARCHAR(64),
            source              VARCHAR(16)  NOT NULL DEFAULT 'manual',
            payment_code        VARCHAR(32),
            description         VARCHAR(500),
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_sales_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_sales_split_sums CHECK (
                platform_fee + client_cashback + merchant_net = amount
            ),
            CONSTRAINT ck_sales_status CHECK (
                status IN ('pending', 'completed', 'cancelled', 'refunded')
            ),
            CONSTRAINT ck_sales_payment_method CHECK (
                payment_method IN ('cash', 'credit_card', 'debit_card', 'pix', 'cashback')
            ),
            CONSTRAINT ck_sales_source CHECK (source IN ('manual', 'qrcode'))
        );
    """)
    op.execute("CREATE INDEX idx_sales_merchant ON sales (merchant_id, id DESC);")
    op.execute("CREATE INDEX idx_sales_customer ON sales (customer_id, id DESC);")
    op.execute("CREATE INDEX idx_sales_status_time ON sales (status, created_at);")
    op.execute("""
        CREATE TRIGGER trg_sales_updated_at
            BEFORE UPDATE ON sales
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE sales IS 'Sales with the value split frozen at record time, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sales CASCADE;")
