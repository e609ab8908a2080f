"""004: create commission_settings

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Single row (id = 1); seeded from settings on first startup
    op.execute("""
        CREATE TABLE commission_settings (
            id                       SMALLINT     PRIMARY KEY,
            platform_fee_rate        NUMERIC(9,6) NOT NULL,
            client_cashback_rate     NUMERIC(9,6) NOT NULL,
            referral_bonus_rate      NUMERIC(9,6) NOT NULL,
            merchant_commission_rate NUMERIC(9,6) NOT NULL DEFAULT 0,
            withdrawal_fee_rate      NUMERIC(9,6) NOT NULL,
            min_withdrawal_cents     BIGINT       NOT NULL,
            updated_by               VARCHAR(64),
            updated_at               TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_commission_settings_single_row CHECK (id = 1),
            CONSTRAINT ck_commission_settings_rates CHECK (
                platform_fee_rate BETWEEN 0 AND 1
                AND client_cashback_rate BETWEEN 0 AND 1
                AND referral_bonus_rate BETWEEN 0 AND 1
                AND merchant_commission_rate BETWEEN 0 AND 1
                AND withdrawal_fee_rate BETWEEN 0 AND 1
            ),
            CONSTRAINT ck_commission_settings_fee_covers_payouts CHECK (
                platform_fee_rate >= client_cashback_rate + referral_bonus_rate
            ),
            CONSTRAINT ck_commission_settings_min_withdrawal CHECK (min_withdrawal_cents >= 0)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS commission_settings CASCADE;")
