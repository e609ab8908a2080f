"""003: create accounts and ledger_entries

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                  UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id             VARCHAR(64) NOT NULL,
            available_balance   BIGINT      NOT NULL DEFAULT 0,
            frozen_balance      BIGINT      NOT NULL DEFAULT 0,
            version             BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_user_id          UNIQUE (user_id),
            CONSTRAINT ck_accounts_available_gte_0  CHECK (available_balance >= 0),
            CONSTRAINT ck_accounts_frozen_gte_0     CHECK (frozen_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Per-user wallet, all amounts in cents';")

    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'CASHBACK', 'REFERRAL_BONUS', 'SALE_PAYMENT', 'SALE_PROCEEDS',
                    'CASHBACK_REVERSAL', 'REFERRAL_REVERSAL',
                    'SALE_PAYMENT_REFUND', 'SALE_PROCEEDS_REVERSAL',
                    'WITHDRAWAL_FREEZE', 'WITHDRAWAL_UNFREEZE', 'WITHDRAWAL_PAYOUT',
                    'TRANSFER_OUT', 'TRANSFER_IN'
                )
            ),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user_id ON ledger_entries (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_reference
        ON ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Append-only money movements, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
