"""008: create transfers

Revision ID: 008
Revises: 007
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transfers (
            id              VARCHAR(64)  PRIMARY KEY,
            from_user_id    VARCHAR(64)  NOT NULL,
            to_user_id      VARCHAR(64)  NOT NULL,
            amount          BIGINT       NOT NULL,
            status          VARCHAR(16)  NOT NULL DEFAULT 'completed',
            type            VARCHAR(16)  NOT NULL DEFAULT 'p2p',
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transfers_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_transfers_not_self CHECK (from_user_id <> to_user_id),
            CONSTRAINT ck_transfers_status CHECK (status IN ('completed'))
        );
    """)
    op.execute("CREATE INDEX idx_transfers_from ON transfers (from_user_id, id DESC);")
    op.execute("CREATE INDEX idx_transfers_to ON transfers (to_user_id, id DESC);")
    op.execute("COMMENT ON TABLE transfers IS 'Peer-to-peer transfers, immutable once written';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transfers CASCADE;")
