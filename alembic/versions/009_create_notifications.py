"""009: create notifications

Revision ID: 009
Revises: 008
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "009"
down_revision: Union[str, None] = "008"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id              BIGSERIAL    PRIMARY KEY,
            user_id         VARCHAR(64)  NOT NULL,
            type            VARCHAR(16)  NOT NULL,
            title           VARCHAR(200) NOT NULL,
            message         VARCHAR(1000) NOT NULL,
            data            JSONB,
            is_read         BOOLEAN      NOT NULL DEFAULT FALSE,
            read_at         TIMESTAMPTZ,
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_type CHECK (type IN ('withdrawal', 'transfer', 'system')),
            CONSTRAINT ck_notifications_read_at CHECK (is_read OR read_at IS NULL)
        );
    """)
    op.execute("CREATE INDEX idx_notifications_user ON notifications (user_id, id DESC);")
    op.execute(
        "CREATE INDEX idx_notifications_unread ON notifications (user_id) WHERE NOT is_read;"
    )
    op.execute("COMMENT ON TABLE notifications IS 'Per-user inbox; rows are written in the same transaction as the event';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
