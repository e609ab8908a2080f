"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(64)     NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            name            VARCHAR(128)    NOT NULL,
            password_hash   VARCHAR(255)    NOT NULL,
            user_type       VARCHAR(16)     NOT NULL,
            store_name      VARCHAR(128),
            invitation_code VARCHAR(16)     NOT NULL,
            referred_by     UUID            REFERENCES users (id),
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_username        UNIQUE (username),
            CONSTRAINT uq_users_email           UNIQUE (email),
            CONSTRAINT uq_users_invitation_code UNIQUE (invitation_code),
            CONSTRAINT ck_users_username_len    CHECK (LENGTH(username) >= 3),
            CONSTRAINT ck_users_user_type       CHECK (user_type IN ('client', 'merchant', 'admin')),
            CONSTRAINT ck_users_not_self_referred CHECK (referred_by IS NULL OR referred_by <> id)
        );
    """)
    op.execute("CREATE INDEX idx_users_referred_by ON users (referred_by) WHERE referred_by IS NOT NULL;")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE users IS 'Clients, merchants and admins; referred_by links the referral tree';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
