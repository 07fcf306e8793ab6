"""004: create notifications table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id          BIGSERIAL       PRIMARY KEY,
            user_id     BIGINT          NOT NULL,
            title       VARCHAR(200)    NOT NULL,
            body        VARCHAR(2000)   NOT NULL,
            category    VARCHAR(40)     NOT NULL,
            read        BOOLEAN         NOT NULL DEFAULT FALSE,
            link        VARCHAR(500),
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_notifications_user_id ON notifications (user_id, id DESC);")
    op.execute(
        "CREATE INDEX idx_notifications_unread ON notifications (user_id) WHERE read = FALSE;"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
