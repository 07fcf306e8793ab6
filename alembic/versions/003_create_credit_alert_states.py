"""003: create credit_alert_states table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE credit_alert_states (
            account_id              BIGINT      PRIMARY KEY REFERENCES credit_accounts (id),
            last_alerted_threshold  INTEGER,
            updated_at              TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_credit_alert_threshold_gt_0 CHECK (
                last_alerted_threshold IS NULL OR last_alerted_threshold > 0
            )
        );
    """)
    op.execute(
        "COMMENT ON TABLE credit_alert_states IS "
        "'Lowest low-balance threshold already alerted in the current episode; NULL = unalerted';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS credit_alert_states CASCADE;")
