"""002: create credit_ledger_entries table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE credit_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      BIGINT          NOT NULL REFERENCES credit_accounts (id),
            amount          BIGINT          NOT NULL,
            kind            VARCHAR(30)     NOT NULL,
            balance_after   BIGINT          NOT NULL,
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_credit_ledger_kind CHECK (
                kind IN ('purchase', 'usage', 'allocation', 'allocation_refund')
            ),
            CONSTRAINT ck_credit_ledger_amount_ne_0 CHECK (amount <> 0),
            CONSTRAINT ck_credit_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_credit_ledger_account_id "
        "ON credit_ledger_entries (account_id, id DESC);"
    )
    op.execute(
        "CREATE INDEX idx_credit_ledger_kind_time "
        "ON credit_ledger_entries (kind, created_at);"
    )
    op.execute(
        "COMMENT ON TABLE credit_ledger_entries IS "
        "'Credit ledger: append-only, never updated or deleted';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS credit_ledger_entries CASCADE;")
