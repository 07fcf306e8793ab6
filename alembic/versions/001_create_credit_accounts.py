"""001: create credit_accounts table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE credit_accounts (
            id                  BIGINT       PRIMARY KEY,
            role                VARCHAR(20)  NOT NULL,
            display_name        VARCHAR(200) NOT NULL DEFAULT '',
            balance             BIGINT       NOT NULL DEFAULT 0,
            initial_balance     BIGINT       NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_credit_accounts_balance_gte_0 CHECK (balance >= 0),
            CONSTRAINT ck_credit_accounts_role CHECK (
                role IN ('admin', 'customer', 'collaborator')
            )
        );
    """)
    op.execute("CREATE INDEX idx_credit_accounts_role ON credit_accounts (role);")
    op.execute("""
        CREATE TRIGGER trg_credit_accounts_updated_at
            BEFORE UPDATE ON credit_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE credit_accounts IS "
        "'Credit balance per identity; id mirrors the identity service user id';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS credit_accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
