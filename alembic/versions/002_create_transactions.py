"""002: create transactions table

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
    # id is allocated by the application from ledger_counters (003), never reused
    op.execute("""
        CREATE TABLE transactions (
            id                  BIGINT                      PRIMARY KEY,
            from_account        VARCHAR(100)                NOT NULL REFERENCES accounts (name),
            to_account          VARCHAR(100)                NOT NULL REFERENCES accounts (name),
            amount              BIGINT                      NOT NULL,
            available_money     BIGINT                      NOT NULL,
            type                VARCHAR(64)                 NOT NULL,
            category            VARCHAR(64)                 NOT NULL,
            comment             VARCHAR(500)                NOT NULL DEFAULT '',
            created_at          TIMESTAMP WITH TIME ZONE    NOT NULL,
            accounts_balance    JSON                        NOT NULL,
            CONSTRAINT ck_transactions_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_transactions_distinct_endpoints CHECK (from_account <> to_account)
        );
    """)
    op.execute("CREATE INDEX idx_transactions_from ON transactions (from_account);")
    op.execute("CREATE INDEX idx_transactions_to ON transactions (to_account);")
    op.execute("CREATE INDEX idx_transactions_created ON transactions (created_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions;")
