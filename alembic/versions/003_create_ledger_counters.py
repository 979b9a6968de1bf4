"""003: create ledger_counters table and seed reserved accounts

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
        CREATE TABLE ledger_counters (
            name    VARCHAR(32) PRIMARY KEY,
            value   BIGINT      NOT NULL,
            CONSTRAINT ck_ledger_counters_value_gt_0 CHECK (value > 0)
        );
    """)
    op.execute("INSERT INTO ledger_counters (name, value) VALUES ('transaction_id', 1);")
    op.execute("""
        INSERT INTO accounts (name, ordinal, kind, starting_balance, current_balance, transaction_refs)
        VALUES ('Income', 1, 'RESERVED', 0, 0, '[]'),
               ('Expense', 2, 'RESERVED', 0, 0, '[]');
    """)


def downgrade() -> None:
    op.execute("DELETE FROM accounts WHERE kind = 'RESERVED';")
    op.execute("DROP TABLE IF EXISTS ledger_counters;")
