"""001: create accounts table

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
        CREATE TABLE accounts (
            name                VARCHAR(100)    PRIMARY KEY,
            ordinal             INTEGER         NOT NULL,
            kind                VARCHAR(16)     NOT NULL DEFAULT 'REGULAR',
            starting_balance    BIGINT          NOT NULL,
            current_balance     BIGINT          NOT NULL,
            transaction_refs    JSON            NOT NULL,
            CONSTRAINT ck_accounts_kind CHECK (kind IN ('REGULAR', 'RESERVED')),
            CONSTRAINT ck_accounts_reserved_zero CHECK (
                kind = 'REGULAR' OR (starting_balance = 0 AND current_balance = 0)
            )
        );
    """)
    op.execute("CREATE UNIQUE INDEX uq_accounts_ordinal ON accounts (ordinal);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts;")
