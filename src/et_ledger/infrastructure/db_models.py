"""SQLAlchemy ORM models for et_ledger.

These map to the tables created by Alembic migrations (and by
`Base.metadata.create_all` when AUTO_CREATE_SCHEMA is on).
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.et_common.database import Base


class AccountORM(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint("kind IN ('REGULAR', 'RESERVED')", name="ck_accounts_kind"),
        CheckConstraint(
            "kind = 'REGULAR' OR (starting_balance = 0 AND current_balance = 0)",
            name="ck_accounts_reserved_zero",
        ),
        Index("uq_accounts_ordinal", "ordinal", unique=True),
    )

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="REGULAR")
    starting_balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    current_balance: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_refs: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)


class TransactionORM(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_gt_0"),
        CheckConstraint(
            "from_account <> to_account", name="ck_transactions_distinct_endpoints"
        ),
        Index("idx_transactions_from", "from_account"),
        Index("idx_transactions_to", "to_account"),
        Index("idx_transactions_created", "created_at"),
    )

    # Assigned from ledger_counters, never by the database: ids must not be reused
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    from_account: Mapped[str] = mapped_column(
        String(100), ForeignKey("accounts.name"), nullable=False
    )
    to_account: Mapped[str] = mapped_column(
        String(100), ForeignKey("accounts.name"), nullable=False
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    available_money: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    comment: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accounts_balance: Mapped[dict[str, int]] = mapped_column(
        JSON, nullable=False, default=dict
    )


class LedgerCounterORM(Base):
    __tablename__ = "ledger_counters"

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False)
