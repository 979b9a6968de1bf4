"""Whole-ledger snapshot format used by export and import."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.et_common.datetime_utils import ensure_utc
from src.et_common.enums import AccountKind
from src.et_ledger.domain.models import Account, Transaction

SNAPSHOT_VERSION = 1


class SnapshotAccount(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: AccountKind = AccountKind.REGULAR
    starting_balance: int
    current_balance: int
    transaction_refs: list[int] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("name must not be blank")
        return cleaned

    @classmethod
    def from_domain(cls, account: Account) -> "SnapshotAccount":
        return cls(
            name=account.name,
            kind=account.kind,
            starting_balance=account.starting_balance,
            current_balance=account.current_balance,
            transaction_refs=sorted(account.transaction_refs),
        )

    def to_domain(self) -> Account:
        return Account(
            name=self.name,
            starting_balance=self.starting_balance,
            current_balance=self.current_balance,
            kind=self.kind,
            transaction_refs=list(self.transaction_refs),
        )


class SnapshotTransaction(BaseModel):
    id: int = Field(..., gt=0)
    from_account: str = Field(..., min_length=1, max_length=100)
    to_account: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., gt=0)
    available_money: int
    type: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=64)
    comment: str = Field("", max_length=500)
    created_at: datetime
    accounts_balance: dict[str, int] = Field(default_factory=dict)

    @field_validator("type", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @classmethod
    def from_domain(cls, tx: Transaction) -> "SnapshotTransaction":
        return cls(
            id=tx.id,
            from_account=tx.from_account,
            to_account=tx.to_account,
            amount=tx.amount,
            available_money=tx.available_money,
            type=tx.type,
            category=tx.category,
            comment=tx.comment,
            created_at=ensure_utc(tx.created_at),
            accounts_balance=dict(tx.accounts_balance),
        )

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            from_account=self.from_account,
            to_account=self.to_account,
            amount=self.amount,
            available_money=self.available_money,
            type=self.type,
            category=self.category,
            comment=self.comment,
            created_at=ensure_utc(self.created_at),
            accounts_balance=dict(self.accounts_balance),
        )


class LedgerSnapshot(BaseModel):
    """Both collections are required; an empty list is valid, a missing one is not."""

    version: int = SNAPSHOT_VERSION
    accounts: list[SnapshotAccount]
    transactions: list[SnapshotTransaction]
    next_transaction_id: int | None = Field(
        None, gt=0, description="Defaults to max(transaction id) + 1"
    )


class ImportResponse(BaseModel):
    accounts: int
    transactions: int
    next_transaction_id: int
