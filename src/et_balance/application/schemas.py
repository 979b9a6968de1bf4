"""Pydantic schemas for the ledger API (accounts, transfers, transactions)."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.et_balance.domain.engine import BalanceDrift
from src.et_ledger.domain.models import Account, Transaction

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateAccountRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    starting_balance: int = Field(..., description="Opening balance, signed integer")


class TransferRequest(BaseModel):
    from_account: str = Field(..., min_length=1, max_length=100)
    to_account: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., gt=0, description="Amount moved from from_account to to_account")
    type: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=64)
    comment: str | None = Field(None, max_length=500)
    created_at: datetime | None = Field(None, description="Defaults to now")


class EditTransactionRequest(BaseModel):
    """Partial update: only the fields present in the body are changed."""

    from_account: str | None = Field(None, min_length=1, max_length=100)
    to_account: str | None = Field(None, min_length=1, max_length=100)
    amount: int | None = Field(None, gt=0)
    type: str | None = Field(None, min_length=1, max_length=64)
    category: str | None = Field(None, min_length=1, max_length=64)
    comment: str | None = Field(None, max_length=500)
    created_at: datetime | None = None

    @field_validator("from_account", "to_account", "amount", "type", "category", "created_at")
    @classmethod
    def not_null(cls, v: object) -> object:
        """Only `comment` may be explicitly cleared with null."""
        if v is None:
            raise ValueError("field cannot be null")
        return v

    def changes(self) -> dict[str, object]:
        changes = self.model_dump(exclude_unset=True)
        if "comment" in changes and changes["comment"] is None:
            changes["comment"] = ""
        return changes


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountItem(BaseModel):
    name: str
    kind: str
    balance: int


class AccountDetail(BaseModel):
    name: str
    kind: str
    starting_balance: int
    balance: int
    transaction_refs: list[int]

    @classmethod
    def from_domain(cls, account: Account, balance: int) -> "AccountDetail":
        return cls(
            name=account.name,
            kind=account.kind.value,
            starting_balance=account.starting_balance,
            balance=balance,
            transaction_refs=sorted(account.transaction_refs),
        )


class TransactionItem(BaseModel):
    id: int
    from_account: str
    to_account: str
    amount: int
    available_money: int
    type: str
    category: str
    comment: str
    created_at: str  # ISO8601 string
    accounts_balance: dict[str, int]

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            from_account=tx.from_account,
            to_account=tx.to_account,
            amount=tx.amount,
            available_money=tx.available_money,
            type=tx.type,
            category=tx.category,
            comment=tx.comment,
            created_at=tx.created_at.isoformat(),
            accounts_balance=dict(tx.accounts_balance),
        )


class TransferResponse(BaseModel):
    transaction: TransactionItem
    balance_snapshot: dict[str, int]


class TransactionDetailResponse(BaseModel):
    """A transaction plus the balances recorded when it was applied.

    The snapshot is historical: later edits and deletions do not rewrite it.
    """

    transaction: TransactionItem
    balance_snapshot: dict[str, int]


class DeleteTransactionResponse(BaseModel):
    id: int
    deleted: bool = True
    balances: dict[str, int]  # recomputed balances of the two endpoints


class DriftItem(BaseModel):
    name: str
    cached: int
    computed: int
    difference: int

    @classmethod
    def from_domain(cls, drift: BalanceDrift) -> "DriftItem":
        return cls(
            name=drift.name,
            cached=drift.cached,
            computed=drift.computed,
            difference=drift.difference,
        )


class ReconcileResponse(BaseModel):
    consistent: bool
    drifts: list[DriftItem]
