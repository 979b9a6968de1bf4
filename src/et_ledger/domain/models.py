"""Domain models for et_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.et_common.enums import AccountKind


@dataclass
class Account:
    name: str
    starting_balance: int
    current_balance: int          # cache; the fold over history is authoritative
    kind: AccountKind = AccountKind.REGULAR
    transaction_refs: list[int] = field(default_factory=list)
    ordinal: int = 0              # insertion order

    @property
    def is_reserved(self) -> bool:
        return self.kind is AccountKind.RESERVED


@dataclass
class NewTransaction:
    """A transfer record that has not been assigned an id yet."""
    from_account: str
    to_account: str
    amount: int
    available_money: int
    type: str
    category: str
    comment: str
    created_at: datetime
    accounts_balance: dict[str, int]


@dataclass
class Transaction:
    id: int
    from_account: str
    to_account: str
    amount: int
    available_money: int          # from_account balance right after this transfer
    type: str
    category: str
    comment: str
    created_at: datetime
    accounts_balance: dict[str, int] = field(default_factory=dict)

    def delta_for(self, account_name: str) -> int:
        """Signed effect of this transaction on one account."""
        delta = 0
        if account_name == self.from_account:
            delta -= self.amount
        if account_name == self.to_account:
            delta += self.amount
        return delta
