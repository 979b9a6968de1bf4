"""Global enums — values are stored verbatim in the database."""

from enum import Enum


class AccountKind(str, Enum):
    """REGULAR accounts hold value; RESERVED ones are flow categories pinned at zero."""
    REGULAR = "REGULAR"
    RESERVED = "RESERVED"


class ReservedAccount(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


RESERVED_ACCOUNT_NAMES: tuple[str, ...] = tuple(r.value for r in ReservedAccount)


class TransactionField(str, Enum):
    """Fields a caller may change on an existing transaction."""
    FROM_ACCOUNT = "from_account"
    TO_ACCOUNT = "to_account"
    AMOUNT = "amount"
    TYPE = "type"
    CATEGORY = "category"
    COMMENT = "comment"
    CREATED_AT = "created_at"
