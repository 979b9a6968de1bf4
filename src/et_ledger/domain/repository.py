"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.et_common.enums import AccountKind
from src.et_ledger.domain.models import Account, NewTransaction, Transaction


class LedgerRepositoryProtocol(Protocol):
    async def create_account(
        self,
        db: AsyncSession,
        name: str,
        starting_balance: int,
        kind: AccountKind = AccountKind.REGULAR,
    ) -> Account: ...

    async def get_account(self, db: AsyncSession, name: str) -> Account | None: ...

    async def list_accounts(self, db: AsyncSession) -> list[Account]: ...

    async def set_cached_balance(
        self, db: AsyncSession, name: str, balance: int
    ) -> None: ...

    async def append_transaction(
        self, db: AsyncSession, record: NewTransaction
    ) -> Transaction: ...

    async def get_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> Transaction | None: ...

    async def list_transactions(self, db: AsyncSession) -> list[Transaction]: ...

    async def update_transaction(
        self, db: AsyncSession, transaction_id: int, fields: dict[str, Any]
    ) -> Transaction | None: ...

    async def delete_transaction(self, db: AsyncSession, transaction_id: int) -> bool: ...

    async def clear_all(self, db: AsyncSession) -> None: ...

    async def get_next_transaction_id(self, db: AsyncSession) -> int: ...

    async def replace_all(
        self,
        db: AsyncSession,
        accounts: list[Account],
        transactions: list[Transaction],
        next_transaction_id: int,
    ) -> None: ...
