"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Pure storage: no balance arithmetic happens here. Cached balances are written
only through `set_cached_balance`, with values computed by the balance engine.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back the session. Every method only flushes.
"""

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.et_common.datetime_utils import ensure_utc
from src.et_common.enums import RESERVED_ACCOUNT_NAMES, AccountKind, TransactionField
from src.et_common.errors import DuplicateAccountError, InternalError
from src.et_ledger.domain.models import Account, NewTransaction, Transaction
from src.et_ledger.infrastructure.db_models import (
    AccountORM,
    LedgerCounterORM,
    TransactionORM,
)

_TRANSACTION_COUNTER = "transaction_id"

_EDITABLE_FIELDS = frozenset(f.value for f in TransactionField)


def _orm_to_account(row: AccountORM) -> Account:
    return Account(
        name=row.name,
        starting_balance=row.starting_balance,
        current_balance=row.current_balance,
        kind=AccountKind(row.kind),
        transaction_refs=list(row.transaction_refs or []),
        ordinal=row.ordinal,
    )


def _orm_to_transaction(row: TransactionORM) -> Transaction:
    return Transaction(
        id=row.id,
        from_account=row.from_account,
        to_account=row.to_account,
        amount=row.amount,
        available_money=row.available_money,
        type=row.type,
        category=row.category,
        comment=row.comment or "",
        created_at=ensure_utc(row.created_at),
        accounts_balance=dict(row.accounts_balance or {}),
    )


class LedgerRepository:
    """Concrete repository backed by SQLAlchemy ORM models."""

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_account(
        self,
        db: AsyncSession,
        name: str,
        starting_balance: int,
        kind: AccountKind = AccountKind.REGULAR,
    ) -> Account:
        if await db.get(AccountORM, name) is not None:
            raise DuplicateAccountError(name)
        max_ordinal = (
            await db.execute(select(func.max(AccountORM.ordinal)))
        ).scalar_one_or_none()
        row = AccountORM(
            name=name,
            ordinal=(max_ordinal or 0) + 1,
            kind=kind.value,
            starting_balance=starting_balance,
            current_balance=starting_balance,
            transaction_refs=[],
        )
        db.add(row)
        await db.flush()
        return _orm_to_account(row)

    async def get_account(self, db: AsyncSession, name: str) -> Account | None:
        row = await db.get(AccountORM, name)
        return _orm_to_account(row) if row else None

    async def list_accounts(self, db: AsyncSession) -> list[Account]:
        result = await db.execute(select(AccountORM).order_by(AccountORM.ordinal))
        return [_orm_to_account(row) for row in result.scalars().all()]

    async def set_cached_balance(
        self, db: AsyncSession, name: str, balance: int
    ) -> None:
        row = await self._require_account(db, name)
        row.current_balance = balance
        await db.flush()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def append_transaction(
        self, db: AsyncSession, record: NewTransaction
    ) -> Transaction:
        from_row = await self._require_account(db, record.from_account)
        to_row = await self._require_account(db, record.to_account)
        transaction_id = await self._allocate_transaction_id(db)

        row = TransactionORM(
            id=transaction_id,
            from_account=record.from_account,
            to_account=record.to_account,
            amount=record.amount,
            available_money=record.available_money,
            type=record.type,
            category=record.category,
            comment=record.comment,
            created_at=ensure_utc(record.created_at),
            accounts_balance=dict(record.accounts_balance),
        )
        db.add(row)
        # Reassign (not append in place) so the JSON column is marked dirty
        from_row.transaction_refs = [*from_row.transaction_refs, transaction_id]
        if to_row is not from_row:
            to_row.transaction_refs = [*to_row.transaction_refs, transaction_id]
        await db.flush()
        return _orm_to_transaction(row)

    async def get_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> Transaction | None:
        row = await db.get(TransactionORM, transaction_id)
        return _orm_to_transaction(row) if row else None

    async def list_transactions(self, db: AsyncSession) -> list[Transaction]:
        result = await db.execute(select(TransactionORM).order_by(TransactionORM.id))
        return [_orm_to_transaction(row) for row in result.scalars().all()]

    async def update_transaction(
        self, db: AsyncSession, transaction_id: int, fields: dict[str, Any]
    ) -> Transaction | None:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise InternalError(f"Non-editable transaction fields: {sorted(unknown)}")

        row = await db.get(TransactionORM, transaction_id)
        if row is None:
            return None

        old_endpoints = {row.from_account, row.to_account}
        for key, value in fields.items():
            if key == TransactionField.CREATED_AT:
                value = ensure_utc(value)
            setattr(row, key, value)
        new_endpoints = {row.from_account, row.to_account}

        for name in old_endpoints - new_endpoints:
            account = await self._require_account(db, name)
            account.transaction_refs = [
                ref for ref in account.transaction_refs if ref != transaction_id
            ]
        for name in new_endpoints - old_endpoints:
            account = await self._require_account(db, name)
            account.transaction_refs = sorted([*account.transaction_refs, transaction_id])

        await db.flush()
        return _orm_to_transaction(row)

    async def delete_transaction(self, db: AsyncSession, transaction_id: int) -> bool:
        row = await db.get(TransactionORM, transaction_id)
        if row is None:
            return False
        for name in {row.from_account, row.to_account}:
            account = await db.get(AccountORM, name)
            if account is not None:
                account.transaction_refs = [
                    ref for ref in account.transaction_refs if ref != transaction_id
                ]
        await db.delete(row)
        await db.flush()
        return True

    # ------------------------------------------------------------------
    # Whole-ledger operations
    # ------------------------------------------------------------------

    async def clear_all(self, db: AsyncSession) -> None:
        """Drop every transaction and account, then recreate the reserved accounts.

        The id counter is left untouched so ids are never handed out twice.
        """
        await self._delete_everything(db)
        for name in RESERVED_ACCOUNT_NAMES:
            await self.create_account(db, name, 0, AccountKind.RESERVED)

    async def get_next_transaction_id(self, db: AsyncSession) -> int:
        counter = await db.get(LedgerCounterORM, _TRANSACTION_COUNTER)
        return counter.value if counter else 1

    async def replace_all(
        self,
        db: AsyncSession,
        accounts: list[Account],
        transactions: list[Transaction],
        next_transaction_id: int,
    ) -> None:
        await self._delete_everything(db)

        for ordinal, account in enumerate(accounts, start=1):
            db.add(
                AccountORM(
                    name=account.name,
                    ordinal=ordinal,
                    kind=account.kind.value,
                    starting_balance=account.starting_balance,
                    current_balance=account.current_balance,
                    transaction_refs=list(account.transaction_refs),
                )
            )
        await db.flush()

        for tx in transactions:
            db.add(
                TransactionORM(
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
            )

        counter = await db.get(LedgerCounterORM, _TRANSACTION_COUNTER)
        if counter is None:
            db.add(LedgerCounterORM(name=_TRANSACTION_COUNTER, value=next_transaction_id))
        else:
            counter.value = next_transaction_id
        await db.flush()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _delete_everything(self, db: AsyncSession) -> None:
        await db.flush()
        await db.execute(
            delete(TransactionORM).execution_options(synchronize_session=False)
        )
        await db.execute(delete(AccountORM).execution_options(synchronize_session=False))
        # Rows are gone; drop their stale identities before re-inserting the same keys
        db.expunge_all()

    async def _require_account(self, db: AsyncSession, name: str) -> AccountORM:
        # Callers validate existence first; a miss here is a broken invariant
        row = await db.get(AccountORM, name)
        if row is None:
            raise InternalError(f"Account row missing during write: {name}")
        return row

    async def _allocate_transaction_id(self, db: AsyncSession) -> int:
        counter = await db.get(LedgerCounterORM, _TRANSACTION_COUNTER)
        if counter is None:
            counter = LedgerCounterORM(name=_TRANSACTION_COUNTER, value=1)
            db.add(counter)
        allocated = counter.value
        counter.value = allocated + 1
        return allocated
