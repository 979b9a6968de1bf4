"""LedgerApplicationService: serialized, balance-consistent ledger operations.

Every mutating operation runs inside `serialized_write`: the process-wide
write lock is held across the whole read-balances, insert-transaction,
update-accounts sequence, and the session is committed once at the end or
rolled back as a whole. Reads that need several queries take the same lock
through `consistent_read` so they never straddle a commit.

Balances returned to callers are always recomputed from history by the
balance engine; the cached `current_balance` column is rewritten from the
same fold whenever an account's history changes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.et_balance.application.schemas import (
    AccountDetail,
    AccountItem,
    DeleteTransactionResponse,
    DriftItem,
    ReconcileResponse,
    TransactionDetailResponse,
    TransactionItem,
    TransferResponse,
)
from src.et_balance.domain import engine
from src.et_common.datetime_utils import utc_now
from src.et_common.enums import RESERVED_ACCOUNT_NAMES, AccountKind, TransactionField
from src.et_common.errors import (
    AccountNotFoundError,
    InvalidInputError,
    StorageFailureError,
    TransactionNotFoundError,
    UnknownAccountError,
)
from src.et_ledger.domain.models import Account, NewTransaction, Transaction
from src.et_ledger.domain.repository import LedgerRepositoryProtocol
from src.et_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


def _require_text(field: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field} is required")
    return value


def _validate_account_name(name: object) -> str:
    cleaned = _require_text("name", name).strip()
    if len(cleaned) > 100:
        raise InvalidInputError("name must be at most 100 characters")
    if cleaned in RESERVED_ACCOUNT_NAMES:
        raise InvalidInputError(f"{cleaned} is a reserved account name")
    return cleaned


def _validate_starting_balance(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"starting_balance must be an integer, got {value!r}")
    return value


class LedgerApplicationService:
    """One instance per process: it owns the ledger's single write lock."""

    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._write_lock = asyncio.Lock()

    @property
    def repo(self) -> LedgerRepositoryProtocol:
        return self._repo

    @asynccontextmanager
    async def serialized_write(self, db: AsyncSession) -> AsyncIterator[None]:
        """Exclusive critical section + all-or-nothing commit for one write."""
        async with self._write_lock:
            try:
                yield
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Ledger write rolled back: %s", exc)
                raise StorageFailureError(type(exc).__name__) from exc
            except Exception:
                await db.rollback()
                raise

    @asynccontextmanager
    async def consistent_read(self) -> AsyncIterator[None]:
        """Wait out any in-flight write. Never nest inside `serialized_write`."""
        async with self._write_lock:
            yield

    async def _load_state(
        self, db: AsyncSession
    ) -> tuple[list[Account], dict[int, Transaction]]:
        try:
            accounts = await self._repo.list_accounts(db)
            transactions = await self._repo.list_transactions(db)
        except SQLAlchemyError as exc:
            raise StorageFailureError(type(exc).__name__) from exc
        return accounts, engine.index_transactions(transactions)

    async def _read_state(
        self, db: AsyncSession
    ) -> tuple[list[Account], dict[int, Transaction]]:
        async with self.consistent_read():
            return await self._load_state(db)

    async def _refresh_cached_balances(self, db: AsyncSession, names: Iterable[str]) -> dict[str, int]:
        accounts, transactions_by_id = await self._load_state(db)
        wanted = set(names)
        refreshed: dict[str, int] = {}
        for account in accounts:
            if account.name in wanted:
                balance = engine.compute_balance(account, transactions_by_id)
                await self._repo.set_cached_balance(db, account.name, balance)
                refreshed[account.name] = balance
        return refreshed

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def ensure_reserved_accounts(self, db: AsyncSession) -> None:
        """Create Income / Expense if they are missing (startup hook)."""
        async with self.serialized_write(db):
            for name in RESERVED_ACCOUNT_NAMES:
                if await self._repo.get_account(db, name) is None:
                    await self._repo.create_account(db, name, 0, AccountKind.RESERVED)
                    logger.info("Created reserved account %s", name)

    async def create_account(
        self, db: AsyncSession, name: str, starting_balance: int
    ) -> AccountDetail:
        name = _validate_account_name(name)
        starting_balance = _validate_starting_balance(starting_balance)
        async with self.serialized_write(db):
            account = await self._repo.create_account(db, name, starting_balance)
        logger.info("Account created: %s start=%d", name, starting_balance)
        return AccountDetail.from_domain(account, account.starting_balance)

    async def get_account(self, db: AsyncSession, name: str) -> AccountDetail:
        accounts, transactions_by_id = await self._read_state(db)
        for account in accounts:
            if account.name == name:
                return AccountDetail.from_domain(
                    account, engine.compute_balance(account, transactions_by_id)
                )
        raise AccountNotFoundError(name)

    async def list_accounts(self, db: AsyncSession) -> list[AccountItem]:
        accounts, transactions_by_id = await self._read_state(db)
        return [
            AccountItem(
                name=a.name,
                kind=a.kind.value,
                balance=engine.compute_balance(a, transactions_by_id),
            )
            for a in accounts
        ]

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def transfer(
        self,
        db: AsyncSession,
        from_account: str,
        to_account: str,
        amount: int,
        type: str,
        category: str,
        comment: str | None = None,
        created_at: datetime | None = None,
    ) -> TransferResponse:
        _require_text("type", type)
        _require_text("category", category)
        engine.validate_amount(amount)

        async with self.serialized_write(db):
            accounts, transactions_by_id = await self._load_state(db)
            plan = engine.plan_transfer(
                accounts, transactions_by_id, from_account, to_account, amount
            )
            tx = await self._repo.append_transaction(
                db,
                NewTransaction(
                    from_account=plan.from_account,
                    to_account=plan.to_account,
                    amount=plan.amount,
                    available_money=plan.available_money,
                    type=type,
                    category=category,
                    comment=comment or "",
                    created_at=created_at or utc_now(),
                    accounts_balance=dict(plan.balances),
                ),
            )
            for name in (plan.from_account, plan.to_account):
                await self._repo.set_cached_balance(db, name, plan.balances[name])

        logger.info(
            "Transfer #%d: %s → %s amount=%d available=%d",
            tx.id,
            tx.from_account,
            tx.to_account,
            tx.amount,
            tx.available_money,
        )
        return TransferResponse(
            transaction=TransactionItem.from_domain(tx),
            balance_snapshot=dict(plan.balances),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(self, db: AsyncSession) -> list[TransactionItem]:
        _, transactions_by_id = await self._read_state(db)
        return [TransactionItem.from_domain(tx) for tx in transactions_by_id.values()]

    async def get_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> TransactionDetailResponse:
        tx = await self._repo.get_transaction(db, transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        return TransactionDetailResponse(
            transaction=TransactionItem.from_domain(tx),
            balance_snapshot=dict(tx.accounts_balance),
        )

    async def edit_transaction(
        self, db: AsyncSession, transaction_id: int, fields: dict[str, Any]
    ) -> TransactionItem:
        """Edit a transaction in place.

        Cached balances of every account whose history changed are recomputed.
        `available_money` and the `accounts_balance` snapshots of this and all
        other transactions are left as recorded.
        """
        changes = self._validate_changes(fields)

        async with self.serialized_write(db):
            existing = await self._repo.get_transaction(db, transaction_id)
            if existing is None:
                raise TransactionNotFoundError(transaction_id)

            for key in (TransactionField.FROM_ACCOUNT, TransactionField.TO_ACCOUNT):
                name = changes.get(key.value)
                if name is not None and await self._repo.get_account(db, name) is None:
                    raise UnknownAccountError(name)
            from_name = changes.get("from_account", existing.from_account)
            to_name = changes.get("to_account", existing.to_account)
            if from_name == to_name:
                raise InvalidInputError("from_account and to_account must differ")

            updated = await self._repo.update_transaction(db, transaction_id, changes)
            if updated is None:
                raise TransactionNotFoundError(transaction_id)
            await self._refresh_cached_balances(
                db, {existing.from_account, existing.to_account, from_name, to_name}
            )

        logger.info("Transaction #%d edited: %s", transaction_id, sorted(changes))
        return TransactionItem.from_domain(updated)

    def _validate_changes(self, fields: dict[str, Any]) -> dict[str, Any]:
        editable = {f.value for f in TransactionField}
        unknown = set(fields) - editable
        if unknown:
            raise InvalidInputError(f"fields not editable: {', '.join(sorted(unknown))}")
        if not fields:
            raise InvalidInputError("no fields to update")

        changes = dict(fields)
        for key in ("from_account", "to_account", "type", "category"):
            if key in changes:
                _require_text(key, changes[key])
        if "amount" in changes:
            engine.validate_amount(changes["amount"])
        if "comment" in changes:
            changes["comment"] = changes["comment"] or ""
        if "created_at" in changes and not isinstance(changes["created_at"], datetime):
            raise InvalidInputError("created_at must be a datetime")
        return changes

    async def delete_transaction(
        self, db: AsyncSession, transaction_id: int
    ) -> DeleteTransactionResponse:
        """Delete a transaction and recompute the cached balances of its endpoints.

        Snapshots stored on other transactions are not rewritten.
        """
        async with self.serialized_write(db):
            existing = await self._repo.get_transaction(db, transaction_id)
            if existing is None or not await self._repo.delete_transaction(db, transaction_id):
                raise TransactionNotFoundError(transaction_id)
            balances = await self._refresh_cached_balances(
                db, {existing.from_account, existing.to_account}
            )

        logger.info("Transaction #%d deleted", transaction_id)
        return DeleteTransactionResponse(id=transaction_id, balances=balances)

    # ------------------------------------------------------------------
    # Whole ledger
    # ------------------------------------------------------------------

    async def clear_ledger(self, db: AsyncSession) -> list[AccountItem]:
        async with self.serialized_write(db):
            await self._repo.clear_all(db)
        logger.info("Ledger cleared")
        return await self.list_accounts(db)

    async def reconcile(self, db: AsyncSession) -> ReconcileResponse:
        accounts, transactions_by_id = await self._read_state(db)
        drifts = engine.reconcile(accounts, transactions_by_id)
        return ReconcileResponse(
            consistent=not drifts,
            drifts=[DriftItem.from_domain(d) for d in drifts],
        )

    async def rebuild_balances(self, db: AsyncSession) -> ReconcileResponse:
        """Rewrite every drifted cached balance from the fold. Returns what was fixed."""
        async with self.serialized_write(db):
            accounts, transactions_by_id = await self._load_state(db)
            drifts = engine.reconcile(accounts, transactions_by_id)
            for drift in drifts:
                await self._repo.set_cached_balance(db, drift.name, drift.computed)
        if drifts:
            logger.info("Rebuilt %d cached balances", len(drifts))
        return ReconcileResponse(
            consistent=not drifts,
            drifts=[DriftItem.from_domain(d) for d in drifts],
        )
