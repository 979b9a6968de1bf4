"""BackupApplicationService — whole-ledger export and import.

Import replaces the entire store. It runs inside the ledger service's
`serialized_write` section, so it can never interleave with a transfer and
readers only ever see the old or the new ledger, never a mix.
"""

import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.et_backup.application.schemas import (
    SNAPSHOT_VERSION,
    ImportResponse,
    LedgerSnapshot,
    SnapshotAccount,
    SnapshotTransaction,
)
from src.et_balance.application.service import LedgerApplicationService
from src.et_balance.domain import engine
from src.et_common.database import sqlite_file_path
from src.et_common.enums import RESERVED_ACCOUNT_NAMES, AccountKind
from src.et_common.errors import DatabaseFileUnavailableError, InvalidSnapshotError

logger = logging.getLogger(__name__)


def validate_snapshot(snapshot: LedgerSnapshot) -> int:
    """Check referential integrity and cached balances of a snapshot.

    Returns the next transaction id.
    """
    if snapshot.version != SNAPSHOT_VERSION:
        raise InvalidSnapshotError(f"unsupported version {snapshot.version}")

    names = [a.name for a in snapshot.accounts]
    if len(set(names)) != len(names):
        raise InvalidSnapshotError("duplicate account names")
    by_name = {a.name: a for a in snapshot.accounts}
    for reserved in RESERVED_ACCOUNT_NAMES:
        account = by_name.get(reserved)
        if account is None or account.kind is not AccountKind.RESERVED:
            raise InvalidSnapshotError(f"reserved account {reserved} missing")
    for account in snapshot.accounts:
        if account.kind is AccountKind.RESERVED and account.name not in RESERVED_ACCOUNT_NAMES:
            raise InvalidSnapshotError(f"{account.name} cannot be a reserved account")

    ids = [t.id for t in snapshot.transactions]
    if len(set(ids)) != len(ids):
        raise InvalidSnapshotError("duplicate transaction ids")
    by_id = {t.id: t for t in snapshot.transactions}
    for tx in snapshot.transactions:
        for endpoint in (tx.from_account, tx.to_account):
            if endpoint not in by_name:
                raise InvalidSnapshotError(
                    f"transaction {tx.id} references unknown account {endpoint}"
                )
        if tx.from_account == tx.to_account:
            raise InvalidSnapshotError(f"transaction {tx.id} moves money to itself")

    # Every ref must point at a transaction touching that account, and
    # every transaction must be referenced by both its endpoints.
    for account in snapshot.accounts:
        refs = account.transaction_refs
        if len(set(refs)) != len(refs):
            raise InvalidSnapshotError(f"account {account.name} has duplicate refs")
        for ref in refs:
            tx = by_id.get(ref)
            if tx is None or account.name not in (tx.from_account, tx.to_account):
                raise InvalidSnapshotError(
                    f"account {account.name} references foreign transaction {ref}"
                )
    for tx in snapshot.transactions:
        for endpoint in (tx.from_account, tx.to_account):
            if tx.id not in by_name[endpoint].transaction_refs:
                raise InvalidSnapshotError(
                    f"transaction {tx.id} missing from refs of {endpoint}"
                )

    # Cached balances must already agree with the fold over history
    transactions_by_id = engine.index_transactions(
        [t.to_domain() for t in snapshot.transactions]
    )
    for account in snapshot.accounts:
        if account.kind is AccountKind.RESERVED and (
            account.starting_balance != 0 or account.current_balance != 0
        ):
            raise InvalidSnapshotError(f"reserved account {account.name} must hold 0")
        computed = engine.compute_balance(account.to_domain(), transactions_by_id)
        if account.current_balance != computed:
            raise InvalidSnapshotError(
                f"account {account.name} current_balance {account.current_balance} "
                f"does not match history ({computed})"
            )

    floor = max(ids, default=0) + 1
    if snapshot.next_transaction_id is None:
        return floor
    if snapshot.next_transaction_id < floor:
        raise InvalidSnapshotError(
            f"next_transaction_id {snapshot.next_transaction_id} would reuse an id"
        )
    return snapshot.next_transaction_id


class BackupApplicationService:
    def __init__(self, ledger: LedgerApplicationService) -> None:
        self._ledger = ledger

    async def export_ledger(self, db: AsyncSession) -> LedgerSnapshot:
        repo = self._ledger.repo
        async with self._ledger.consistent_read():
            accounts = await repo.list_accounts(db)
            transactions = await repo.list_transactions(db)
            next_id = await repo.get_next_transaction_id(db)
        return LedgerSnapshot(
            version=SNAPSHOT_VERSION,
            accounts=[SnapshotAccount.from_domain(a) for a in accounts],
            transactions=[SnapshotTransaction.from_domain(t) for t in transactions],
            next_transaction_id=next_id,
        )

    async def import_ledger(self, db: AsyncSession, snapshot: LedgerSnapshot) -> ImportResponse:
        next_id = validate_snapshot(snapshot)
        accounts = [a.to_domain() for a in snapshot.accounts]
        transactions = sorted(
            (t.to_domain() for t in snapshot.transactions), key=lambda t: t.id
        )

        async with self._ledger.serialized_write(db):
            await self._ledger.repo.replace_all(db, accounts, transactions, next_id)

        logger.info(
            "Ledger imported: %d accounts, %d transactions, next id %d",
            len(accounts),
            len(transactions),
            next_id,
        )
        return ImportResponse(
            accounts=len(accounts),
            transactions=len(transactions),
            next_transaction_id=next_id,
        )

    def database_file(self) -> str:
        """Path of the SQLite database file, for raw download."""
        path = sqlite_file_path(settings.DATABASE_URL)
        if path is None or not os.path.isfile(path):
            raise DatabaseFileUnavailableError()
        return path
