"""Balance engine — the only place where balance arithmetic happens.

Every balance is reproducible as a fold over the account's transaction
history, starting from its starting balance:

    balance = starting_balance + Σ(+amount as to_account) − Σ(amount as from_account)

RESERVED accounts (Income / Expense) are flow categories and always fold to 0.

All functions are pure: callers load accounts and transactions from the
ledger store and persist the results.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from src.et_common.errors import InvalidAmountError, InvalidInputError, UnknownAccountError
from src.et_ledger.domain.models import Account, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferPlan:
    from_account: str
    to_account: str
    amount: int
    available_money: int
    balances: dict[str, int]   # every account name -> balance right after the transfer


@dataclass(frozen=True)
class BalanceDrift:
    name: str
    cached: int
    computed: int

    @property
    def difference(self) -> int:
        return self.cached - self.computed


def index_transactions(transactions: Iterable[Transaction]) -> dict[int, Transaction]:
    return {tx.id: tx for tx in transactions}


def compute_balance(account: Account, transactions_by_id: Mapping[int, Transaction]) -> int:
    """Fold the account's referenced transactions in ascending id order."""
    if account.is_reserved:
        return 0
    balance = account.starting_balance
    for ref in sorted(account.transaction_refs):
        tx = transactions_by_id.get(ref)
        if tx is None:
            logger.warning("Account %s references missing transaction %d", account.name, ref)
            continue
        balance += tx.delta_for(account.name)
    return balance


def compute_balances(
    accounts: Iterable[Account], transactions_by_id: Mapping[int, Transaction]
) -> dict[str, int]:
    return {a.name: compute_balance(a, transactions_by_id) for a in accounts}


def validate_amount(amount: object) -> int:
    # bool is an int subclass; True must not count as 1
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)
    return amount


def plan_transfer(
    accounts: list[Account],
    transactions_by_id: Mapping[int, Transaction],
    from_name: str,
    to_name: str,
    amount: int,
) -> TransferPlan:
    """Compute the post-transfer balance of every account.

    Only the two endpoints move; RESERVED endpoints stay pinned at 0.
    """
    by_name = {a.name: a for a in accounts}
    for name in (from_name, to_name):
        if name not in by_name:
            raise UnknownAccountError(name)
    validate_amount(amount)
    if from_name == to_name:
        raise InvalidInputError("from_account and to_account must differ")

    balances: dict[str, int] = {}
    for account in accounts:
        balance = compute_balance(account, transactions_by_id)
        if not account.is_reserved:
            if account.name == from_name:
                balance -= amount
            elif account.name == to_name:
                balance += amount
        balances[account.name] = balance

    return TransferPlan(
        from_account=from_name,
        to_account=to_name,
        amount=amount,
        available_money=balances[from_name],
        balances=balances,
    )


def reconcile(
    accounts: Iterable[Account], transactions_by_id: Mapping[int, Transaction]
) -> list[BalanceDrift]:
    """Compare every cached balance against the fold. Returns the drifted accounts."""
    drifts: list[BalanceDrift] = []
    for account in accounts:
        computed = compute_balance(account, transactions_by_id)
        if account.current_balance != computed:
            drift = BalanceDrift(account.name, account.current_balance, computed)
            drifts.append(drift)
            logger.error(
                "Balance drift on %s: cached=%d computed=%d",
                account.name,
                drift.cached,
                drift.computed,
            )
    return drifts
