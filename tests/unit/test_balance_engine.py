"""Unit tests for the pure balance engine."""

from datetime import UTC, datetime

import pytest

from src.et_balance.domain.engine import (
    compute_balance,
    compute_balances,
    index_transactions,
    plan_transfer,
    reconcile,
)
from src.et_common.enums import AccountKind
from src.et_common.errors import InvalidAmountError, InvalidInputError, UnknownAccountError
from src.et_ledger.domain.models import Account, Transaction


def _account(name: str, start: int = 0, refs: list[int] | None = None, **kw) -> Account:
    return Account(
        name=name,
        starting_balance=start,
        current_balance=kw.pop("current", start),
        transaction_refs=refs or [],
        **kw,
    )


def _reserved(name: str, refs: list[int] | None = None) -> Account:
    return _account(name, 0, refs, kind=AccountKind.RESERVED)


def _tx(tx_id: int, src: str, dst: str, amount: int) -> Transaction:
    return Transaction(
        id=tx_id,
        from_account=src,
        to_account=dst,
        amount=amount,
        available_money=0,
        type="transfer",
        category="misc",
        comment="",
        created_at=datetime.now(UTC),
    )


class TestComputeBalance:
    def test_no_history_is_starting_balance(self) -> None:
        assert compute_balance(_account("Wallet", 100), {}) == 100

    def test_folds_debits_and_credits(self) -> None:
        txs = index_transactions([
            _tx(1, "A", "B", 20),
            _tx(2, "B", "A", 5),
            _tx(3, "C", "A", 7),
        ])
        a = _account("A", 50, [1, 2, 3])
        b = _account("B", 0, [1, 2])
        assert compute_balance(a, txs) == 50 - 20 + 5 + 7
        assert compute_balance(b, txs) == 15

    def test_matches_sum_formula(self) -> None:
        history = [_tx(i, "A" if i % 2 else "B", "B" if i % 2 else "A", i * 3) for i in range(1, 11)]
        txs = index_transactions(history)
        a = _account("A", -40, [t.id for t in history])
        expected = -40 + sum(t.amount for t in history if t.to_account == "A") - sum(
            t.amount for t in history if t.from_account == "A"
        )
        assert compute_balance(a, txs) == expected

    def test_reserved_is_pinned_to_zero(self) -> None:
        txs = index_transactions([_tx(1, "Wallet", "Income", 30)])
        assert compute_balance(_reserved("Income", [1]), txs) == 0

    def test_missing_reference_is_skipped(self) -> None:
        txs = index_transactions([_tx(1, "A", "B", 10)])
        assert compute_balance(_account("A", 100, [1, 99]), txs) == 90

    def test_compute_balances_keeps_account_order(self) -> None:
        balances = compute_balances([_account("Z", 1), _account("A", 2)], {})
        assert list(balances) == ["Z", "A"]


class TestPlanTransfer:
    def test_wallet_to_income(self) -> None:
        accounts = [_reserved("Income"), _reserved("Expense"), _account("Wallet", 100)]
        plan = plan_transfer(accounts, {}, "Wallet", "Income", 30)
        assert plan.available_money == 70
        assert plan.balances == {"Income": 0, "Expense": 0, "Wallet": 70}

    def test_only_endpoints_move(self) -> None:
        txs = index_transactions([_tx(1, "A", "C", 10)])
        accounts = [_account("A", 50, [1]), _account("B", 0), _account("C", 5, [1])]
        plan = plan_transfer(accounts, txs, "A", "B", 20)
        assert plan.balances == {"A": 20, "B": 20, "C": 15}

    def test_from_reserved_has_zero_available_money(self) -> None:
        accounts = [_reserved("Income"), _account("Wallet", 0)]
        plan = plan_transfer(accounts, {}, "Income", "Wallet", 500)
        assert plan.available_money == 0
        assert plan.balances["Wallet"] == 500

    def test_balance_may_go_negative(self) -> None:
        plan = plan_transfer([_account("A", 10), _account("B")], {}, "A", "B", 25)
        assert plan.available_money == -15

    def test_unknown_from_account(self) -> None:
        with pytest.raises(UnknownAccountError) as exc:
            plan_transfer([_account("A")], {}, "Ghost", "A", 1)
        assert exc.value.code == 2001
        assert "Ghost" in exc.value.message

    def test_unknown_to_account(self) -> None:
        with pytest.raises(UnknownAccountError):
            plan_transfer([_account("A")], {}, "A", "Ghost", 1)

    @pytest.mark.parametrize("amount", [0, -5, True])
    def test_invalid_amount(self, amount: int) -> None:
        with pytest.raises(InvalidAmountError):
            plan_transfer([_account("A"), _account("B")], {}, "A", "B", amount)

    def test_same_account_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            plan_transfer([_account("A", 10)], {}, "A", "A", 1)


class TestReconcile:
    def test_consistent_ledger_has_no_drift(self) -> None:
        txs = index_transactions([_tx(1, "A", "B", 10)])
        accounts = [_account("A", 50, [1], current=40), _account("B", 0, [1], current=10)]
        assert reconcile(accounts, txs) == []

    def test_reports_stale_cache(self) -> None:
        txs = index_transactions([_tx(1, "A", "B", 10)])
        accounts = [_account("A", 50, [1], current=50), _account("B", 0, [1], current=10)]
        drifts = reconcile(accounts, txs)
        assert len(drifts) == 1
        assert drifts[0].name == "A"
        assert drifts[0].cached == 50
        assert drifts[0].computed == 40
        assert drifts[0].difference == 10
