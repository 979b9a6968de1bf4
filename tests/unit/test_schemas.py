"""Unit tests for request schemas and snapshot validation."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.et_backup.application.schemas import (
    LedgerSnapshot,
    SnapshotAccount,
    SnapshotTransaction,
)
from src.et_backup.application.service import validate_snapshot
from src.et_balance.application.schemas import EditTransactionRequest, TransferRequest
from src.et_common.enums import AccountKind
from src.et_common.errors import InvalidSnapshotError


class TestTransferRequest:
    def test_comment_optional(self) -> None:
        req = TransferRequest(
            from_account="Wallet", to_account="Income", amount=30, type="expense", category="food"
        )
        assert req.comment is None
        assert req.created_at is None

    @pytest.mark.parametrize("amount", [0, -1, 2.5, "abc"])
    def test_amount_must_be_positive_integer(self, amount: object) -> None:
        with pytest.raises(ValidationError):
            TransferRequest(
                from_account="A", to_account="B", amount=amount, type="t", category="c"
            )

    def test_type_and_category_required(self) -> None:
        with pytest.raises(ValidationError):
            TransferRequest(from_account="A", to_account="B", amount=1, type="", category="c")


class TestEditTransactionRequest:
    def test_only_sent_fields_change(self) -> None:
        req = EditTransactionRequest.model_validate({"category": "rent"})
        assert req.changes() == {"category": "rent"}

    def test_null_comment_clears_it(self) -> None:
        req = EditTransactionRequest.model_validate({"comment": None})
        assert req.changes() == {"comment": ""}

    @pytest.mark.parametrize("field", ["amount", "from_account", "type", "created_at"])
    def test_null_rejected_for_required_fields(self, field: str) -> None:
        with pytest.raises(ValidationError):
            EditTransactionRequest.model_validate({field: None})

    def test_parses_timestamp(self) -> None:
        req = EditTransactionRequest.model_validate({"created_at": "2024-01-02T03:04:05Z"})
        assert req.changes()["created_at"] == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)


def _snapshot(**overrides: object) -> LedgerSnapshot:
    data: dict[str, object] = {
        "accounts": [
            SnapshotAccount(name="Income", kind=AccountKind.RESERVED, starting_balance=0,
                            current_balance=0, transaction_refs=[]),
            SnapshotAccount(name="Expense", kind=AccountKind.RESERVED, starting_balance=0,
                            current_balance=0, transaction_refs=[1]),
            SnapshotAccount(name="Wallet", starting_balance=100, current_balance=90,
                            transaction_refs=[1]),
        ],
        "transactions": [
            SnapshotTransaction(id=1, from_account="Wallet", to_account="Expense", amount=10,
                                available_money=90, type="expense", category="food",
                                created_at=datetime(2024, 1, 1, tzinfo=UTC),
                                accounts_balance={"Income": 0, "Expense": 0, "Wallet": 90}),
        ],
    }
    data.update(overrides)
    return LedgerSnapshot.model_validate(data)


class TestValidateSnapshot:
    def test_valid_snapshot_defaults_next_id(self) -> None:
        assert validate_snapshot(_snapshot()) == 2

    def test_explicit_next_id_kept(self) -> None:
        assert validate_snapshot(_snapshot(next_transaction_id=10)) == 10

    def test_next_id_cannot_reuse(self) -> None:
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(_snapshot(next_transaction_id=1))

    def test_collections_are_required(self) -> None:
        with pytest.raises(ValidationError):
            LedgerSnapshot.model_validate({"accounts": []})

    def test_missing_reserved_account(self) -> None:
        snap = _snapshot()
        snap.accounts = [a for a in snap.accounts if a.name != "Income"]
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_unknown_endpoint(self) -> None:
        snap = _snapshot()
        snap.transactions[0].to_account = "Ghost"
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_ref_without_transaction(self) -> None:
        snap = _snapshot()
        snap.accounts[2].transaction_refs = [1, 5]
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_transaction_missing_from_refs(self) -> None:
        snap = _snapshot()
        snap.accounts[1].transaction_refs = []
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_duplicate_ids(self) -> None:
        snap = _snapshot()
        snap.transactions.append(snap.transactions[0].model_copy())
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_reserved_account_must_hold_zero(self) -> None:
        snap = _snapshot()
        snap.accounts[0].starting_balance = 500
        snap.accounts[0].current_balance = 999
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)

    def test_cached_balance_must_match_history(self) -> None:
        snap = _snapshot()
        snap.accounts[2].current_balance = 12345
        with pytest.raises(InvalidSnapshotError):
            validate_snapshot(snap)


class TestSnapshotFieldLimits:
    def test_account_name_is_stripped(self) -> None:
        account = SnapshotAccount(name="  Wallet ", starting_balance=0, current_balance=0)
        assert account.name == "Wallet"

    def test_blank_account_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SnapshotAccount(name="   ", starting_balance=0, current_balance=0)

    @pytest.mark.parametrize(
        "overrides",
        [{"type": ""}, {"category": "  "}, {"type": "x" * 65}, {"comment": "c" * 501}],
    )
    def test_transaction_text_limits(self, overrides: dict[str, str]) -> None:
        data = {
            "id": 1, "from_account": "Wallet", "to_account": "Expense", "amount": 10,
            "available_money": 90, "type": "expense", "category": "food",
            "created_at": "2024-01-01T00:00:00Z", **overrides,
        }
        with pytest.raises(ValidationError):
            SnapshotTransaction.model_validate(data)
