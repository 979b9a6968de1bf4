"""Tests for et_common.errors and et_common.response."""

from src.et_common.errors import (
    AppError,
    DuplicateAccountError,
    InvalidAmountError,
    InvalidInputError,
    InvalidSnapshotError,
    StorageFailureError,
    TransactionNotFoundError,
    UnknownAccountError,
)
from src.et_common.response import error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=2002, message="Account taken", http_status=409)
        assert err.http_status == 409

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_invalid_input(self) -> None:
        err = InvalidInputError("name is required")
        assert err.code == 1001
        assert err.http_status == 422
        assert "name is required" in err.message

    def test_invalid_amount_is_invalid_input(self) -> None:
        err = InvalidAmountError(-3)
        assert isinstance(err, InvalidInputError)
        assert err.code == 1002
        assert "-3" in err.message

    def test_invalid_snapshot_is_invalid_input(self) -> None:
        err = InvalidSnapshotError("duplicate transaction ids")
        assert isinstance(err, InvalidInputError)
        assert err.code == 1003

    def test_unknown_account(self) -> None:
        err = UnknownAccountError("Ghost")
        assert err.code == 2001
        assert err.http_status == 422
        assert "Ghost" in err.message

    def test_duplicate_account(self) -> None:
        err = DuplicateAccountError("Wallet")
        assert err.code == 2002
        assert err.http_status == 409

    def test_transaction_not_found(self) -> None:
        err = TransactionNotFoundError(12)
        assert err.code == 3001
        assert err.http_status == 404

    def test_storage_failure(self) -> None:
        err = StorageFailureError("OperationalError")
        assert err.code == 9001
        assert err.http_status == 500
        assert "OperationalError" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"name": "Wallet"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"name": "Wallet"}

    def test_error(self) -> None:
        resp = error_response(2001, "Unknown account: Ghost")
        assert resp.code == 2001
        assert resp.data is None

    def test_serialization(self) -> None:
        d = success_response([]).model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
