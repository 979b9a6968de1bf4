"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Input validation
  2xxx: Account
  3xxx: Transaction
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Input validation ---

class InvalidInputError(AppError):
    def __init__(self, detail: str, code: int = 1001) -> None:
        super().__init__(code, f"Invalid input: {detail}", 422)


class InvalidAmountError(InvalidInputError):
    def __init__(self, amount: object) -> None:
        super().__init__(f"amount must be a positive integer, got {amount!r}", code=1002)


class InvalidSnapshotError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"ledger snapshot rejected: {detail}", code=1003)


# --- 2xxx: Account ---

class UnknownAccountError(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(2001, f"Unknown account: {name}", 422)


class DuplicateAccountError(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(2002, f"Account already exists: {name}", 409)


class AccountNotFoundError(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(2003, f"Account not found: {name}", 404)


# --- 3xxx: Transaction ---

class TransactionNotFoundError(AppError):
    def __init__(self, transaction_id: int) -> None:
        super().__init__(3001, f"Transaction not found: {transaction_id}", 404)


# --- 9xxx: System ---

class StorageFailureError(AppError):
    def __init__(self, detail: str = "Storage operation failed") -> None:
        super().__init__(9001, f"Storage failure: {detail}", 500)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class DatabaseFileUnavailableError(AppError):
    def __init__(self) -> None:
        super().__init__(9003, "Database file download requires a file-backed SQLite database", 404)
