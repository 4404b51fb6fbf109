from enum import Enum


class ErrorKind(str, Enum):
    """Error tags reported on command responses."""

    ACCOUNT_NOT_FOUND = "AccountNotFound"
    INACTIVE = "Inactive"
    OVERDRAWN = "Overdrawn"
    INVALID_AMOUNT = "InvalidAmount"
    MALFORMED = "Malformed"


class BankError(Exception):
    """Base class for every error raised by the bank core."""

    kind: ErrorKind


class LedgerError(BankError):
    """Raised by the account store when an operation is rejected."""


class AccountNotFoundError(LedgerError):
    """Raised when an account number is missing from the store."""

    kind = ErrorKind.ACCOUNT_NOT_FOUND


class InactiveAccountError(LedgerError):
    """Raised when a closed account would be mutated."""

    kind = ErrorKind.INACTIVE


class OverdrawnError(LedgerError):
    """Raised when a withdrawal/transfer would drop balance below zero."""

    kind = ErrorKind.OVERDRAWN


class InvalidAmountError(LedgerError):
    """Raised when a transfer amount is negative."""

    kind = ErrorKind.INVALID_AMOUNT


class MalformedCommandError(BankError):
    """Raised when a payload cannot be decoded into a known command."""

    kind = ErrorKind.MALFORMED

    def __init__(self, detail: str, correlation_id: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.correlation_id = correlation_id
