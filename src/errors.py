from enum import Enum


class ErrorKind(Enum):
    MALFORMED_RECORD = "malformed_record"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INVALID_AMOUNT = "invalid_amount"
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_STATE = "invalid_state"


class LedgerError(Exception):
    """
    Base class for rejected records.
    Raising one guarantees the ledger was left exactly as it was before the call.
    """

    kind: ErrorKind

    def __init__(self, transaction_id: int, client_id: int, message: str):
        super().__init__(message)
        self.transaction_id = transaction_id
        self.client_id = client_id
        self.message = message


class MalformedRecordError(LedgerError):
    kind = ErrorKind.MALFORMED_RECORD


class DuplicateTransactionError(LedgerError):
    kind = ErrorKind.DUPLICATE_TRANSACTION


class InvalidAmountError(LedgerError):
    kind = ErrorKind.INVALID_AMOUNT


class AccountNotFoundError(LedgerError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND


class AccountLockedError(LedgerError):
    kind = ErrorKind.ACCOUNT_LOCKED


class InsufficientFundsError(LedgerError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class TransactionNotFoundError(LedgerError):
    kind = ErrorKind.TRANSACTION_NOT_FOUND


class ClientMismatchError(LedgerError):
    kind = ErrorKind.CLIENT_MISMATCH


class InvalidStateError(LedgerError):
    kind = ErrorKind.INVALID_STATE
