from typing import Mapping, Optional


class PaymentsError(Exception):
    """Base class for every error raised by the payments engine."""


class InvalidTransactionError(PaymentsError):
    """
    Raised when an input record is malformed.
    This is a hard error: the whole run is aborted and nothing is exported.
    """

    def __init__(self, reason: str, row: Optional[Mapping] = None, row_number: Optional[int] = None):
        self.reason = reason
        self.row = row
        self.row_number = row_number
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"Invalid transaction: {self.reason}"
        if self.row_number is not None:
            message = f"[row {self.row_number}] {message}"
        if self.row is not None:
            message = f"{message} (record: {dict(self.row)})"
        return message

    def at_row(self, row_number: int) -> "InvalidTransactionError":
        return InvalidTransactionError(self.reason, self.row, row_number)


class ProcessingError(PaymentsError):
    """
    A single record could not be applied.
    Soft error: the record is skipped and processing continues.
    """


class TransactionNotFoundError(ProcessingError):
    def __init__(self, tx_id: int):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} not found")


class ClientMismatchError(ProcessingError):
    def __init__(self, tx_id: int, expected: int, got: int):
        self.tx_id = tx_id
        self.expected = expected
        self.got = got
        super().__init__(f"Client mismatch: transaction {tx_id} belongs to client {expected}, not {got}")


class NotUnderDisputeError(ProcessingError):
    def __init__(self, tx_id: int):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} is not under dispute")


class AlreadyUnderDisputeError(ProcessingError):
    def __init__(self, tx_id: int):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} is already under dispute")


class AlreadyChargedBackError(ProcessingError):
    def __init__(self, tx_id: int):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} was already charged back")


class DuplicateTransactionError(ProcessingError):
    def __init__(self, tx_id: int):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} was already processed")


class InsufficientFundsError(ProcessingError):
    def __init__(self, client_id: int, available, requested):
        self.client_id = client_id
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient funds: client {client_id} has {available}, requested {requested}")


class AccountLockedError(ProcessingError):
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Account {client_id} is locked")
