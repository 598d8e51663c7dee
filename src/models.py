import re
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import Mapping, Optional

from errors import InsufficientFundsError, InvalidTransactionError

MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295
AMOUNT_PRECISION = 4
AMOUNT_QUANTUM = Decimal("0.0001")
# Keeps balances well inside the default 28-digit decimal context.
MAX_AMOUNT_INTEGER_DIGITS = 20

ID_PATTERN = re.compile(r"\+?[0-9]+")
AMOUNT_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)")


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def requires_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


class DisputeState(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DepositRecord:
    """A successfully applied deposit, kept for the whole run so it can be disputed later."""

    client_id: int
    amount: Decimal
    state: DisputeState = DisputeState.CLEAN


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount
        self._check_invariants()

    def debit(self, amount: Decimal) -> None:
        if amount > self.available:
            raise InsufficientFundsError(self.client_id, self.available, amount)
        self.available -= amount
        self._check_invariants()

    def hold(self, amount: Decimal) -> None:
        # available may go negative when the disputed funds were already withdrawn
        self.available -= amount
        self.held += amount
        self._check_invariants()

    def release(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount
        self._check_invariants()

    def remove_held_and_lock(self, amount: Decimal) -> None:
        self.held -= amount
        self.locked = True
        self._check_invariants()

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.available + self.held,
            locked=self.locked,
        )

    def _check_invariants(self) -> None:
        assert self.held >= 0, f"client {self.client_id}: negative held balance {self.held}"


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.skipped = 0

    def record_success(self):
        self.processed += 1

    def record_skip(self):
        self.skipped += 1


def parse_transaction(row: Mapping[Optional[str], Optional[str]]) -> Transaction:
    """
    Convert a raw CSV row into a validated Transaction.

    Header names and values are whitespace-trimmed and the type is case-insensitive.
    An empty or missing amount means "no amount".

    Raises:
        InvalidTransactionError: the row is malformed (hard error)
    """
    if None in row:
        raise InvalidTransactionError("unexpected extra fields", row)

    normalized = {k.strip().lower(): v.strip() for k, v in row.items() if v is not None}

    for column in ("type", "client", "tx"):
        if not normalized.get(column):
            raise InvalidTransactionError(f"missing required field '{column}'", row)

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except ValueError:
        raise InvalidTransactionError(f"unknown transaction type '{normalized['type']}'", row) from None

    client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID, row)
    transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID, row)

    amount_str = normalized.get("amount", "")
    if transaction_type.requires_amount:
        if not amount_str:
            raise InvalidTransactionError(f"{transaction_type.value} requires an amount", row)
        amount = _parse_amount(amount_str, row)
    else:
        if amount_str:
            raise InvalidTransactionError(f"{transaction_type.value} must not carry an amount", row)
        amount = None

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, field: str, upper_bound: int, row) -> int:
    # int() alone would also take "1_0" and non-ASCII digits
    if not ID_PATTERN.fullmatch(value):
        raise InvalidTransactionError(f"{field} id '{value}' is not an integer", row)
    parsed = int(value)
    if not 0 <= parsed <= upper_bound:
        raise InvalidTransactionError(f"{field} id {parsed} out of range [0, {upper_bound}]", row)
    return parsed


def _parse_amount(value: str, row) -> Decimal:
    if not AMOUNT_PATTERN.fullmatch(value):
        raise InvalidTransactionError(f"amount '{value}' is not a decimal number", row)
    amount = Decimal(value)
    if amount <= 0:
        raise InvalidTransactionError(f"amount {value} must be positive", row)
    if amount.as_tuple().exponent < -AMOUNT_PRECISION:
        raise InvalidTransactionError(f"amount {value} has more than {AMOUNT_PRECISION} decimal places", row)
    if amount.adjusted() >= MAX_AMOUNT_INTEGER_DIGITS:
        raise InvalidTransactionError(f"amount {value} has more than {MAX_AMOUNT_INTEGER_DIGITS} integer digits", row)
    return amount


def format_amount(value: Decimal) -> str:
    """Format an amount with exactly four decimal places, never in scientific notation."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 1 + AMOUNT_PRECISION)
        return f"{value.quantize(AMOUNT_QUANTUM):f}"
