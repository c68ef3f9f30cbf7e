from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from enum import Enum
from typing import Optional, Union

AMOUNT_PRECISION = Decimal("0.0001")
MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295
# Balances stay within the 28 digit decimal context with four fractional digits
MAX_AMOUNT_DIGITS = 20


class MalformedRecord(ValueError):
    """Raised when raw field data cannot be turned into a Transaction."""


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeStatus(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    CHARGEBACKED = "chargebacked"


@dataclass(frozen=True)
class Deposit:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.DEPOSIT


@dataclass(frozen=True)
class Withdrawal:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.WITHDRAWAL


@dataclass(frozen=True)
class Dispute:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.DISPUTE


@dataclass(frozen=True)
class Resolve:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.RESOLVE


@dataclass(frozen=True)
class Chargeback:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


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

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount


@dataclass
class TransactionRecord:
    """History entry kept for every applied deposit or withdrawal."""

    transaction_type: TransactionType
    client_id: int
    amount: Decimal
    status: DisputeStatus = DisputeStatus.NONE


def parse_transaction(
    type_tag: str,
    client: str,
    tx: str,
    amount: Optional[str] = None,
    strict: bool = False,
) -> Transaction:
    """
    Build a Transaction from raw field data.

    The type tag is resolved first and decides how the remaining fields are
    read. Reference transactions (dispute, resolve, chargeback) ignore an
    amount from the source row unless ``strict`` is set, in which case a
    non-empty amount is rejected.

    Raises:
        MalformedRecord: unknown tag, bad ids, or a missing/negative/unparseable amount
    """
    tag = (type_tag or "").strip().lower()
    try:
        transaction_type = TransactionType(tag)
    except ValueError:
        raise MalformedRecord(f"unknown transaction type {type_tag!r}") from None

    client_id = _parse_id("client", client, MAX_CLIENT_ID)
    transaction_id = _parse_id("tx", tx, MAX_TRANSACTION_ID)
    amount_str = (amount or "").strip()

    match transaction_type:
        case TransactionType.DEPOSIT:
            return Deposit(client_id, transaction_id, _parse_amount(amount_str))
        case TransactionType.WITHDRAWAL:
            return Withdrawal(client_id, transaction_id, _parse_amount(amount_str))

    if strict and amount_str:
        raise MalformedRecord(f"{tag} tx {transaction_id} must not carry an amount (got {amount_str!r})")

    match transaction_type:
        case TransactionType.DISPUTE:
            return Dispute(client_id, transaction_id)
        case TransactionType.RESOLVE:
            return Resolve(client_id, transaction_id)
        case _:
            return Chargeback(client_id, transaction_id)


def _parse_id(field: str, value: str, upper_bound: int) -> int:
    try:
        parsed = int((value or "").strip())
    except ValueError:
        raise MalformedRecord(f"invalid {field} id {value!r}") from None

    if not 0 <= parsed <= upper_bound:
        raise MalformedRecord(f"{field} id {parsed} out of range 0..{upper_bound}")
    return parsed


def _parse_amount(value: str) -> Decimal:
    if not value:
        raise MalformedRecord("missing amount")

    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise MalformedRecord(f"invalid amount {value!r}")
        if amount < 0:
            raise MalformedRecord(f"negative amount {value!r}")
        if amount.adjusted() >= MAX_AMOUNT_DIGITS:
            raise MalformedRecord(f"amount {value!r} exceeds maximum of {MAX_AMOUNT_DIGITS} integer digits")

        # Cap precision at four fractional digits, truncating toward zero
        if amount.as_tuple().exponent < -4:
            amount = amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise MalformedRecord(f"invalid amount {value!r}") from None
    return amount
