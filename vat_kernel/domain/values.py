"""
Values -- Immutable domain value objects for VAT return computation.

Responsibility:
    Defines the nouns the box calculator and the calculation service share:
    accounting schemes, normalized financial records, inclusive periods and
    the nine-box result set.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Money is an ``int`` count of pence.  Never ``float``.
    - ``Period.start <= Period.end``; both bounds inclusive, no time part.
    - Every value object is frozen; nothing is mutated after construction.

Failure modes:
    - ``InvalidPeriodError`` on malformed or out-of-order period bounds.
    - ``UnknownAccountingSchemeError`` from ``AccountingScheme.parse``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Mapping
from uuid import UUID

from vat_kernel.exceptions import (
    InvalidBoxValueError,
    InvalidPeriodError,
    UnknownAccountingSchemeError,
)

# Pence per pound.
MINOR_UNITS_PER_MAJOR = 100

BOX_KEYS: tuple[str, ...] = tuple(f"box{i}" for i in range(1, 10))

# Statuses that never count towards a return, whatever the configuration.
VOID_TRANSACTION_STATUSES = frozenset({"void"})
VOID_INVOICE_STATUSES = frozenset({"void", "cancelled"})

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class AccountingScheme(str, Enum):
    """When VAT liability is recognized."""

    STANDARD = "standard"  # on invoice issuance
    CASH = "cash"  # on confirmed settlement

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)

    @classmethod
    def parse(cls, value: AccountingScheme | str) -> AccountingScheme:
        """Resolve an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownAccountingSchemeError(value, cls.values()) from None


class RecordKind(str, Enum):
    """Direction of a financial record."""

    INCOME = "income"
    EXPENSE = "expense"


class RecordSource(str, Enum):
    """Where a financial record came from."""

    TRANSACTION = "transaction"
    INVOICE = "invoice"


@dataclass(frozen=True, slots=True)
class FinancialRecord:
    """
    Normalized view of a ledger transaction or a sales invoice.

    ``net_amount`` is the transaction ``amount`` or the invoice ``subtotal``.
    ``gross_amount`` is the stored total when the source has one; otherwise
    ``total_amount`` derives it from net plus VAT.
    """

    kind: RecordKind
    status: str
    record_date: date
    net_amount: int
    vat_amount: int
    source: RecordSource = RecordSource.TRANSACTION
    gross_amount: int | None = None
    id: UUID | None = None

    @property
    def total_amount(self) -> int:
        if self.gross_amount is not None:
            return self.gross_amount
        return self.net_amount + self.vat_amount


@dataclass(frozen=True, slots=True)
class Period:
    """Inclusive date range ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidPeriodError(
                self.start.isoformat(),
                self.end.isoformat(),
                "periodEnd must be on or after periodStart",
            )

    @staticmethod
    def parse_date(value: object) -> date | None:
        """Parse a strict ``YYYY-MM-DD`` string, or return None."""
        if not isinstance(value, str) or not _ISO_DATE.match(value):
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    @classmethod
    def from_strings(cls, period_start: str, period_end: str) -> Period:
        start = cls.parse_date(period_start)
        end = cls.parse_date(period_end)
        if start is None or end is None:
            raise InvalidPeriodError(
                str(period_start), str(period_end), "dates must be YYYY-MM-DD"
            )
        return cls(start, end)

    @classmethod
    def calendar_year(cls, year: int) -> Period:
        return cls(date(year, 1, 1), date(year, 12, 31))

    def contains(self, on_date: date) -> bool:
        return self.start <= on_date <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True, slots=True)
class VatRecordSet:
    """Already-filtered records handed to the box calculator."""

    income_transactions: tuple[FinancialRecord, ...] = ()
    expense_transactions: tuple[FinancialRecord, ...] = ()
    sales_invoices: tuple[FinancialRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class BoxSetMetadata:
    """How a box set was produced."""

    accounting_scheme: AccountingScheme
    calculated_at: datetime
    income_transaction_count: int = 0
    expense_transaction_count: int = 0
    sales_invoice_count: int = 0
    rounded_to_pounds: bool = False


def box_value(box: str, value: object) -> int:
    """
    Coerce a stored box value to integer pence.

    ``None`` is 0.  Integral numbers and numeric strings ("1200", "1200.0")
    are accepted; anything else raises ``InvalidBoxValueError``.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise InvalidBoxValueError(box, value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal, str)):
        try:
            number = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise InvalidBoxValueError(box, value) from None
        if number.is_finite() and number == number.to_integral_value():
            return int(number)
    raise InvalidBoxValueError(box, value)


@dataclass(frozen=True)
class BoxSet:
    """
    The nine HMRC VAT return boxes, in pence.

    The constructor does not enforce the cross-box invariants so that
    inconsistent saved or perturbed values can still be inspected;
    ``validate_box_calculations`` reports them.  Saved returns read back
    from storage carry ``metadata=None``.
    """

    box1: int = 0
    box2: int = 0
    box3: int = 0
    box4: int = 0
    box5: int = 0
    box6: int = 0
    box7: int = 0
    box8: int = 0
    box9: int = 0
    metadata: BoxSetMetadata | None = field(default=None, compare=False)

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, object],
        metadata: BoxSetMetadata | None = None,
    ) -> BoxSet:
        """
        Build from a ``box1``..``box9`` mapping; missing boxes are 0.

        Raises ``InvalidBoxValueError`` for a value that is not a whole
        number of pence (see ``box_value``).
        """
        return cls(
            **{key: box_value(key, values.get(key)) for key in BOX_KEYS},
            metadata=metadata,
        )

    def values(self) -> Mapping[str, int]:
        """Ordered, read-only ``box1``..``box9`` mapping."""
        return MappingProxyType({key: getattr(self, key) for key in BOX_KEYS})

    def get(self, key: str) -> int:
        if key not in BOX_KEYS:
            raise KeyError(key)
        return getattr(self, key)
