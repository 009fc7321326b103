"""Pure domain layer: value objects and the injectable clock."""

from vat_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from vat_kernel.domain.values import (
    BOX_KEYS,
    MINOR_UNITS_PER_MAJOR,
    VOID_INVOICE_STATUSES,
    VOID_TRANSACTION_STATUSES,
    AccountingScheme,
    BoxSet,
    BoxSetMetadata,
    FinancialRecord,
    Period,
    RecordKind,
    RecordSource,
    VatRecordSet,
    box_value,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "BOX_KEYS",
    "MINOR_UNITS_PER_MAJOR",
    "VOID_INVOICE_STATUSES",
    "VOID_TRANSACTION_STATUSES",
    "AccountingScheme",
    "BoxSet",
    "BoxSetMetadata",
    "FinancialRecord",
    "Period",
    "RecordKind",
    "RecordSource",
    "VatRecordSet",
    "box_value",
]
