"""
VAT Return Domain Models.

Responsibility:
    Frozen dataclass DTOs returned by ``VatCalculationService``: the
    discriminated ``ServiceResult`` wrapper, calculation results, previews,
    period comparisons, liability estimates, yearly statistics and
    saved-versus-recalculated checks.

Invariants:
    - All models are ``frozen=True`` (immutable after construction).
    - Money fields are ``int`` pence; ratios and pound values are ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, Mapping, TypeVar

from vat_engines.box_calculator import BoxValidationResult, CalculationSummary
from vat_kernel.domain.values import (
    AccountingScheme,
    BoxSet,
    BoxSetMetadata,
    Period,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """
    Either ``success=True`` with ``data``, or ``success=False`` with
    field-keyed ``errors``.  Unexpected failures use the ``general`` key.
    """

    success: bool
    data: T | None = None
    errors: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, errors: Mapping[str, Any]) -> ServiceResult[T]:
        return cls(success=False, errors=dict(errors))


@dataclass(frozen=True)
class ParamValidationResult:
    is_valid: bool
    errors: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CalculationOptions:
    """
    Per-call options.  ``accounting_scheme=None`` means the configured
    default scheme.
    """

    accounting_scheme: AccountingScheme | str | None = None
    round_to_pounds: bool = False
    include_breakdown: bool = False


@dataclass(frozen=True)
class PeriodRequest:
    """Unvalidated ``YYYY-MM-DD`` period bounds, as callers supply them."""

    start: str
    end: str


# =============================================================================
# Single-period calculation
# =============================================================================


@dataclass(frozen=True)
class VatSummary:
    vat_due: int
    vat_reclaimed: int
    net_vat: int
    is_refund_due: bool
    total_sales: int
    total_purchases: int

    @classmethod
    def from_boxes(cls, boxes: BoxSet) -> VatSummary:
        return cls(
            vat_due=boxes.box3,
            vat_reclaimed=boxes.box4,
            net_vat=boxes.box5,
            is_refund_due=boxes.box5 < 0,
            total_sales=boxes.box6,
            total_purchases=boxes.box7,
        )


@dataclass(frozen=True)
class IncomeBreakdown:
    transaction_count: int
    invoice_count: int
    total_vat: int
    total_net: int


@dataclass(frozen=True)
class ExpenseBreakdown:
    transaction_count: int
    total_vat: int
    total_net: int


@dataclass(frozen=True)
class CalculationBreakdown:
    income: IncomeBreakdown
    expense: ExpenseBreakdown


@dataclass(frozen=True)
class CalculationResult:
    period: Period
    accounting_scheme: AccountingScheme
    boxes: BoxSet
    summary: VatSummary
    validation: BoxValidationResult
    breakdown: CalculationBreakdown | None = None

    @property
    def metadata(self) -> BoxSetMetadata | None:
        return self.boxes.metadata


@dataclass(frozen=True)
class PreparedVatReturn:
    """A calculated return shaped for persistence as a draft."""

    user_id: int
    period: Period
    boxes: BoxSet
    accounting_scheme: AccountingScheme
    calculation_details: CalculationResult
    status: str = "draft"

    def as_row(self) -> dict[str, Any]:
        """Flat column mapping for a ``vat_returns`` row."""
        return {
            "user_id": self.user_id,
            "period_start": self.period.start,
            "period_end": self.period.end,
            **dict(self.boxes.values()),
            "status": self.status,
            "accounting_scheme": self.accounting_scheme.value,
        }


@dataclass(frozen=True)
class VatReturnPreview:
    calculation: CalculationResult
    formatted_summary: CalculationSummary
    submission_format: Mapping[str, Decimal]


# =============================================================================
# Comparison and estimation
# =============================================================================


@dataclass(frozen=True)
class BoxChange:
    current: int
    previous: int
    change: int
    percent_change: Decimal | None


@dataclass(frozen=True)
class PeriodComparison:
    current_period: CalculationResult
    previous_period: CalculationResult
    changes: Mapping[str, BoxChange]


@dataclass(frozen=True)
class LiabilityEstimate:
    """
    Average of recent filed returns.  ``estimated=False`` (with
    ``averages=None``) when there is no filed history to average.
    """

    estimated: bool
    periods_used: int = 0
    averages: BoxSet | None = None
    message: str | None = None

    @property
    def estimated_net_vat(self) -> int | None:
        return self.averages.box5 if self.averages is not None else None

    @property
    def is_estimated_refund(self) -> bool | None:
        return self.averages.box5 < 0 if self.averages is not None else None


# =============================================================================
# Statistics
# =============================================================================


@dataclass(frozen=True)
class CategoryTotals:
    count: int = 0
    total_net: int = 0
    total_vat: int = 0
    total_gross: int = 0


@dataclass(frozen=True)
class ReturnTotals:
    count: int = 0
    total_vat_due: int = 0
    total_vat_reclaimed: int = 0
    net_vat: int = 0


@dataclass(frozen=True)
class StatisticsSummary:
    output_vat: int
    input_vat: int
    estimated_net_vat: int


@dataclass(frozen=True)
class VatStatistics:
    year: int
    income: CategoryTotals
    expenses: CategoryTotals
    invoices: CategoryTotals
    vat_returns: ReturnTotals
    summary: StatisticsSummary


# =============================================================================
# Saved-return verification
# =============================================================================


@dataclass(frozen=True)
class BoxDiscrepancy:
    box: str
    saved: int
    calculated: int
    difference: int


@dataclass(frozen=True)
class SavedReturnComparison:
    is_valid: bool
    discrepancies: tuple[BoxDiscrepancy, ...] = ()
    # box -> reason, for values that are not whole pence on either side
    invalid_values: Mapping[str, str] = field(default_factory=dict)

    @property
    def boxes(self) -> list[str]:
        return [d.box for d in self.discrepancies]


__all__ = [
    "BoxChange",
    "BoxDiscrepancy",
    "CalculationBreakdown",
    "CalculationOptions",
    "CalculationResult",
    "CategoryTotals",
    "ExpenseBreakdown",
    "IncomeBreakdown",
    "LiabilityEstimate",
    "ParamValidationResult",
    "PeriodComparison",
    "PeriodRequest",
    "PreparedVatReturn",
    "ReturnTotals",
    "SavedReturnComparison",
    "ServiceResult",
    "StatisticsSummary",
    "VatReturnPreview",
    "VatStatistics",
    "VatSummary",
]
