"""
VAT return calculation, preview, comparison and estimation.
"""

from vat_modules.vat_return.models import (
    BoxChange,
    BoxDiscrepancy,
    CalculationBreakdown,
    CalculationOptions,
    CalculationResult,
    CategoryTotals,
    ExpenseBreakdown,
    IncomeBreakdown,
    LiabilityEstimate,
    ParamValidationResult,
    PeriodComparison,
    PeriodRequest,
    PreparedVatReturn,
    ReturnTotals,
    SavedReturnComparison,
    ServiceResult,
    StatisticsSummary,
    VatReturnPreview,
    VatStatistics,
    VatSummary,
)
from vat_modules.vat_return.service import (
    VatCalculationService,
    percent_change,
    validate_against_saved,
    validate_calculation_params,
)
from vat_modules.vat_return.store import RecordStore

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
    "RecordStore",
    "ReturnTotals",
    "SavedReturnComparison",
    "ServiceResult",
    "StatisticsSummary",
    "VatCalculationService",
    "VatReturnPreview",
    "VatStatistics",
    "VatSummary",
    "percent_change",
    "validate_against_saved",
    "validate_calculation_params",
]
