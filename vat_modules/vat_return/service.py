"""
VAT Calculation Service -- Orchestrates VAT return calculation via engines + store.

Responsibility:
    Thin glue layer between the record store and the pure box calculator.
    Validates caller parameters, fetches period records, delegates every
    box computation to ``VatBoxCalculator`` and shapes the outcome into
    ``ServiceResult`` values.

Architecture:
    vat_modules -- Thin glue (this layer).
    1. Asks a ``RecordStore`` for filtered records (``SqlRecordStore`` in
       production, any object with the same methods in tests).
    2. Calls ``VatBoxCalculator`` for boxes, validation and summaries.
    All arithmetic lives in engines.  All querying lives in the store.

Invariants:
    - Invalid parameters never reach the store.
    - Every public method returns a ``ServiceResult``; expected failures are
      keyed by the offending field, unexpected ones by ``general``.
    - Money is integer pence throughout.

Failure modes:
    - Store or engine exceptions are logged with traceback and reported as
      ``{"general": ...}``.  They do not propagate to the caller.
    - The income, expense and invoice fetches are independent reads.  A
      write landing between them is seen by the later fetches only.

Usage:
    service = VatCalculationService(SqlRecordStore(session), clock)
    result = service.calculate_vat_return(
        user_id=42,
        period_start="2024-01-01",
        period_end="2024-03-31",
        options=CalculationOptions(accounting_scheme="cash"),
    )
    if result.success:
        print(result.data.boxes.box5)
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from typing import Mapping

from vat_config.schema import VatConfig
from vat_engines.box_calculator import (
    BoxCalculationOptions,
    VatBoxCalculator,
    hmrc_round,
    round_to_pounds,
)
from vat_engines.localization import Language
from vat_kernel.domain.clock import Clock, SystemClock
from vat_kernel.domain.values import (
    BOX_KEYS,
    AccountingScheme,
    BoxSet,
    FinancialRecord,
    Period,
    VatRecordSet,
    box_value,
)
from vat_kernel.exceptions import InvalidBoxValueError, UnknownAccountingSchemeError
from vat_kernel.logging_config import LogContext, get_logger
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
from vat_modules.vat_return.store import RecordStore

logger = get_logger("modules.vat_return.service")

CALCULATION_FAILED = "Failed to calculate VAT return"
ESTIMATION_FAILED = "Failed to estimate VAT liability"
STATISTICS_FAILED = "Failed to calculate VAT statistics"
NO_HISTORY_MESSAGE = "No historical data available for estimation"


# =============================================================================
# Parameter validation
# =============================================================================


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_calculation_params(
    user_id: object,
    period_start: object,
    period_end: object,
) -> ParamValidationResult:
    """
    Check a user id and a ``YYYY-MM-DD`` period before any store access.

    Errors are keyed ``user_id``, ``period_start`` and ``period_end``.  The
    ordering check only runs when both dates parsed.
    """
    errors: dict[str, str] = {}

    if not _is_positive_int(user_id):
        errors["user_id"] = "Valid userId is required"

    start = Period.parse_date(period_start)
    if start is None:
        errors["period_start"] = "Invalid periodStart format (YYYY-MM-DD required)"

    end = Period.parse_date(period_end)
    if end is None:
        errors["period_end"] = "Invalid periodEnd format (YYYY-MM-DD required)"

    if start is not None and end is not None and end < start:
        errors["period_end"] = "periodEnd must be on or after periodStart"

    return ParamValidationResult(is_valid=not errors, errors=errors)


def _period_bounds(period: object) -> tuple[object, object]:
    """Raw (start, end) of a PeriodRequest or {"start", "end"} mapping."""
    if isinstance(period, PeriodRequest):
        return period.start, period.end
    if isinstance(period, Mapping):
        return period.get("start"), period.get("end")
    return None, None


def percent_change(current: int, previous: int) -> Decimal | None:
    """
    Relative change against ``|previous|`` in percent, to 2dp (halves up).

    None when there is nothing to compare against (previous 0, current not).
    """
    if previous == 0:
        return Decimal("0") if current == 0 else None
    basis_points = Decimal(current - previous) * 10000 / abs(previous)
    return Decimal(hmrc_round(basis_points)) / 100


def _coerce_boxes(
    boxes: BoxSet | Mapping[str, object],
    invalid: dict[str, str],
) -> dict[str, int]:
    if isinstance(boxes, BoxSet):
        return dict(boxes.values())
    coerced = {}
    for key in BOX_KEYS:
        try:
            coerced[key] = box_value(key, boxes.get(key))
        except InvalidBoxValueError as exc:
            invalid.setdefault(key, str(exc))
    return coerced


def validate_against_saved(
    saved: BoxSet | Mapping[str, object],
    calculated: BoxSet | Mapping[str, object],
) -> SavedReturnComparison:
    """
    Box-by-box comparison of a stored return against a fresh calculation.

    ``difference`` is calculated minus saved.  Boxes missing from a mapping
    count as 0.  A value that is not whole pence is reported under
    ``invalid_values`` rather than raised, and makes the comparison invalid.
    """
    invalid: dict[str, str] = {}
    saved_values = _coerce_boxes(saved, invalid)
    calculated_values = _coerce_boxes(calculated, invalid)
    if invalid:
        logger.warning("vat_return_box_values_invalid", extra={
            "boxes": sorted(invalid),
        })

    discrepancies = []
    for key in BOX_KEYS:
        if key in invalid:
            continue
        saved_value = saved_values[key]
        calculated_value = calculated_values[key]
        if saved_value != calculated_value:
            discrepancies.append(
                BoxDiscrepancy(
                    box=key,
                    saved=saved_value,
                    calculated=calculated_value,
                    difference=calculated_value - saved_value,
                )
            )
    return SavedReturnComparison(
        is_valid=not discrepancies and not invalid,
        discrepancies=tuple(discrepancies),
        invalid_values=invalid,
    )


def _category_totals(records: tuple[FinancialRecord, ...]) -> CategoryTotals:
    return CategoryTotals(
        count=len(records),
        total_net=sum(r.net_amount for r in records),
        total_vat=sum(r.vat_amount for r in records),
        total_gross=sum(r.total_amount for r in records),
    )


# =============================================================================
# Service
# =============================================================================


class VatCalculationService:
    """
    Calculates, previews, compares and estimates VAT returns for one user
    and period at a time.

    Contract:
        Callers supply a ``RecordStore`` and optionally a ``Clock`` and a
        ``VatConfig``.  The service holds no per-call state; it may be
        shared between requests.

    Non-goals:
        - The service does NOT persist returns.  ``calculate_and_prepare_
          vat_return`` hands back a draft for upstream persistence.
        - The service does NOT submit returns to HMRC.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Clock | None = None,
        config: VatConfig | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._config = config or VatConfig()
        self._calculator = VatBoxCalculator(self._clock)

    @property
    def config(self) -> VatConfig:
        return self._config

    def validate_calculation_params(
        self,
        user_id: object,
        period_start: object,
        period_end: object,
    ) -> ParamValidationResult:
        return validate_calculation_params(user_id, period_start, period_end)

    def validate_against_saved(
        self,
        saved: BoxSet | Mapping[str, object],
        calculated: BoxSet | Mapping[str, object],
    ) -> SavedReturnComparison:
        return validate_against_saved(saved, calculated)

    # =========================================================================
    # Single period
    # =========================================================================

    def calculate_vat_return(
        self,
        user_id: int,
        period_start: str,
        period_end: str,
        options: CalculationOptions | None = None,
    ) -> ServiceResult[CalculationResult]:
        """
        Calculate the nine boxes for one user and period.

        Returns a failed result keyed by field for bad parameters or an
        unknown scheme, and ``{"general": ...}`` when the store or the
        engine raises.
        """
        options = options or CalculationOptions()

        params = validate_calculation_params(user_id, period_start, period_end)
        if not params.is_valid:
            logger.warning("vat_return_params_invalid", extra={
                "fields": sorted(params.errors),
            })
            return ServiceResult.fail(params.errors)

        try:
            scheme = self._resolve_scheme(options.accounting_scheme)
        except UnknownAccountingSchemeError as exc:
            logger.warning("vat_return_scheme_invalid", extra={
                "accounting_scheme": str(exc.scheme),
            })
            return ServiceResult.fail({"accounting_scheme": str(exc)})

        period = Period.from_strings(period_start, period_end)

        with LogContext.bind(
            user_id=user_id,
            accounting_scheme=scheme.value,
            period_start=period_start,
            period_end=period_end,
        ):
            try:
                result = self._calculate(user_id, period, scheme, options)
            except Exception:
                logger.exception("vat_return_calculation_failed")
                return ServiceResult.fail({"general": CALCULATION_FAILED})

            logger.info("vat_return_calculated", extra={
                "box5": result.boxes.box5,
                "is_valid": result.validation.is_valid,
            })
            return ServiceResult.ok(result)

    def calculate_and_prepare_vat_return(
        self,
        user_id: int,
        period_start: str,
        period_end: str,
        options: CalculationOptions | None = None,
    ) -> ServiceResult[PreparedVatReturn]:
        """Calculate and shape the boxes as a draft return ready to save."""
        calculated = self.calculate_vat_return(user_id, period_start, period_end, options)
        if not calculated.success:
            return ServiceResult.fail(calculated.errors)

        result = calculated.data
        return ServiceResult.ok(
            PreparedVatReturn(
                user_id=user_id,
                period=result.period,
                boxes=result.boxes,
                accounting_scheme=result.accounting_scheme,
                calculation_details=result,
            )
        )

    def get_vat_return_preview(
        self,
        user_id: int,
        period_start: str,
        period_end: str,
        options: CalculationOptions | None = None,
        language: Language | str | None = None,
    ) -> ServiceResult[VatReturnPreview]:
        """
        Calculation with breakdown, a localized summary and pound values.

        ``language`` defaults to the configured language; unsupported codes
        fall back to English.
        """
        options = dataclasses.replace(
            options or CalculationOptions(), include_breakdown=True
        )
        calculated = self.calculate_vat_return(user_id, period_start, period_end, options)
        if not calculated.success:
            return ServiceResult.fail(calculated.errors)

        result = calculated.data
        lang = Language.resolve(language or self._config.default_language)
        return ServiceResult.ok(
            VatReturnPreview(
                calculation=result,
                formatted_summary=self._calculator.summarize(result.boxes, lang),
                submission_format=self._calculator.format_for_submission(result.boxes),
            )
        )

    # =========================================================================
    # Comparison
    # =========================================================================

    def compare_vat_periods(
        self,
        user_id: int,
        current: PeriodRequest | Mapping[str, object] | None,
        previous: PeriodRequest | Mapping[str, object] | None,
        options: CalculationOptions | None = None,
    ) -> ServiceResult[PeriodComparison]:
        """
        Calculate two periods with the same options and diff each box.

        Each period is a ``PeriodRequest`` or a mapping with ``start`` and
        ``end`` keys.  Anything else is reported as missing bounds.  Errors
        are nested under ``current`` or ``previous``; the current period's
        errors win when both fail.
        """
        current_result = self.calculate_vat_return(
            user_id, *_period_bounds(current), options
        )
        previous_result = self.calculate_vat_return(
            user_id, *_period_bounds(previous), options
        )

        if not current_result.success:
            return ServiceResult.fail({"current": current_result.errors})
        if not previous_result.success:
            return ServiceResult.fail({"previous": previous_result.errors})

        current_boxes = current_result.data.boxes
        previous_boxes = previous_result.data.boxes
        changes = {}
        for key in BOX_KEYS:
            now = current_boxes.get(key)
            before = previous_boxes.get(key)
            changes[key] = BoxChange(
                current=now,
                previous=before,
                change=now - before,
                percent_change=percent_change(now, before),
            )

        return ServiceResult.ok(
            PeriodComparison(
                current_period=current_result.data,
                previous_period=previous_result.data,
                changes=changes,
            )
        )

    # =========================================================================
    # Estimation
    # =========================================================================

    def estimate_vat_liability(
        self,
        user_id: int,
        periods_to_average: int | None = None,
        options: CalculationOptions | None = None,
    ) -> ServiceResult[LiabilityEstimate]:
        """
        Average each box over the most recent filed returns.

        Only returns in an estimation status (submitted or accepted by
        default) count.  No history is a successful, non-estimated result.
        With ``options.round_to_pounds`` the averages are rounded to whole
        pounds; the other options do not apply to saved returns.
        """
        options = options or CalculationOptions()
        if periods_to_average is None:
            periods_to_average = self._config.default_periods_to_average

        errors = {}
        if not _is_positive_int(user_id):
            errors["user_id"] = "Valid userId is required"
        if not _is_positive_int(periods_to_average):
            errors["periods_to_average"] = "periodsToAverage must be a positive integer"
        if errors:
            return ServiceResult.fail(errors)

        with LogContext.bind(user_id=user_id):
            try:
                returns = tuple(self._store.fetch_recent_returns(
                    user_id,
                    self._config.estimation_statuses,
                    periods_to_average,
                ))
            except Exception:
                logger.exception("vat_liability_estimation_failed")
                return ServiceResult.fail({"general": ESTIMATION_FAILED})

            if not returns:
                logger.info("vat_liability_no_history")
                return ServiceResult.ok(
                    LiabilityEstimate(estimated=False, message=NO_HISTORY_MESSAGE)
                )

            count = len(returns)
            means = {
                key: hmrc_round(Decimal(sum(r.get(key) for r in returns)) / count)
                for key in BOX_KEYS
            }
            if options.round_to_pounds:
                means = {key: round_to_pounds(v) for key, v in means.items()}
            averages = BoxSet.from_mapping(means)
            logger.info("vat_liability_estimated", extra={
                "periods_used": count,
                "estimated_net_vat": averages.box5,
            })
            return ServiceResult.ok(
                LiabilityEstimate(estimated=True, periods_used=count, averages=averages)
            )

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_vat_statistics(
        self,
        user_id: int,
        year: int,
    ) -> ServiceResult[VatStatistics]:
        """
        Calendar-year totals of countable income, expenses, invoices and
        filed returns.
        """
        errors = {}
        if not _is_positive_int(user_id):
            errors["user_id"] = "Valid userId is required"
        if not _is_positive_int(year) or year > date.max.year:
            errors["year"] = "Valid year is required"
        if errors:
            return ServiceResult.fail(errors)

        period = Period.calendar_year(year)
        with LogContext.bind(
            user_id=user_id,
            period_start=period.start.isoformat(),
            period_end=period.end.isoformat(),
        ):
            try:
                statistics = self._statistics(user_id, year, period)
            except Exception:
                logger.exception("vat_statistics_failed")
                return ServiceResult.fail({"general": STATISTICS_FAILED})

            logger.info("vat_statistics_calculated", extra={
                "year": year,
                "estimated_net_vat": statistics.summary.estimated_net_vat,
            })
            return ServiceResult.ok(statistics)

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve_scheme(self, scheme: AccountingScheme | str | None) -> AccountingScheme:
        if scheme is None:
            return self._config.default_accounting_scheme
        return AccountingScheme.parse(scheme)

    def _fetch_records(
        self,
        user_id: int,
        period: Period,
        scheme: AccountingScheme,
    ) -> VatRecordSet:
        income = tuple(self._store.fetch_income_transactions(
            user_id, period.start, period.end, scheme,
        ))
        expenses = tuple(self._store.fetch_expense_transactions(
            user_id, period.start, period.end, scheme,
        ))
        # Cash scheme recognizes settled income only, so invoices are never read.
        invoices: tuple[FinancialRecord, ...] = ()
        if scheme == AccountingScheme.STANDARD:
            invoices = tuple(self._store.fetch_sales_invoices(
                user_id, period.start, period.end,
            ))
        return VatRecordSet(
            income_transactions=income,
            expense_transactions=expenses,
            sales_invoices=invoices,
        )

    def _calculate(
        self,
        user_id: int,
        period: Period,
        scheme: AccountingScheme,
        options: CalculationOptions,
    ) -> CalculationResult:
        records = self._fetch_records(user_id, period, scheme)
        boxes = self._calculator.calculate(
            records,
            BoxCalculationOptions(
                accounting_scheme=scheme,
                round_to_pounds=options.round_to_pounds,
            ),
        )
        validation = self._calculator.validate(boxes)

        breakdown = None
        if options.include_breakdown:
            breakdown = CalculationBreakdown(
                income=IncomeBreakdown(
                    transaction_count=len(records.income_transactions),
                    invoice_count=len(records.sales_invoices),
                    total_vat=boxes.box1,
                    total_net=boxes.box6,
                ),
                expense=ExpenseBreakdown(
                    transaction_count=len(records.expense_transactions),
                    total_vat=boxes.box4,
                    total_net=boxes.box7,
                ),
            )

        return CalculationResult(
            period=period,
            accounting_scheme=scheme,
            boxes=boxes,
            summary=VatSummary.from_boxes(boxes),
            validation=validation,
            breakdown=breakdown,
        )

    def _statistics(self, user_id: int, year: int, period: Period) -> VatStatistics:
        standard = AccountingScheme.STANDARD
        income = tuple(self._store.fetch_income_transactions(
            user_id, period.start, period.end, standard,
        ))
        expenses = tuple(self._store.fetch_expense_transactions(
            user_id, period.start, period.end, standard,
        ))
        invoices = tuple(self._store.fetch_sales_invoices(
            user_id, period.start, period.end,
        ))
        returns = tuple(self._store.fetch_returns_between(
            user_id, self._config.estimation_statuses, period.start, period.end,
        ))

        income_totals = _category_totals(income)
        expense_totals = _category_totals(expenses)
        return_totals = ReturnTotals(
            count=len(returns),
            total_vat_due=sum(r.box1 for r in returns),
            total_vat_reclaimed=sum(r.box4 for r in returns),
            net_vat=sum(r.box5 for r in returns),
        )
        return VatStatistics(
            year=year,
            income=income_totals,
            expenses=expense_totals,
            invoices=_category_totals(invoices),
            vat_returns=return_totals,
            summary=StatisticsSummary(
                output_vat=income_totals.total_vat,
                input_vat=expense_totals.total_vat,
                estimated_net_vat=income_totals.total_vat - expense_totals.total_vat,
            ),
        )


__all__ = [
    "CALCULATION_FAILED",
    "ESTIMATION_FAILED",
    "NO_HISTORY_MESSAGE",
    "STATISTICS_FAILED",
    "VatCalculationService",
    "percent_change",
    "validate_against_saved",
    "validate_calculation_params",
]
