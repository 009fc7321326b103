"""
VAT Box Calculator - Compute the nine HMRC VAT return boxes.

Pure functions with no I/O.  Records arrive already filtered to the VAT
period (and, under the cash scheme, to settled transactions); this module
only decides which of them count towards each box and how to round.

Boxes:
    box1  VAT due on sales and other outputs
    box2  VAT due on EU acquisitions (always 0 post-Brexit)
    box3  Total VAT due (box1 + box2)
    box4  VAT reclaimed on purchases and other inputs
    box5  Net VAT to pay (positive) or reclaim (negative): box3 - box4
    box6  Total sales excluding VAT
    box7  Total purchases excluding VAT
    box8  Supplies to EU excluding VAT (always 0 post-Brexit)
    box9  Acquisitions from EU excluding VAT (always 0 post-Brexit)

All values are integer pence.  ``round_to_pounds`` is applied only when the
caller asks for submission-grade figures.

Usage:
    from vat_engines.box_calculator import VatBoxCalculator, BoxCalculationOptions
    from vat_kernel.domain.values import VatRecordSet

    calculator = VatBoxCalculator()
    boxes = calculator.calculate(
        VatRecordSet(expense_transactions=(...,), sales_invoices=(...,)),
        BoxCalculationOptions(accounting_scheme=AccountingScheme.STANDARD),
    )
    print(boxes.box5)  # negative when a refund is due
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import Sequence

from vat_engines.localization import (
    BOX_DESCRIPTIONS,
    LEGACY_BOX_NAMES,
    VALIDATION_MESSAGES,
    Language,
)
from vat_kernel.domain.clock import Clock, SystemClock
from vat_kernel.domain.values import (
    BOX_KEYS,
    MINOR_UNITS_PER_MAJOR,
    VOID_INVOICE_STATUSES,
    VOID_TRANSACTION_STATUSES,
    AccountingScheme,
    BoxSet,
    BoxSetMetadata,
    FinancialRecord,
    RecordKind,
    VatRecordSet,
)
from vat_kernel.logging_config import get_logger

logger = get_logger("engines.box_calculator")

_HALF = Decimal("0.5")
_MINOR_UNITS = Decimal(MINOR_UNITS_PER_MAJOR)

NON_NEGATIVE_BOXES = ("box1", "box2", "box3", "box4", "box6", "box7", "box8", "box9")
LEGACY_EU_BOXES = ("box2", "box8", "box9")


# =============================================================================
# Rounding
# =============================================================================


def _as_decimal(value: object) -> Decimal | None:
    # bool is an int subclass but never a money value
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    number = Decimal(value)
    if not number.is_finite():
        return None
    return number


def _exact_precision(number: Decimal) -> int:
    # Enough digits for number + 0.5 (and number / 100) to be exact.
    _, digits, exponent = number.as_tuple()
    return len(digits) + max(exponent, 0) + 4


def hmrc_round(value: object) -> int:
    """
    Round to the nearest whole penny, halves rounding up.

    Halves move toward positive infinity for negative values too
    (-100.5 -> -100).  Non-numeric input, NaN and infinities give 0.
    Integers come back unchanged at any magnitude.
    """
    number = _as_decimal(value)
    if number is None:
        return 0
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _exact_precision(number))
        return int((number + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def round_to_pounds(value: object) -> int:
    """Round pence to the nearest 100 (whole pound), result still in pence."""
    number = _as_decimal(value)
    if number is None:
        return 0
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, _exact_precision(number))
        pounds = (number / _MINOR_UNITS + _HALF).to_integral_value(rounding=ROUND_FLOOR)
    return int(pounds) * MINOR_UNITS_PER_MAJOR


# =============================================================================
# Record selection
# =============================================================================


def _countable_transactions(
    records: Sequence[FinancialRecord] | None,
    kind: RecordKind,
) -> list[FinancialRecord]:
    return [
        r for r in records or ()
        if r.kind == kind and r.status not in VOID_TRANSACTION_STATUSES
    ]


def _output_records(
    income_records: Sequence[FinancialRecord] | None,
    invoices: Sequence[FinancialRecord] | None,
    scheme: AccountingScheme | str,
) -> list[FinancialRecord]:
    """
    Records that make up the outputs side (boxes 1 and 6).

    Cash scheme counts settled income only.  Standard scheme counts issued
    invoices, falling back to income transactions when no invoices were
    supplied at all.
    """
    if AccountingScheme.parse(scheme) == AccountingScheme.CASH:
        return _countable_transactions(income_records, RecordKind.INCOME)
    if invoices:
        return [i for i in invoices if i.status not in VOID_INVOICE_STATUSES]
    return _countable_transactions(income_records, RecordKind.INCOME)


# =============================================================================
# Individual boxes
# =============================================================================


def calculate_box1(
    income_records: Sequence[FinancialRecord] | None,
    invoices: Sequence[FinancialRecord] | None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    """VAT due on sales and other outputs."""
    records = _output_records(income_records, invoices, scheme)
    return hmrc_round(sum(r.vat_amount for r in records))


def calculate_box2(
    records: Sequence[FinancialRecord] | None = None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    """VAT due on EU acquisitions; kept for form compatibility."""
    return 0


def calculate_box3(box1: int, box2: int) -> int:
    return hmrc_round(box1 + box2)


def calculate_box4(
    expense_records: Sequence[FinancialRecord] | None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    """
    VAT reclaimed on purchases and other inputs.

    The scheme does not change the predicate: the settlement-vs-issuance
    choice was already made when the records were fetched.
    """
    records = _countable_transactions(expense_records, RecordKind.EXPENSE)
    return hmrc_round(sum(r.vat_amount for r in records))


def calculate_box5(box3: int, box4: int) -> int:
    return hmrc_round(box3 - box4)


def calculate_box6(
    income_records: Sequence[FinancialRecord] | None,
    invoices: Sequence[FinancialRecord] | None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    """Total sales excluding VAT, same sources as box 1."""
    records = _output_records(income_records, invoices, scheme)
    return hmrc_round(sum(r.net_amount for r in records))


def calculate_box7(
    expense_records: Sequence[FinancialRecord] | None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    """Total purchases excluding VAT, same sources as box 4."""
    records = _countable_transactions(expense_records, RecordKind.EXPENSE)
    return hmrc_round(sum(r.net_amount for r in records))


def calculate_box8(
    records: Sequence[FinancialRecord] | None = None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    return 0


def calculate_box9(
    records: Sequence[FinancialRecord] | None = None,
    scheme: AccountingScheme | str = AccountingScheme.STANDARD,
) -> int:
    return 0


# =============================================================================
# All boxes
# =============================================================================


@dataclass(frozen=True)
class BoxCalculationOptions:
    accounting_scheme: AccountingScheme = AccountingScheme.STANDARD
    round_to_pounds: bool = False


def calculate_all_boxes(
    records: VatRecordSet,
    options: BoxCalculationOptions | None = None,
    clock: Clock | None = None,
) -> BoxSet:
    """
    Calculate all nine boxes in dependency order (1 -> 3 -> 5).

    Args:
        records: Period-filtered income, expense and invoice records.
        options: Scheme and pound rounding; defaults to standard, pence.
        clock: Source of the ``calculated_at`` stamp.

    Returns:
        BoxSet with metadata describing how it was produced.
    """
    options = options or BoxCalculationOptions()
    clock = clock or SystemClock()
    scheme = AccountingScheme.parse(options.accounting_scheme)

    income = records.income_transactions
    expenses = records.expense_transactions
    invoices = records.sales_invoices

    box1 = calculate_box1(income, invoices, scheme)
    box2 = calculate_box2(income, scheme)
    box3 = calculate_box3(box1, box2)
    box4 = calculate_box4(expenses, scheme)
    box5 = calculate_box5(box3, box4)
    box6 = calculate_box6(income, invoices, scheme)
    box7 = calculate_box7(expenses, scheme)
    box8 = calculate_box8(income, scheme)
    box9 = calculate_box9(expenses, scheme)

    values = [box1, box2, box3, box4, box5, box6, box7, box8, box9]
    if options.round_to_pounds:
        values = [round_to_pounds(v) for v in values]

    metadata = BoxSetMetadata(
        accounting_scheme=scheme,
        calculated_at=clock.now_utc(),
        income_transaction_count=len(income),
        expense_transaction_count=len(expenses),
        sales_invoice_count=len(invoices),
        rounded_to_pounds=options.round_to_pounds,
    )
    return BoxSet(*values, metadata=metadata)


# =============================================================================
# Validation
# =============================================================================


@dataclass(frozen=True)
class BoxValidationError:
    """One failed box invariant."""

    box: str
    code: str
    actual: int
    expected: int | None = None

    def message(self, language: Language | str = Language.EN) -> str:
        lang = Language.resolve(language)
        template = VALIDATION_MESSAGES[self.code][lang]
        legacy = LEGACY_BOX_NAMES.get(self.box)
        return template.format(
            box_number=self.box.removeprefix("box"),
            label=self.box.upper(),
            expected=self.expected,
            actual=self.actual,
            legacy_name=legacy[lang] if legacy else "",
        )

    def __str__(self) -> str:
        return self.message()


@dataclass(frozen=True)
class BoxValidationResult:
    is_valid: bool
    errors: tuple[BoxValidationError, ...] = ()

    def messages(self, language: Language | str = Language.EN) -> list[str]:
        return [error.message(language) for error in self.errors]


def validate_box_calculations(boxes: BoxSet) -> BoxValidationResult:
    """
    Check the cross-box invariants of a box set.

    Reports every failure rather than stopping at the first, so callers can
    still show the (inconsistent) figures alongside what is wrong with them.
    """
    errors: list[BoxValidationError] = []

    expected_box3 = boxes.box1 + boxes.box2
    if boxes.box3 != expected_box3:
        errors.append(BoxValidationError("box3", "BOX3_MISMATCH", boxes.box3, expected_box3))

    expected_box5 = boxes.box3 - boxes.box4
    if boxes.box5 != expected_box5:
        errors.append(BoxValidationError("box5", "BOX5_MISMATCH", boxes.box5, expected_box5))

    for key in NON_NEGATIVE_BOXES:
        value = boxes.get(key)
        if value < 0:
            errors.append(BoxValidationError(key, "NEGATIVE_VALUE", value))

    for key in LEGACY_EU_BOXES:
        value = boxes.get(key)
        if value != 0:
            errors.append(BoxValidationError(key, "LEGACY_BOX_NON_ZERO", value, 0))

    return BoxValidationResult(is_valid=not errors, errors=tuple(errors))


# =============================================================================
# Presentation
# =============================================================================


@dataclass(frozen=True)
class BoxSummaryLine:
    box: int
    key: str
    value: int
    value_in_pounds: Decimal
    name: str
    description: str


@dataclass(frozen=True)
class CalculationSummary:
    boxes: tuple[BoxSummaryLine, ...]
    vat_due: int
    vat_reclaimed: int
    net_vat: int
    is_refund_due: bool
    metadata: BoxSetMetadata | None = None


def to_pounds(value_in_pence: int) -> Decimal:
    return Decimal(value_in_pence) / _MINOR_UNITS


def create_calculation_summary(
    boxes: BoxSet,
    language: Language | str = Language.EN,
) -> CalculationSummary:
    """Localized per-box summary; unsupported languages fall back to English."""
    lang = Language.resolve(language)
    lines = []
    for number, key in enumerate(BOX_KEYS, start=1):
        value = boxes.get(key)
        description = BOX_DESCRIPTIONS[key]
        lines.append(
            BoxSummaryLine(
                box=number,
                key=key,
                value=value,
                value_in_pounds=to_pounds(value),
                name=description.name[lang],
                description=description.description[lang],
            )
        )
    return CalculationSummary(
        boxes=tuple(lines),
        vat_due=boxes.box3,
        vat_reclaimed=boxes.box4,
        net_vat=boxes.box5,
        is_refund_due=boxes.box5 < 0,
        metadata=boxes.metadata,
    )


def format_for_submission(boxes: BoxSet) -> dict[str, Decimal]:
    """Box values in pounds, as the authority-facing payload expects."""
    return {key: to_pounds(value) for key, value in boxes.values().items()}


# =============================================================================
# Calculator
# =============================================================================


class VatBoxCalculator:
    """
    Calculate VAT return boxes.

    Pure - no I/O, no database access.  The only collaborator is the clock
    that stamps ``calculated_at``; two calls with the same records produce
    equal box sets.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def calculate(
        self,
        records: VatRecordSet,
        options: BoxCalculationOptions | None = None,
    ) -> BoxSet:
        options = options or BoxCalculationOptions()
        t0 = time.monotonic()
        logger.info("vat_box_calculation_started", extra={
            "accounting_scheme": AccountingScheme.parse(options.accounting_scheme).value,
            "round_to_pounds": options.round_to_pounds,
            "income_transaction_count": len(records.income_transactions),
            "expense_transaction_count": len(records.expense_transactions),
            "sales_invoice_count": len(records.sales_invoices),
        })

        boxes = calculate_all_boxes(records, options, self._clock)

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("vat_box_calculation_completed", extra={
            "box3": boxes.box3,
            "box4": boxes.box4,
            "box5": boxes.box5,
            "box6": boxes.box6,
            "box7": boxes.box7,
            "is_refund_due": boxes.box5 < 0,
            "duration_ms": duration_ms,
        })
        return boxes

    def validate(self, boxes: BoxSet) -> BoxValidationResult:
        result = validate_box_calculations(boxes)
        if not result.is_valid:
            logger.warning("vat_box_validation_failed", extra={
                "error_codes": [e.code for e in result.errors],
                "boxes": [e.box for e in result.errors],
            })
        return result

    def summarize(
        self,
        boxes: BoxSet,
        language: Language | str = Language.EN,
    ) -> CalculationSummary:
        return create_calculation_summary(boxes, language)

    def format_for_submission(self, boxes: BoxSet) -> dict[str, Decimal]:
        return format_for_submission(boxes)
