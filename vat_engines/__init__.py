"""
Pure calculation engines.

No I/O, no database access, no knowledge of how records were selected.
"""

from vat_engines.box_calculator import (
    BoxCalculationOptions,
    BoxSummaryLine,
    BoxValidationError,
    BoxValidationResult,
    CalculationSummary,
    VatBoxCalculator,
    calculate_all_boxes,
    calculate_box1,
    calculate_box2,
    calculate_box3,
    calculate_box4,
    calculate_box5,
    calculate_box6,
    calculate_box7,
    calculate_box8,
    calculate_box9,
    create_calculation_summary,
    format_for_submission,
    hmrc_round,
    round_to_pounds,
    validate_box_calculations,
)
from vat_engines.localization import BOX_DESCRIPTIONS, Language

__all__ = [
    "BOX_DESCRIPTIONS",
    "BoxCalculationOptions",
    "BoxSummaryLine",
    "BoxValidationError",
    "BoxValidationResult",
    "CalculationSummary",
    "Language",
    "VatBoxCalculator",
    "calculate_all_boxes",
    "calculate_box1",
    "calculate_box2",
    "calculate_box3",
    "calculate_box4",
    "calculate_box5",
    "calculate_box6",
    "calculate_box7",
    "calculate_box8",
    "calculate_box9",
    "create_calculation_summary",
    "format_for_submission",
    "hmrc_round",
    "round_to_pounds",
    "validate_box_calculations",
]
