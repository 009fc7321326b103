"""
Tests for the VAT domain value objects.
"""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from vat_kernel.domain.values import (
    BOX_KEYS,
    AccountingScheme,
    BoxSet,
    BoxSetMetadata,
    FinancialRecord,
    Period,
    RecordKind,
    box_value,
)
from vat_kernel.exceptions import (
    InvalidBoxValueError,
    InvalidPeriodError,
    UnknownAccountingSchemeError,
)


class TestAccountingScheme:

    def test_values(self):
        assert AccountingScheme.values() == ("standard", "cash")

    def test_parse(self):
        assert AccountingScheme.parse("cash") is AccountingScheme.CASH
        assert AccountingScheme.parse(AccountingScheme.STANDARD) is AccountingScheme.STANDARD

    def test_parse_unknown(self):
        with pytest.raises(UnknownAccountingSchemeError) as exc_info:
            AccountingScheme.parse("flat-rate")

        assert exc_info.value.scheme == "flat-rate"
        assert exc_info.value.code == "UNKNOWN_ACCOUNTING_SCHEME"
        assert str(exc_info.value) == "Invalid accounting scheme. Must be one of: standard, cash"


class TestPeriod:

    def test_parse_date(self):
        assert Period.parse_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize(
        "value", ["2023-02-29", "2024-2-1", "20240201", "2024-02-01 ", None, 20240201],
    )
    def test_parse_date_rejects(self, value):
        assert Period.parse_date(value) is None

    def test_start_after_end(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            Period(date(2024, 3, 31), date(2024, 1, 1))

        assert exc_info.value.reason == "periodEnd must be on or after periodStart"
        assert exc_info.value.code == "INVALID_PERIOD"

    def test_from_strings(self):
        period = Period.from_strings("2024-01-01", "2024-03-31")

        assert period.start == date(2024, 1, 1)
        assert period.end == date(2024, 3, 31)
        assert str(period) == "2024-01-01..2024-03-31"

    def test_from_strings_malformed(self):
        with pytest.raises(InvalidPeriodError):
            Period.from_strings("2024-01-01", "31/03/2024")

    def test_calendar_year_and_contains(self):
        year = Period.calendar_year(2024)

        assert year.contains(date(2024, 1, 1))
        assert year.contains(date(2024, 12, 31))
        assert not year.contains(date(2025, 1, 1))


class TestFinancialRecord:

    def test_total_defaults_to_net_plus_vat(self):
        record = FinancialRecord(RecordKind.INCOME, "cleared", date(2024, 1, 1), 1000, 200)

        assert record.total_amount == 1200

    def test_stored_gross_wins(self):
        record = FinancialRecord(
            RecordKind.INCOME, "cleared", date(2024, 1, 1), 1000, 200, gross_amount=1201,
        )

        assert record.total_amount == 1201


class TestBoxSet:

    def test_defaults_zero(self):
        assert all(v == 0 for v in BoxSet().values().values())

    def test_from_mapping_fills_missing_and_none(self):
        boxes = BoxSet.from_mapping({"box1": 100, "box4": None})

        assert boxes.box1 == 100
        assert boxes.box4 == 0
        assert list(boxes.values()) == list(BOX_KEYS)

    def test_values_read_only(self):
        with pytest.raises(TypeError):
            BoxSet().values()["box1"] = 5

    def test_get_unknown_box(self):
        with pytest.raises(KeyError):
            BoxSet().get("box10")

    def test_metadata_not_part_of_equality(self):
        with_meta = BoxSet(
            box1=1,
            metadata=BoxSetMetadata(AccountingScheme.CASH, datetime(2024, 1, 1, tzinfo=UTC)),
        )

        assert with_meta == BoxSet(box1=1)


class TestBoxValue:

    @pytest.mark.parametrize(
        "value,expected",
        [(None, 0), (1200, 1200), ("1200", 1200), (" -50 ", -50), (Decimal("7.0"), 7), (3.0, 3)],
    )
    def test_accepted(self, value, expected):
        assert box_value("box1", value) == expected

    @pytest.mark.parametrize("value", ["abc", "", 10.5, True, float("nan"), [1]])
    def test_rejected(self, value):
        with pytest.raises(InvalidBoxValueError) as exc_info:
            box_value("box3", value)

        assert exc_info.value.box == "box3"
        assert exc_info.value.code == "INVALID_BOX_VALUE"

    def test_from_mapping_raises_on_bad_value(self):
        with pytest.raises(InvalidBoxValueError, match="box2 must be a whole number of pence"):
            BoxSet.from_mapping({"box2": "twelve"})
