"""
End-to-end tests: VatCalculationService over SqlRecordStore and SQLite.

Rows go in through the ORM; results come out of the service.  Nothing is
mocked between the two.
"""

from datetime import date

import pytest

from vat_kernel.db import get_engine, get_session, session_scope
from vat_kernel.domain.values import AccountingScheme, BoxSet, Period
from vat_kernel.models import TransactionType, VatReturnModel, VatReturnStatus
from vat_kernel.selectors import SqlRecordStore
from vat_modules.vat_return import (
    CalculationOptions,
    PeriodRequest,
    VatCalculationService,
)

USER = 42


@pytest.fixture
def service(session, deterministic_clock):
    return VatCalculationService(SqlRecordStore(session), clock=deterministic_clock)


class TestQuarterCalculation:

    @pytest.fixture(autouse=True)
    def _quarter(self, add_transaction, add_invoice):
        add_invoice(date(2024, 2, 1), 20000, 4000, status="pending")
        add_invoice(date(2024, 2, 2), 9000, 1800, status="void")
        add_transaction(TransactionType.EXPENSE, date(2024, 2, 10), 25000, 5000, status="cleared")
        add_transaction(TransactionType.INCOME, date(2024, 3, 1), 10000, 2000, status="cleared")
        add_transaction(TransactionType.INCOME, date(2024, 3, 2), 5000, 1000, status="reconciled")
        add_transaction(TransactionType.INCOME, date(2024, 3, 3), 8000, 1600, status="pending")

    def test_standard_scheme(self, service, deterministic_clock):
        result = service.calculate_vat_return(USER, "2024-01-01", "2024-03-31")

        boxes = result.data.boxes
        assert boxes.box1 == 4000
        assert boxes.box3 == 4000
        assert boxes.box4 == 5000
        assert boxes.box5 == -1000
        assert boxes.box6 == 20000
        assert boxes.box7 == 25000
        assert boxes.metadata.calculated_at == deterministic_clock.now_utc()
        assert result.data.validation.is_valid

    def test_cash_scheme(self, service):
        result = service.calculate_vat_return(
            USER, "2024-01-01", "2024-03-31",
            CalculationOptions(accounting_scheme=AccountingScheme.CASH, include_breakdown=True),
        )

        boxes = result.data.boxes
        assert boxes.box1 == 3000
        assert boxes.box6 == 15000
        assert boxes.box5 == -2000
        assert result.data.breakdown.income.transaction_count == 2
        assert result.data.breakdown.income.invoice_count == 0

    def test_empty_period(self, service):
        result = service.calculate_vat_return(USER, "2022-01-01", "2022-03-31")

        assert result.success
        assert set(result.data.boxes.values().values()) == {0}

    def test_prepared_draft_persists(self, service, session):
        prepared = service.calculate_and_prepare_vat_return(
            USER, "2024-01-01", "2024-03-31",
        ).data

        session.add(VatReturnModel(**prepared.as_row()))
        session.flush()

        saved = session.query(VatReturnModel).one()
        assert saved.status == VatReturnStatus.DRAFT.value
        assert saved.box5 == -1000
        assert service.validate_against_saved(saved.to_box_set(), prepared.boxes).is_valid

    def test_saved_return_drift_detected(self, service, session, add_transaction):
        prepared = service.calculate_and_prepare_vat_return(
            USER, "2024-01-01", "2024-03-31",
        ).data
        session.add(
            VatReturnModel.from_box_set(
                USER, prepared.period, prepared.boxes, VatReturnStatus.SUBMITTED,
            )
        )
        session.flush()

        # A late expense changes the recalculated figures.
        add_transaction(TransactionType.EXPENSE, date(2024, 3, 30), 1000, 200)
        recalculated = service.calculate_vat_return(USER, "2024-01-01", "2024-03-31").data

        saved = session.query(VatReturnModel).one().to_box_set()
        comparison = service.validate_against_saved(saved, recalculated.boxes)
        assert comparison.boxes == ["box4", "box5", "box7"]
        assert comparison.discrepancies[1].difference == -200


class TestComparisonAndHistory:

    def test_compare_quarters(self, service, add_invoice):
        add_invoice(date(2024, 2, 1), 50000, 10000)
        add_invoice(date(2024, 5, 1), 75000, 15000)

        result = service.compare_vat_periods(
            USER,
            PeriodRequest("2024-04-01", "2024-06-30"),
            PeriodRequest("2024-01-01", "2024-03-31"),
        )

        change = result.data.changes["box1"]
        assert change.change == 5000
        assert change.percent_change == 50

    def test_estimate_from_saved_returns(self, service, add_vat_return):
        add_vat_return(date(2023, 1, 1), date(2023, 3, 31), "submitted", box1=1000, box3=1000, box5=1000)
        add_vat_return(date(2023, 4, 1), date(2023, 6, 30), "accepted", box1=3000, box3=3000, box5=3000)
        add_vat_return(date(2023, 7, 1), date(2023, 9, 30), "draft", box1=90000, box3=90000, box5=90000)

        estimate = service.estimate_vat_liability(USER).data

        assert estimate.estimated
        assert estimate.periods_used == 2
        assert estimate.estimated_net_vat == 2000

    def test_estimate_without_history(self, service):
        estimate = service.estimate_vat_liability(USER).data

        assert estimate.estimated is False
        assert estimate.averages is None

    def test_yearly_statistics(self, service, add_transaction, add_invoice, add_vat_return):
        add_transaction(TransactionType.INCOME, date(2024, 1, 5), 10000, 2000, status="pending")
        add_transaction(TransactionType.INCOME, date(2024, 1, 6), 10000, 2000, status="void")
        add_transaction(TransactionType.EXPENSE, date(2024, 7, 1), 3000, 600)
        add_transaction(TransactionType.EXPENSE, date(2025, 1, 1), 3000, 600)
        add_invoice(date(2024, 11, 30), 20000, 4000, status="paid")
        add_vat_return(
            date(2024, 1, 1), date(2024, 3, 31), "accepted",
            box1=2000, box3=2000, box4=600, box5=1400,
        )

        stats = service.get_vat_statistics(USER, 2024).data

        assert stats.income.count == 1
        assert stats.income.total_gross == 12000
        assert stats.expenses.count == 1
        assert stats.invoices.total_vat == 4000
        assert stats.vat_returns.count == 1
        assert stats.vat_returns.net_vat == 1400
        assert stats.summary.estimated_net_vat == 1400


class TestVatReturnModel:

    def test_round_trip_keeps_boxes(self, session):
        boxes = BoxSet(box1=4000, box3=4000, box4=5000, box5=-1000, box6=20000, box7=25000)
        period = Period(date(2024, 1, 1), date(2024, 3, 31))
        session.add(VatReturnModel.from_box_set(USER, period, boxes, accounting_scheme="cash"))
        session.flush()

        row = session.query(VatReturnModel).one()
        assert row.to_box_set() == boxes
        assert row.accounting_scheme == "cash"
        assert row.status == "draft"


class TestSessionScope:
    """Persisting prepared drafts through the transactional scope."""

    def test_engine_is_shared(self, db_engine):
        assert get_engine() is db_engine

    def test_prepared_draft_committed(self, db_engine, deterministic_clock):
        reader = get_session()
        service = VatCalculationService(SqlRecordStore(reader), clock=deterministic_clock)
        prepared = service.calculate_and_prepare_vat_return(
            USER, "2024-01-01", "2024-03-31",
        ).data
        reader.close()

        with session_scope() as session:
            session.add(VatReturnModel(**prepared.as_row()))

        with session_scope() as session:
            saved = session.query(VatReturnModel).one()
            assert saved.status == VatReturnStatus.DRAFT.value
            assert saved.period_end == date(2024, 3, 31)
            assert saved.to_box_set() == prepared.boxes

    def test_rolled_back_on_error(self, db_engine):
        period = Period(date(2024, 1, 1), date(2024, 3, 31))

        with pytest.raises(RuntimeError, match="abort"):
            with session_scope() as session:
                session.add(VatReturnModel.from_box_set(USER, period, BoxSet(box1=100)))
                session.flush()
                raise RuntimeError("abort")

        with session_scope() as session:
            assert session.query(VatReturnModel).count() == 0
