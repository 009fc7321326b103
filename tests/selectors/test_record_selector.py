"""
Tests for SqlRecordStore.

Verifies the scheme-specific status filters, inclusive period bounds,
per-user isolation, ordering, and conversion of database errors.
"""

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from vat_config.schema import VatConfig
from vat_kernel.domain.values import AccountingScheme, BoxSet, RecordKind, RecordSource
from vat_kernel.exceptions import RecordStoreError
from vat_kernel.models import TransactionType
from vat_kernel.selectors import SqlRecordStore

USER = 42
Q1_START = date(2024, 1, 1)
Q1_END = date(2024, 3, 31)


class TestTransactionFilters:

    @pytest.fixture(autouse=True)
    def _rows(self, add_transaction):
        add_transaction(TransactionType.INCOME, date(2024, 1, 1), 1000, 200, status="pending")
        add_transaction(TransactionType.INCOME, date(2024, 2, 1), 2000, 400, status="cleared")
        add_transaction(TransactionType.INCOME, date(2024, 3, 31), 3000, 600, status="reconciled")
        add_transaction(TransactionType.INCOME, date(2024, 3, 15), 9000, 1800, status="void")
        add_transaction(TransactionType.INCOME, date(2024, 4, 1), 5000, 1000, status="cleared")
        add_transaction(TransactionType.EXPENSE, date(2024, 2, 2), 7000, 1400, status="pending")
        add_transaction(TransactionType.EXPENSE, date(2024, 2, 3), 8000, 1600, status="cleared")
        add_transaction(TransactionType.TRANSFER, date(2024, 2, 4), 100000, 0, status="cleared")
        add_transaction(TransactionType.INCOME, date(2024, 2, 1), 4444, 888, status="cleared", user_id=99)

    def test_standard_excludes_void_only(self, session):
        store = SqlRecordStore(session)

        records = store.fetch_income_transactions(USER, Q1_START, Q1_END, AccountingScheme.STANDARD)

        assert [r.net_amount for r in records] == [1000, 2000, 3000]
        assert all(r.kind == RecordKind.INCOME for r in records)
        assert all(r.source == RecordSource.TRANSACTION for r in records)

    def test_cash_requires_settlement(self, session):
        store = SqlRecordStore(session)

        records = store.fetch_income_transactions(USER, Q1_START, Q1_END, AccountingScheme.CASH)

        assert [r.status for r in records] == ["cleared", "reconciled"]

    def test_expenses_never_include_transfers(self, session):
        store = SqlRecordStore(session)

        standard = store.fetch_expense_transactions(USER, Q1_START, Q1_END, "standard")
        cash = store.fetch_expense_transactions(USER, Q1_START, Q1_END, "cash")

        assert [r.net_amount for r in standard] == [7000, 8000]
        assert [r.net_amount for r in cash] == [8000]
        assert all(r.kind == RecordKind.EXPENSE for r in standard)

    def test_bounds_inclusive(self, session):
        store = SqlRecordStore(session)

        records = store.fetch_income_transactions(
            USER, date(2024, 3, 31), date(2024, 3, 31), AccountingScheme.STANDARD,
        )

        assert [r.record_date for r in records] == [date(2024, 3, 31)]

    def test_other_users_invisible(self, session):
        store = SqlRecordStore(session)

        records = store.fetch_income_transactions(99, Q1_START, Q1_END, AccountingScheme.CASH)

        assert [r.net_amount for r in records] == [4444]

    def test_configured_settlement_statuses(self, session):
        config = VatConfig(confirmed_settlement_statuses=("reconciled",))
        store = SqlRecordStore(session, config)

        records = store.fetch_income_transactions(USER, Q1_START, Q1_END, AccountingScheme.CASH)

        assert [r.status for r in records] == ["reconciled"]

    def test_gross_amount_carried(self, session):
        store = SqlRecordStore(session)

        record = store.fetch_income_transactions(USER, Q1_START, Q1_END, "cash")[0]

        assert record.total_amount == 2400
        assert record.id is not None


class TestInvoiceFilters:

    def test_excludes_void_and_cancelled(self, session, add_invoice):
        add_invoice(date(2024, 1, 10), 20000, 4000, status="pending")
        add_invoice(date(2024, 1, 11), 1000, 200, status="void")
        add_invoice(date(2024, 1, 12), 1000, 200, status="cancelled")
        add_invoice(date(2024, 1, 9), 500, 100, status="paid")
        add_invoice(date(2024, 4, 1), 700, 140, status="paid")
        store = SqlRecordStore(session)

        records = store.fetch_sales_invoices(USER, Q1_START, Q1_END)

        assert [r.net_amount for r in records] == [500, 20000]
        assert all(r.source == RecordSource.INVOICE for r in records)
        assert all(r.kind == RecordKind.INCOME for r in records)


class TestSavedReturns:

    @pytest.fixture(autouse=True)
    def _rows(self, add_vat_return):
        add_vat_return(date(2023, 1, 1), date(2023, 3, 31), "submitted", box1=100, box5=100)
        add_vat_return(date(2023, 4, 1), date(2023, 6, 30), "accepted", box1=200, box5=200)
        add_vat_return(date(2023, 7, 1), date(2023, 9, 30), "draft", box1=300, box5=300)
        add_vat_return(date(2023, 10, 1), date(2023, 12, 31), "rejected", box1=400, box5=400)
        add_vat_return(date(2023, 12, 1), date(2024, 2, 29), "submitted", box1=500, box5=500)

    def test_recent_returns_newest_first(self, session):
        store = SqlRecordStore(session)

        returns = store.fetch_recent_returns(USER, ("submitted", "accepted"), 4)

        assert [r.box1 for r in returns] == [500, 200, 100]
        assert all(isinstance(r, BoxSet) and r.metadata is None for r in returns)

    def test_recent_returns_limit(self, session):
        store = SqlRecordStore(session)

        returns = store.fetch_recent_returns(USER, ("submitted", "accepted"), 1)

        assert [r.box1 for r in returns] == [500]

    def test_returns_between_require_whole_period(self, session):
        store = SqlRecordStore(session)

        returns = store.fetch_returns_between(
            USER, ("submitted", "accepted"), date(2023, 1, 1), date(2023, 12, 31),
        )

        assert [r.box1 for r in returns] == [100, 200]


class TestErrors:

    def test_database_error_wrapped(self, session):
        store = SqlRecordStore(session)

        with patch.object(
            session, "execute", side_effect=OperationalError("SELECT", {}, Exception("locked")),
        ):
            with pytest.raises(RecordStoreError) as exc_info:
                store.fetch_sales_invoices(USER, Q1_START, Q1_END)

        assert exc_info.value.operation == "fetch_sales_invoices"
        assert exc_info.value.user_id == USER
        assert exc_info.value.code == "RECORD_STORE_ERROR"

    def test_unknown_scheme(self, session):
        from vat_kernel.exceptions import UnknownAccountingSchemeError

        with pytest.raises(UnknownAccountingSchemeError):
            SqlRecordStore(session).fetch_income_transactions(USER, Q1_START, Q1_END, "accrual")
