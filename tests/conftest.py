"""
Pytest fixtures for the VAT return engine test suite.

Provides:
- Structured logging configured once per session, with captured output
- In-memory SQLite sessions with the record-store tables created
- A deterministic clock
- Row builders for transactions, invoices and saved returns

Environment Variables:
- DATABASE_URL: SQLAlchemy URL for the record-store tests.  Defaults to an
  in-memory SQLite database, so no server is required.
"""

import json
import logging
import os
from datetime import date, datetime, UTC
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from vat_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from vat_kernel.domain.clock import DeterministicClock
from vat_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from vat_kernel.models import (
    SalesInvoiceModel,
    TransactionModel,
    TransactionType,
    VatReturnModel,
)

DEFAULT_DATABASE_URL = "sqlite:///:memory:"

TEST_USER_ID = 42


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture vat_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.calculate_vat_return(...)
            logs = captured_logs()
            assert any(r["message"] == "vat_return_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("vat_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture
def db_engine():
    """Fresh engine and tables per test; dropped and disposed afterwards."""
    engine = init_engine_from_url(get_database_url())
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    db_session = get_session()
    yield db_session
    db_session.rollback()
    db_session.close()


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 4, 1, 9, 30, tzinfo=UTC))


# =============================================================================
# Row builders
# =============================================================================


@pytest.fixture
def add_transaction(session):
    """Insert a transaction row; amounts in pence."""

    def _add(
        transaction_type: TransactionType | str,
        transaction_date: date,
        amount: int,
        vat_amount: int,
        status: str = "cleared",
        user_id: int = TEST_USER_ID,
    ) -> TransactionModel:
        if isinstance(transaction_type, TransactionType):
            transaction_type = transaction_type.value
        row = TransactionModel(
            user_id=user_id,
            transaction_type=transaction_type,
            status=status,
            transaction_date=transaction_date,
            description=f"{transaction_type} {transaction_date.isoformat()}",
            amount=amount,
            vat_amount=vat_amount,
            total_amount=amount + vat_amount,
        )
        session.add(row)
        session.flush()
        return row

    return _add


@pytest.fixture
def add_invoice(session):
    """Insert a sales invoice row; amounts in pence."""
    counter = {"n": 0}

    def _add(
        issue_date: date,
        subtotal: int,
        vat_amount: int,
        status: str = "pending",
        user_id: int = TEST_USER_ID,
    ) -> SalesInvoiceModel:
        counter["n"] += 1
        row = SalesInvoiceModel(
            user_id=user_id,
            invoice_number=f"INV-{counter['n']:04d}",
            status=status,
            issue_date=issue_date,
            customer_name="Acme Ltd",
            subtotal=subtotal,
            vat_amount=vat_amount,
            total_amount=subtotal + vat_amount,
        )
        session.add(row)
        session.flush()
        return row

    return _add


@pytest.fixture
def add_vat_return(session):
    """Insert a saved VAT return row with explicit box values."""

    def _add(
        period_start: date,
        period_end: date,
        status: str = "submitted",
        user_id: int = TEST_USER_ID,
        **boxes: int,
    ) -> VatReturnModel:
        row = VatReturnModel(
            user_id=user_id,
            period_start=period_start,
            period_end=period_end,
            status=status,
            **boxes,
        )
        session.add(row)
        session.flush()
        return row

    return _add
