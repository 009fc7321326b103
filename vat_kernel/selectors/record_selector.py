"""
Module: vat_kernel.selectors.record_selector
Responsibility: Read-only SQLAlchemy implementation of the record store the
    VAT calculation service consumes: period-filtered income and expense
    transactions, sales invoices, and saved VAT returns.
Architecture position: Kernel > Selectors.  May import from models/,
    selectors/base.py, domain/ and vat_config.  MUST NOT import from
    vat_engines or vat_modules.

Invariants enforced:
    - Standard scheme: every in-range record whose status is not excluded.
    - Cash scheme: only in-range transactions whose status is a confirmed
      settlement status.  Invoices are never a cash-scheme source.
    - Period bounds are inclusive on both ends.
    - Results are ordered by record date ascending (returns: period end
      descending).

Failure modes:
    - Any SQLAlchemyError is re-raised as RecordStoreError carrying the
      operation name and user id.

Non-goals:
    - The three period fetches run as independent statements.  They are not
      wrapped in a snapshot, so a concurrent write between them is visible
      to the later fetches only.
"""

from datetime import date
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vat_config.schema import VatConfig
from vat_kernel.domain.values import AccountingScheme, BoxSet, FinancialRecord
from vat_kernel.exceptions import RecordStoreError
from vat_kernel.logging_config import get_logger
from vat_kernel.models.invoice import SalesInvoiceModel
from vat_kernel.models.transaction import TransactionModel, TransactionType
from vat_kernel.models.vat_return import VatReturnModel
from vat_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.records")


class SqlRecordStore(BaseSelector[TransactionModel]):
    """
    Record store backed by the ``transactions``, ``invoices`` and
    ``vat_returns`` tables.

    Contract:
        Every method returns frozen domain values (``FinancialRecord`` or
        ``BoxSet``) and never mutates the session.
    """

    def __init__(self, session: Session, config: VatConfig | None = None):
        super().__init__(session)
        self._config = config or VatConfig()

    # =========================================================================
    # Transactions and invoices
    # =========================================================================

    def fetch_income_transactions(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
        scheme: AccountingScheme,
    ) -> list[FinancialRecord]:
        return self._fetch_transactions(
            TransactionType.INCOME, user_id, period_start, period_end, scheme,
        )

    def fetch_expense_transactions(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
        scheme: AccountingScheme,
    ) -> list[FinancialRecord]:
        return self._fetch_transactions(
            TransactionType.EXPENSE, user_id, period_start, period_end, scheme,
        )

    def fetch_sales_invoices(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
    ) -> list[FinancialRecord]:
        stmt = (
            select(SalesInvoiceModel)
            .where(
                SalesInvoiceModel.user_id == user_id,
                SalesInvoiceModel.status.not_in(self._config.excluded_invoice_statuses),
                SalesInvoiceModel.issue_date >= period_start,
                SalesInvoiceModel.issue_date <= period_end,
            )
            .order_by(SalesInvoiceModel.issue_date.asc())
        )
        rows = self._execute("fetch_sales_invoices", user_id, stmt)
        records = [row.to_record() for row in rows]
        logger.debug(
            "sales_invoices_fetched",
            extra={
                "user_id": user_id,
                "period_start": period_start,
                "period_end": period_end,
                "record_count": len(records),
            },
        )
        return records

    def _fetch_transactions(
        self,
        transaction_type: TransactionType,
        user_id: int,
        period_start: date,
        period_end: date,
        scheme: AccountingScheme,
    ) -> list[FinancialRecord]:
        scheme = AccountingScheme.parse(scheme)
        if scheme == AccountingScheme.CASH:
            status_filter = TransactionModel.status.in_(
                self._config.confirmed_settlement_statuses
            )
        else:
            status_filter = TransactionModel.status.not_in(
                self._config.excluded_transaction_statuses
            )

        stmt = (
            select(TransactionModel)
            .where(
                TransactionModel.user_id == user_id,
                TransactionModel.transaction_type == transaction_type.value,
                status_filter,
                TransactionModel.transaction_date >= period_start,
                TransactionModel.transaction_date <= period_end,
            )
            .order_by(TransactionModel.transaction_date.asc())
        )
        operation = f"fetch_{transaction_type.value}_transactions"
        rows = self._execute(operation, user_id, stmt)
        records = [row.to_record() for row in rows]
        logger.debug(
            "transactions_fetched",
            extra={
                "user_id": user_id,
                "transaction_type": transaction_type.value,
                "accounting_scheme": scheme.value,
                "period_start": period_start,
                "period_end": period_end,
                "record_count": len(records),
            },
        )
        return records

    # =========================================================================
    # Saved returns
    # =========================================================================

    def fetch_recent_returns(
        self,
        user_id: int,
        statuses: Sequence[str],
        limit: int,
    ) -> list[BoxSet]:
        stmt = (
            select(VatReturnModel)
            .where(
                VatReturnModel.user_id == user_id,
                VatReturnModel.status.in_(tuple(statuses)),
            )
            .order_by(VatReturnModel.period_end.desc())
            .limit(limit)
        )
        rows = self._execute("fetch_recent_returns", user_id, stmt)
        return [row.to_box_set() for row in rows]

    def fetch_returns_between(
        self,
        user_id: int,
        statuses: Sequence[str],
        period_start: date,
        period_end: date,
    ) -> list[BoxSet]:
        """Saved returns whose whole period lies inside ``[period_start, period_end]``."""
        stmt = (
            select(VatReturnModel)
            .where(
                VatReturnModel.user_id == user_id,
                VatReturnModel.status.in_(tuple(statuses)),
                VatReturnModel.period_start >= period_start,
                VatReturnModel.period_end <= period_end,
            )
            .order_by(VatReturnModel.period_end.asc())
        )
        rows = self._execute("fetch_returns_between", user_id, stmt)
        return [row.to_box_set() for row in rows]

    # =========================================================================
    # Internals
    # =========================================================================

    def _execute(self, operation: str, user_id: int, stmt) -> Sequence:
        try:
            return self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            logger.error(
                "record_store_query_failed",
                extra={"operation": operation, "user_id": user_id},
            )
            raise RecordStoreError(operation, user_id, str(exc)) from exc
