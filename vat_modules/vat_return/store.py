"""
Record store contract consumed by the VAT calculation service.

The service never queries storage directly; it asks an object satisfying
``RecordStore`` for already-filtered records.  ``vat_kernel.selectors.
SqlRecordStore`` is the SQLAlchemy implementation.

Filtering contract an implementation must honour:
    - Standard scheme: records in range whose status is not excluded
      (``void`` transactions; ``void``/``cancelled`` invoices).
    - Cash scheme: transactions in range whose status is a confirmed
      settlement status (``cleared``, ``reconciled``).
    - Period bounds inclusive; results ordered by date ascending.
    - Saved returns ordered by period end descending.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence, runtime_checkable

from vat_kernel.domain.values import AccountingScheme, BoxSet, FinancialRecord


@runtime_checkable
class RecordStore(Protocol):
    def fetch_income_transactions(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
        scheme: AccountingScheme,
    ) -> Sequence[FinancialRecord]: ...

    def fetch_expense_transactions(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
        scheme: AccountingScheme,
    ) -> Sequence[FinancialRecord]: ...

    def fetch_sales_invoices(
        self,
        user_id: int,
        period_start: date,
        period_end: date,
    ) -> Sequence[FinancialRecord]: ...

    def fetch_recent_returns(
        self,
        user_id: int,
        statuses: Sequence[str],
        limit: int,
    ) -> Sequence[BoxSet]: ...

    def fetch_returns_between(
        self,
        user_id: int,
        statuses: Sequence[str],
        period_start: date,
        period_end: date,
    ) -> Sequence[BoxSet]: ...
