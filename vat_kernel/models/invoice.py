"""
ORM model for sales invoices (``vat_kernel.models.invoice``).

Under the standard accounting scheme the invoice ``issue_date`` decides the
VAT period, and ``subtotal``/``vat_amount`` feed boxes 6 and 1.
"""

from datetime import date

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from vat_kernel.db.base import TrackedBase
from vat_kernel.domain.values import FinancialRecord, RecordKind, RecordSource


class SalesInvoiceModel(TrackedBase):
    """
    An issued sales invoice.

    Statuses: ``draft``, ``pending``, ``paid``, ``overdue``, ``cancelled``,
    ``refunded``, ``void``.
    """

    __tablename__ = "invoices"

    user_id: Mapped[int] = mapped_column(nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subtotal: Mapped[int] = mapped_column(nullable=False, default=0)
    vat_amount: Mapped[int] = mapped_column(nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        Index("idx_invoices_user_issue_date", "user_id", "issue_date"),
        Index("idx_invoices_status", "status"),
    )

    def to_record(self) -> FinancialRecord:
        return FinancialRecord(
            kind=RecordKind.INCOME,
            status=self.status,
            record_date=self.issue_date,
            net_amount=self.subtotal,
            vat_amount=self.vat_amount,
            source=RecordSource.INVOICE,
            gross_amount=self.total_amount,
            id=self.id,
        )

    def __repr__(self) -> str:
        return f"<SalesInvoiceModel {self.invoice_number} {self.issue_date} [{self.status}]>"
