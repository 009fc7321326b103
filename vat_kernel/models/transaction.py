"""
ORM model for ledger transactions (``vat_kernel.models.transaction``).

Amounts are integer pence.  ``amount`` is the net value, ``vat_amount`` the
VAT charged on it and ``total_amount`` the gross value as recorded.
Transfers are stored alongside income and expenses but never contribute to a
VAT return.
"""

from datetime import date
from enum import Enum

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from vat_kernel.db.base import TrackedBase
from vat_kernel.domain.values import FinancialRecord, RecordKind, RecordSource


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionModel(TrackedBase):
    """
    A recorded income, expense or transfer.

    Statuses: ``pending``, ``cleared``, ``reconciled``, ``void``.
    """

    __tablename__ = "transactions"

    user_id: Mapped[int] = mapped_column(nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    amount: Mapped[int] = mapped_column(nullable=False, default=0)
    vat_amount: Mapped[int] = mapped_column(nullable=False, default=0)
    total_amount: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        Index("idx_transactions_user_type_date", "user_id", "transaction_type", "transaction_date"),
        Index("idx_transactions_status", "status"),
    )

    def to_record(self) -> FinancialRecord:
        """Normalize to a ``FinancialRecord``; transfers are rejected."""
        if self.transaction_type == TransactionType.TRANSFER.value:
            raise ValueError(f"Transfer {self.id} has no VAT direction")
        return FinancialRecord(
            kind=RecordKind(self.transaction_type),
            status=self.status,
            record_date=self.transaction_date,
            net_amount=self.amount,
            vat_amount=self.vat_amount,
            source=RecordSource.TRANSACTION,
            gross_amount=self.total_amount,
            id=self.id,
        )

    def __repr__(self) -> str:
        return (
            f"<TransactionModel {self.transaction_type} {self.transaction_date} "
            f"net={self.amount} vat={self.vat_amount} [{self.status}]>"
        )
