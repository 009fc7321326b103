"""ORM models for the records the VAT engine reads."""

from vat_kernel.models.invoice import SalesInvoiceModel
from vat_kernel.models.transaction import TransactionModel, TransactionType
from vat_kernel.models.vat_return import VatReturnModel, VatReturnStatus

__all__ = [
    "SalesInvoiceModel",
    "TransactionModel",
    "TransactionType",
    "VatReturnModel",
    "VatReturnStatus",
]
