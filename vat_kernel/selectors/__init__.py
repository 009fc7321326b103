"""Read-only selectors over the record-store tables."""

from vat_kernel.selectors.base import BaseSelector
from vat_kernel.selectors.record_selector import SqlRecordStore

__all__ = ["BaseSelector", "SqlRecordStore"]
