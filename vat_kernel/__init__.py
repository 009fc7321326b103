"""
VAT Kernel

Shared foundation for the VAT return engine:
- Structured JSON logging with request-scoped context
- Typed exceptions with machine-readable codes
- Immutable domain values (pence amounts, periods, box sets)
- Read-only SQLAlchemy access to recorded transactions, invoices and returns
"""

__version__ = "0.1.0"
