"""
Typed exception hierarchy for the VAT kernel.

Every error has a typed class and a machine-readable ``code`` class
attribute, and carries its context as structured attributes rather than
only inside the message string.

    VatKernelError (base)
    |
    +-- PeriodError
    |   +-- InvalidPeriodError
    |
    +-- SchemeError
    |   +-- UnknownAccountingSchemeError
    |
    +-- InvalidBoxValueError
    |
    +-- RecordStoreError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Period          | INVALID_PERIOD              | Malformed date or start after end
Scheme          | UNKNOWN_ACCOUNTING_SCHEME   | Scheme is neither standard nor cash
Box             | INVALID_BOX_VALUE           | Box value is not a whole number of pence
Store           | RECORD_STORE_ERROR          | Underlying database read failed

These exceptions never cross the calculation service boundary: the service
converts them into field-keyed errors or a ``general`` error result.
"""


class VatKernelError(Exception):
    """
    Base exception for all VAT kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "VAT_KERNEL_ERROR"


# Period-related exceptions


class PeriodError(VatKernelError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodError(PeriodError):
    """Period bounds are malformed or out of order."""

    code: str = "INVALID_PERIOD"

    def __init__(self, period_start: str, period_end: str, reason: str):
        self.period_start = period_start
        self.period_end = period_end
        self.reason = reason
        super().__init__(
            f"Invalid period {period_start}..{period_end}: {reason}"
        )


# Accounting scheme exceptions


class SchemeError(VatKernelError):
    """Base exception for accounting scheme errors."""

    code: str = "SCHEME_ERROR"


class UnknownAccountingSchemeError(SchemeError):
    """Requested accounting scheme is not supported."""

    code: str = "UNKNOWN_ACCOUNTING_SCHEME"

    def __init__(self, scheme: object, allowed: tuple[str, ...]):
        self.scheme = str(scheme)
        self.allowed = allowed
        super().__init__(
            f"Invalid accounting scheme. Must be one of: {', '.join(allowed)}"
        )


# Box value exceptions


class InvalidBoxValueError(VatKernelError):
    """A box value is not a whole number of pence."""

    code: str = "INVALID_BOX_VALUE"

    def __init__(self, box: str, value: object):
        self.box = box
        self.value = value
        super().__init__(f"{box} must be a whole number of pence, got {value!r}")


# Record store exceptions


class RecordStoreError(VatKernelError):
    """Reading financial records from the backing store failed."""

    code: str = "RECORD_STORE_ERROR"

    def __init__(self, operation: str, user_id: int, detail: str):
        self.operation = operation
        self.user_id = user_id
        self.detail = detail
        super().__init__(f"Record store {operation} failed for user {user_id}: {detail}")
