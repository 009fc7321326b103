"""
VAT Configuration Schema.

Defines the structure and defaults for VAT return settings.  Values are
loaded from YAML at runtime (see ``vat_config.loader``) or taken from the
defaults below.
"""

from dataclasses import dataclass
from typing import Any, Self

from vat_kernel.domain.values import (
    VOID_INVOICE_STATUSES,
    VOID_TRANSACTION_STATUSES,
    AccountingScheme,
)
from vat_kernel.logging_config import get_logger

logger = get_logger("config.schema")

VALID_LANGUAGES = {"en", "tr"}

_STATUS_SET_FIELDS = (
    "confirmed_settlement_statuses",
    "excluded_transaction_statuses",
    "excluded_invoice_statuses",
    "estimation_statuses",
)


@dataclass(frozen=True)
class VatConfig:
    """
    Configuration schema for VAT return calculation.

    Field defaults match HMRC practice for a UK business:

        config = VatConfig(
            default_accounting_scheme=AccountingScheme.CASH,
            **load_from_file("vat_settings"),
        )
    """

    default_accounting_scheme: AccountingScheme = AccountingScheme.STANDARD
    default_language: str = "en"
    default_periods_to_average: int = 4

    confirmed_settlement_statuses: tuple[str, ...] = ("cleared", "reconciled")
    excluded_transaction_statuses: tuple[str, ...] = ("void",)
    excluded_invoice_statuses: tuple[str, ...] = ("void", "cancelled")
    estimation_statuses: tuple[str, ...] = ("submitted", "accepted")

    def __post_init__(self):
        if not isinstance(self.default_accounting_scheme, AccountingScheme):
            raise ValueError(
                f"default_accounting_scheme must be one of {set(AccountingScheme.values())}, "
                f"got '{self.default_accounting_scheme}'"
            )

        if self.default_language not in VALID_LANGUAGES:
            raise ValueError(
                f"default_language must be one of {VALID_LANGUAGES}, "
                f"got '{self.default_language}'"
            )

        if (
            isinstance(self.default_periods_to_average, bool)
            or not isinstance(self.default_periods_to_average, int)
            or self.default_periods_to_average < 1
        ):
            raise ValueError("default_periods_to_average must be a positive integer")

        for name in _STATUS_SET_FIELDS:
            statuses = getattr(self, name)
            if not statuses:
                raise ValueError(f"{name} cannot be empty")
            if any(not s or not s.strip() for s in statuses):
                raise ValueError(f"{name} cannot contain blank statuses")

        for name, required in (
            ("excluded_transaction_statuses", VOID_TRANSACTION_STATUSES),
            ("excluded_invoice_statuses", VOID_INVOICE_STATUSES),
        ):
            missing = required - set(getattr(self, name))
            if missing:
                raise ValueError(f"{name} must include {sorted(missing)}")

        # A settled transaction can never also be an excluded one.
        overlap = set(self.confirmed_settlement_statuses) & set(
            self.excluded_transaction_statuses
        )
        if overlap:
            logger.warning(
                "vat_config_status_overlap",
                extra={"overlapping_statuses": sorted(overlap)},
            )
            raise ValueError(
                f"confirmed_settlement_statuses overlaps excluded_transaction_statuses: {overlap}"
            )

        logger.info(
            "vat_config_initialized",
            extra={
                "default_accounting_scheme": self.default_accounting_scheme.value,
                "default_language": self.default_language,
                "default_periods_to_average": self.default_periods_to_average,
                "confirmed_settlement_statuses": list(self.confirmed_settlement_statuses),
                "estimation_statuses": list(self.estimation_statuses),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with HMRC-standard defaults."""
        logger.info("vat_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary (e.g., parsed YAML)."""
        logger.info(
            "vat_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        if "default_accounting_scheme" in values:
            scheme = values["default_accounting_scheme"]
            try:
                values["default_accounting_scheme"] = AccountingScheme(scheme)
            except ValueError:
                raise ValueError(
                    f"default_accounting_scheme must be one of {set(AccountingScheme.values())}, "
                    f"got '{scheme}'"
                ) from None
        for name in _STATUS_SET_FIELDS:
            if name in values:
                values[name] = tuple(values[name] or ())
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_accounting_scheme": self.default_accounting_scheme.value,
            "default_language": self.default_language,
            "default_periods_to_average": self.default_periods_to_average,
            **{name: list(getattr(self, name)) for name in _STATUS_SET_FIELDS},
        }
