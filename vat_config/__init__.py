"""
VAT engine configuration.

``VatConfig`` holds the status sets and defaults the calculation service and
the record store consult.  ``load_vat_config`` reads one from YAML.
"""

from vat_config.loader import DEFAULT_CONFIG_PATH, compute_checksum, load_vat_config
from vat_config.schema import VatConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "VatConfig",
    "compute_checksum",
    "load_vat_config",
]
