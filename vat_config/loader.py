"""
Configuration Loader (``vat_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``VatConfig``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``TypeError`` / ``ValueError`` from
  ``VatConfig``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from vat_config.schema import VatConfig
from vat_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def load_vat_config(path: Path | str | None = None) -> VatConfig:
    """Load ``VatConfig`` from ``path`` (default: the bundled settings)."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(config_path)
    config = VatConfig.from_dict(data)
    logger.info(
        "vat_config_loaded",
        extra={
            "path": str(config_path),
            "checksum": compute_checksum(config.to_dict()),
        },
    )
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
