"""Runtime configuration model for Ledger.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re

from core.constants import (
    COLLECTION_NAME_PATTERN,
    DEFAULT_COLLECTIONS,
    DEFAULT_DATA_ROOT,
    DEFAULT_LOG_LEVEL,
    STORAGE_FAILURE_DEGRADE,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_STORAGE_FAILURE_MODES,
)
from core.errors import LedgerConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class LedgerConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory holding collection files and metadata.
        collections: Collections initialized as empty on first start.
        storage_failure_mode: ``degrade`` to continue in memory after a medium
            fault, ``raise`` to surface it as LedgerStorageError.
        track_timestamps: Stamp createdAt/updatedAt on mutations.
        seed_file: Optional YAML file overriding default seed records.
        log_level: Minimum structured log level.
    """

    data_root: Path
    collections: tuple[str, ...] = DEFAULT_COLLECTIONS
    storage_failure_mode: str = STORAGE_FAILURE_DEGRADE
    track_timestamps: bool = False
    seed_file: Path | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            LedgerConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("LEDGER_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        seed_file_value = os.getenv("LEDGER_SEED_FILE")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            collections=_parse_collections(os.getenv("LEDGER_COLLECTIONS")),
            storage_failure_mode=_parse_storage_failure_mode(
                os.getenv("LEDGER_STORAGE_FAILURE_MODE", STORAGE_FAILURE_DEGRADE)
            ),
            track_timestamps=_parse_bool(
                "LEDGER_TRACK_TIMESTAMPS", os.getenv("LEDGER_TRACK_TIMESTAMPS", "")
            ),
            seed_file=Path(seed_file_value).expanduser().resolve() if seed_file_value else None,
            log_level=_parse_log_level(os.getenv("LEDGER_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )


def _parse_collections(raw_value: str | None) -> tuple[str, ...]:
    """Parse the comma-separated collection list.

    Args:
        raw_value: Raw string from environment, or None when unset.

    Returns:
        Ordered unique collection names.

    Raises:
        LedgerConfigError: If a name is not a valid collection name.
    """
    if raw_value is None or not raw_value.strip():
        return DEFAULT_COLLECTIONS
    names: list[str] = []
    for item in raw_value.split(","):
        name = item.strip()
        if not name:
            continue
        if not re.fullmatch(COLLECTION_NAME_PATTERN, name):
            raise LedgerConfigError(
                f"Invalid LEDGER_COLLECTIONS entry '{name}': "
                "use letters, digits, '_' or '-' only."
            )
        if name not in names:
            names.append(name)
    return tuple(names)


def _parse_storage_failure_mode(raw_value: str) -> str:
    mode = raw_value.strip().lower()
    if mode not in SUPPORTED_STORAGE_FAILURE_MODES:
        raise LedgerConfigError(
            "Invalid LEDGER_STORAGE_FAILURE_MODE value: "
            f"expected one of {', '.join(SUPPORTED_STORAGE_FAILURE_MODES)}, got '{raw_value}'."
        )
    return mode


def _parse_bool(variable: str, raw_value: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise LedgerConfigError(
        f"Invalid {variable} value: expected true/false, got '{raw_value}'."
    )


def _parse_log_level(raw_value: str) -> str:
    level = raw_value.strip().upper()
    if level not in SUPPORTED_LOG_LEVELS:
        raise LedgerConfigError(
            "Invalid LEDGER_LOG_LEVEL value: "
            f"expected one of {', '.join(SUPPORTED_LOG_LEVELS)}, got '{raw_value}'."
        )
    return level
