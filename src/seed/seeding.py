"""Idempotent seeding of default collections.

This module runs once during startup, before consumers read the store.
A collection is seeded only while it is empty, so repeated runs never
duplicate or reset records.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from core.config import LedgerConfig
from core.constants import (
    CHANNELS_COLLECTION,
    PARTNERS_COLLECTION,
    RECORD_ID_FIELD,
    USERS_COLLECTION,
)
from core.errors import LedgerSeedError
from core.logging_config import get_logger
from core.types import DuplicateIdentity, Record
from seed.default_records import SAMPLE_CHANNELS, SAMPLE_PARTNERS, default_users
from store.record_store import RecordStore

_LOGGER = get_logger(__name__)


def seed_collection(
    store: RecordStore,
    collection: str,
    records: Sequence[Mapping[str, Any]],
) -> int:
    """Populate an empty collection with records.

    Records carrying an ``id`` keep it; others receive a fresh one.

    Args:
        store: Target record store.
        collection: Collection name.
        records: Seed records.

    Returns:
        Number of records written; 0 when the collection already had data.

    Raises:
        LedgerSeedError: If the seed records repeat an id.
    """
    if store.get_all(collection):
        _LOGGER.debug("collection_seed_skipped", collection=collection)
        return 0
    _check_unique_ids(collection, records)
    for record in records:
        if record.get(RECORD_ID_FIELD):
            result = store.insert_with_id(collection, record)
        else:
            result = store.create(collection, record)
        if isinstance(result, DuplicateIdentity):
            raise LedgerSeedError(
                f"Seeding '{collection}' hit existing id '{result.record_id}'. "
                "Clear the collection or fix the seed records."
            )
    _LOGGER.info("collection_seeded", collection=collection, count=len(records))
    return len(records)


def default_seed_sets(
    seeded_at: datetime,
    include_samples: bool = False,
) -> dict[str, list[Record]]:
    """Return built-in seed records per collection.

    Args:
        seeded_at: Timestamp recorded as the default users' last login.
        include_samples: Also return sample partners and channels.

    Returns:
        Collection name to seed records.
    """
    seed_sets = {USERS_COLLECTION: default_users(seeded_at.isoformat())}
    if include_samples:
        seed_sets[PARTNERS_COLLECTION] = [dict(record) for record in SAMPLE_PARTNERS]
        seed_sets[CHANNELS_COLLECTION] = [dict(record) for record in SAMPLE_CHANNELS]
    return seed_sets


def load_seed_file(seed_path: Path) -> dict[str, list[Record]]:
    """Load seed records from a YAML file.

    The file maps collection names to lists of record mappings.

    Args:
        seed_path: YAML file path.

    Returns:
        Collection name to seed records.

    Raises:
        LedgerSeedError: If the file is missing, unparsable, or malformed.
    """
    seed_file = seed_path.expanduser().resolve()
    if not seed_file.exists():
        raise LedgerSeedError(
            f"Seed file does not exist at {seed_file}. Fix LEDGER_SEED_FILE or unset it."
        )
    try:
        payload = yaml.safe_load(seed_file.read_text(encoding="utf-8"))
    except OSError as error:
        raise LedgerSeedError(
            f"Failed to read seed file at {seed_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise LedgerSeedError(
            f"Failed to parse YAML seed file at {seed_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise LedgerSeedError(
            f"Invalid seed file at {seed_file}: expected a mapping of collection names "
            f"to record lists, got {type(payload).__name__}."
        )
    seed_sets: dict[str, list[Record]] = {}
    for collection, records in payload.items():
        if not isinstance(collection, str) or not isinstance(records, list):
            raise LedgerSeedError(
                f"Invalid seed file at {seed_file}: entry {collection!r} must map a "
                "collection name to a list of records."
            )
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise LedgerSeedError(
                    f"Invalid seed file at {seed_file}: {collection}[{index}] is not a mapping."
                )
        seed_sets[collection] = [_normalize_seed_record(record) for record in records]
    return seed_sets


def seed_defaults(
    store: RecordStore,
    config: LedgerConfig,
    seeded_at: datetime | None = None,
    include_samples: bool = False,
) -> dict[str, int]:
    """Run the startup seeding step.

    Seed file entries replace built-in seed records for the same collection.

    Args:
        store: Target record store.
        config: Runtime configuration with optional seed file.
        seeded_at: Optional seeding timestamp; defaults to now in UTC.
        include_samples: Also seed sample partners and channels.

    Returns:
        Collection name to number of records written.
    """
    seed_sets = default_seed_sets(
        seeded_at or datetime.now(timezone.utc),
        include_samples=include_samples,
    )
    if config.seed_file is not None:
        seed_sets.update(load_seed_file(config.seed_file))
    return {
        collection: seed_collection(store, collection, records)
        for collection, records in seed_sets.items()
    }


def _check_unique_ids(collection: str, records: Sequence[Mapping[str, Any]]) -> None:
    seen: set[object] = set()
    for record in records:
        record_id = record.get(RECORD_ID_FIELD)
        if not record_id:
            continue
        if record_id in seen:
            raise LedgerSeedError(
                f"Seed records for '{collection}' repeat id '{record_id}'. "
                "Give every seed record a distinct id."
            )
        seen.add(record_id)


def _normalize_seed_record(record: dict[Any, Any]) -> Record:
    """Normalize YAML scalars so seed records match stored payloads."""
    normalized = {
        str(key): value.isoformat() if isinstance(value, date) else value
        for key, value in record.items()
    }
    if normalized.get(RECORD_ID_FIELD) is not None:
        normalized[RECORD_ID_FIELD] = str(normalized[RECORD_ID_FIELD])
    return normalized
