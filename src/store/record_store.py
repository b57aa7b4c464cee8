"""Record store over named collections.

This module owns identity assignment, CRUD, and durable persistence for
every collection in the data root. Each mutation rewrites the whole
collection file before the call returns.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime, timezone
import json
from pathlib import Path
import re
import secrets
import string
from typing import Any, Callable, Iterable, Mapping
from uuid import uuid4

from core.config import LedgerConfig
from core.constants import (
    COLLECTION_NAME_PATTERN,
    COLLECTIONS_DIR_NAME,
    CREATED_AT_FIELD,
    DEVICE_ID_LENGTH,
    DEVICE_ID_PREFIX,
    MAX_ID_ATTEMPTS,
    METADATA_FILE_NAME,
    RECORD_ID_FIELD,
    RECORD_ID_RANDOM_LENGTH,
    SCHEMA_VERSION,
    STORAGE_FAILURE_RAISE,
    UPDATED_AT_FIELD,
)
from core.errors import LedgerBackupError, LedgerCollectionError, LedgerStorageError
from core.logging_config import get_logger
from core.types import (
    DuplicateIdentity,
    NotFound,
    Record,
    StorageFailure,
    StoreMetadata,
)
from store.collection_io import (
    collection_file_path,
    list_persisted_collections,
    metadata_from_payload,
    metadata_to_payload,
    read_collection_file,
    read_metadata_file,
    write_collection_file,
    write_metadata_file,
)

_LOGGER = get_logger(__name__)
_BASE36_ALPHABET = string.digits + string.ascii_lowercase
_MISSING = object()

Listener = Callable[[], None]


class RecordStore:
    """Durable CRUD store for named record collections.

    The store is constructed once per process and shared by every consumer.
    Records are plain mappings with a store-assigned ``id`` field.
    """

    def __init__(
        self,
        config: LedgerConfig,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the store and its data root.

        Args:
            config: Runtime configuration.
            clock: Optional UTC clock used for timestamps.
            id_factory: Optional record id generator.
        """
        self._config = config
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _build_record_id
        self._collections_dir = config.data_root / COLLECTIONS_DIR_NAME
        self._metadata_path = config.data_root / METADATA_FILE_NAME
        self._cache: dict[str, list[Record]] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._degraded = False
        self._pending_warning: StorageFailure | None = None
        self._metadata = self._initialize()

    @property
    def metadata(self) -> StoreMetadata:
        """Return store metadata."""
        return self._metadata

    @property
    def degraded(self) -> bool:
        """Return whether the store has fallen back to in-memory operation."""
        return self._degraded

    def pop_storage_warning(self) -> StorageFailure | None:
        """Return the pending storage failure once, then None."""
        warning = self._pending_warning
        self._pending_warning = None
        return warning

    def get_all(self, collection: str) -> list[Record]:
        """Return every record of a collection in insertion order.

        Args:
            collection: Collection name.

        Returns:
            Copies of the stored records; empty for a never-written collection.
        """
        return deepcopy(self._load(collection))

    def get_by_id(self, collection: str, record_id: str) -> Record | NotFound:
        """Look up one record by identity."""
        for item in self._load(collection):
            if item.get(RECORD_ID_FIELD) == record_id:
                return deepcopy(item)
        return NotFound(collection=collection, record_id=record_id)

    def find(self, collection: str, criteria: Mapping[str, Any]) -> list[Record]:
        """Return records whose fields equal every criteria value.

        Args:
            collection: Collection name.
            criteria: Field name to expected value.

        Returns:
            Matching record copies in insertion order.
        """
        return [
            deepcopy(item)
            for item in self._load(collection)
            if all(item.get(key, _MISSING) == value for key, value in criteria.items())
        ]

    def create(self, collection: str, record: Mapping[str, Any]) -> Record | DuplicateIdentity:
        """Store a new record under a freshly allocated identity.

        Any ``id`` supplied by the caller is ignored.

        Args:
            collection: Collection name.
            record: Record fields.

        Returns:
            The stored record, or DuplicateIdentity when no free id was found.

        Raises:
            LedgerCollectionError: If the record is not a mapping.
            LedgerStorageError: If persistence fails in raise mode.
        """
        current = self._load(collection)
        record_id = self._allocate_id(collection, _record_ids(current))
        if isinstance(record_id, DuplicateIdentity):
            return record_id
        new_record = self._build_new_record(collection, record_id, record)
        self._commit(collection, current + [new_record], "create")
        _LOGGER.info("record_created", collection=collection, record_id=record_id)
        return deepcopy(new_record)

    def bulk_create(
        self,
        collection: str,
        records: Iterable[Mapping[str, Any]],
    ) -> list[Record] | DuplicateIdentity:
        """Store several new records with one durable write.

        Args:
            collection: Collection name.
            records: Record field mappings.

        Returns:
            Stored records in input order, or DuplicateIdentity with no write.
        """
        current = self._load(collection)
        taken = _record_ids(current)
        new_records: list[Record] = []
        for record in records:
            record_id = self._allocate_id(collection, taken)
            if isinstance(record_id, DuplicateIdentity):
                return record_id
            taken.add(record_id)
            new_records.append(self._build_new_record(collection, record_id, record))
        if not new_records:
            return []
        self._commit(collection, current + new_records, "bulk_create")
        _LOGGER.info("records_bulk_created", collection=collection, count=len(new_records))
        return deepcopy(new_records)

    def insert_with_id(
        self,
        collection: str,
        record: Mapping[str, Any],
    ) -> Record | DuplicateIdentity:
        """Store a record under the identity it already carries.

        Args:
            collection: Collection name.
            record: Record fields including a string ``id``.

        Returns:
            The stored record, or DuplicateIdentity if the id is taken.

        Raises:
            LedgerCollectionError: If the record has no string id.
        """
        payload = _require_mapping(collection, record)
        record_id = payload.get(RECORD_ID_FIELD)
        if not isinstance(record_id, str) or not record_id:
            raise LedgerCollectionError(
                f"Cannot insert into '{collection}': record needs a non-empty string "
                f"'{RECORD_ID_FIELD}'. Use create to allocate one."
            )
        current = self._load(collection)
        if record_id in _record_ids(current):
            return DuplicateIdentity(collection=collection, record_id=record_id)
        new_record = deepcopy(dict(payload))
        self._commit(collection, current + [new_record], "insert")
        _LOGGER.info("record_inserted", collection=collection, record_id=record_id)
        return deepcopy(new_record)

    def update(
        self,
        collection: str,
        record_id: str,
        patch: Mapping[str, Any],
    ) -> Record | NotFound:
        """Shallow-merge patch fields into an existing record.

        Args:
            collection: Collection name.
            record_id: Identity of the record to update.
            patch: Fields to overwrite; an ``id`` entry is ignored.

        Returns:
            The merged record, or NotFound with no write.
        """
        current = self._load(collection)
        index = _index_of(current, record_id)
        if index is None:
            return NotFound(collection=collection, record_id=record_id)
        merged = self._merge(current[index], _require_mapping(collection, patch))
        updated = list(current)
        updated[index] = merged
        self._commit(collection, updated, "update")
        _LOGGER.info("record_updated", collection=collection, record_id=record_id)
        return deepcopy(merged)

    def bulk_update(
        self,
        collection: str,
        patches: Iterable[Mapping[str, Any]],
    ) -> list[Record]:
        """Apply several id-carrying patches with one durable write.

        Patches whose id is not present are skipped.

        Args:
            collection: Collection name.
            patches: Patches each carrying the target ``id``.

        Returns:
            Merged records in patch order.
        """
        current = list(self._load(collection))
        merged_records: list[Record] = []
        for patch in patches:
            payload = _require_mapping(collection, patch)
            index = _index_of(current, payload.get(RECORD_ID_FIELD))
            if index is None:
                continue
            current[index] = self._merge(current[index], payload)
            merged_records.append(current[index])
        if not merged_records:
            return []
        self._commit(collection, current, "bulk_update")
        _LOGGER.info("records_bulk_updated", collection=collection, count=len(merged_records))
        return deepcopy(merged_records)

    def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record if present.

        Returns:
            True when a record was removed, False when it was absent.
        """
        current = self._load(collection)
        remaining = [item for item in current if item.get(RECORD_ID_FIELD) != record_id]
        if len(remaining) == len(current):
            return False
        self._commit(collection, remaining, "delete")
        _LOGGER.info("record_deleted", collection=collection, record_id=record_id)
        return True

    def clear_all(self) -> None:
        """Empty every known collection."""
        for collection in self.collection_names():
            self._commit(collection, [], "clear")
        _LOGGER.info("collections_cleared")

    def collection_names(self) -> tuple[str, ...]:
        """Return configured collections followed by other known ones."""
        names = list(self._config.collections)
        extra = {name for name, records in self._cache.items() if records}
        if not self._degraded:
            extra.update(list_persisted_collections(self._collections_dir))
        names.extend(sorted(name for name in extra if name not in names))
        return tuple(names)

    def get_stats(self) -> dict[str, int]:
        """Return record counts per known collection."""
        return {name: len(self._load(name)) for name in self.collection_names()}

    def is_healthy(self) -> bool:
        """Return whether reads and writes still reach the durable medium."""
        return not self._degraded and self._collections_dir.is_dir()

    def subscribe(self, collection: str, callback: Listener) -> Callable[[], None]:
        """Register a callback fired after each committed mutation.

        Args:
            collection: Collection to observe.
            callback: Zero-argument callable.

        Returns:
            Function that removes the subscription.
        """
        _validate_collection_name(collection)
        listeners = self._listeners.setdefault(collection, [])
        listeners.append(callback)
        _LOGGER.debug("listener_subscribed", collection=collection)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)
                _LOGGER.debug("listener_unsubscribed", collection=collection)

        return unsubscribe

    def reload(self) -> None:
        """Drop cached collections so the next access re-reads the data root."""
        self._cache.clear()

    def export_all(self) -> str:
        """Serialize metadata and every known collection as a JSON backup."""
        backup = {
            "metadata": metadata_to_payload(self._metadata),
            "data": {name: self._load(name) for name in self.collection_names()},
        }
        return json.dumps(backup, indent=2, ensure_ascii=False)

    def import_all(self, backup: str) -> None:
        """Restore metadata and collections from a JSON backup.

        Collections absent from the backup are left unchanged. Metadata is
        written only after every collection in the backup has been written.

        Args:
            backup: Payload produced by export_all.

        Raises:
            LedgerBackupError: If the payload is invalid; nothing is written.
        """
        metadata, collections = _parse_backup(backup)
        for collection, records in collections.items():
            self._commit(collection, records, "import")
        if metadata is not None:
            self._metadata = StoreMetadata(
                schema_version=metadata.schema_version,
                last_sync=self._now_iso(),
                device_id=metadata.device_id,
            )
            self._persist_metadata("import")
        _LOGGER.info("backup_imported", collections=sorted(collections))

    def _initialize(self) -> StoreMetadata:
        try:
            return self._initialize_data_root()
        except LedgerStorageError as error:
            self._handle_storage_failure(None, "initialize", error)
            return StoreMetadata(
                schema_version=SCHEMA_VERSION,
                last_sync=self._now_iso(),
                device_id=_build_device_id(),
            )

    def _initialize_data_root(self) -> StoreMetadata:
        try:
            self._collections_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise LedgerStorageError(
                f"Failed to create data root at {self._collections_dir}: {error}. "
                "Set LEDGER_DATA_ROOT to a writable directory."
            ) from error
        metadata = read_metadata_file(self._metadata_path)
        if metadata is None:
            metadata = StoreMetadata(
                schema_version=SCHEMA_VERSION,
                last_sync=self._now_iso(),
                device_id=_build_device_id(),
            )
            write_metadata_file(self._metadata_path, metadata)
        for collection in self._config.collections:
            collection_path = collection_file_path(self._collections_dir, collection)
            if not collection_path.exists():
                write_collection_file(collection_path, [])
        _LOGGER.info(
            "store_initialized",
            data_root=str(self._config.data_root),
            device_id=metadata.device_id,
        )
        return metadata

    def _load(self, collection: str) -> list[Record]:
        """Return the cached collection, reading it on first access."""
        _validate_collection_name(collection)
        cached = self._cache.get(collection)
        if cached is not None:
            return cached
        try:
            records = read_collection_file(self._collection_path(collection))
        except LedgerStorageError as error:
            self._handle_storage_failure(collection, "load", error)
            records = []
        self._cache[collection] = records
        return records

    def _commit(self, collection: str, records: list[Record], operation: str) -> None:
        """Persist a collection, then publish it to the cache and listeners."""
        if not self._degraded:
            try:
                write_collection_file(self._collection_path(collection), records)
            except LedgerStorageError as error:
                self._handle_storage_failure(collection, operation, error)
        self._cache[collection] = records
        self._notify(collection)

    def _persist_metadata(self, operation: str) -> None:
        if self._degraded:
            return
        try:
            write_metadata_file(self._metadata_path, self._metadata)
        except LedgerStorageError as error:
            self._handle_storage_failure(None, operation, error)

    def _handle_storage_failure(
        self,
        collection: str | None,
        operation: str,
        error: LedgerStorageError,
    ) -> None:
        """Raise or degrade to in-memory operation per configured mode."""
        if self._config.storage_failure_mode == STORAGE_FAILURE_RAISE:
            raise error
        if self._degraded:
            return
        self._degraded = True
        self._pending_warning = StorageFailure(
            collection=collection,
            operation=operation,
            message=str(error),
        )
        _LOGGER.warning(
            "storage_degraded",
            collection=collection,
            operation=operation,
            error=str(error),
        )

    def _notify(self, collection: str) -> None:
        for callback in list(self._listeners.get(collection, ())):
            try:
                callback()
            except Exception as error:
                _LOGGER.error("listener_failed", collection=collection, error=str(error))

    def _allocate_id(self, collection: str, taken: set[str]) -> str | DuplicateIdentity:
        candidate = ""
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken:
                return candidate
        _LOGGER.error(
            "record_id_collision",
            collection=collection,
            record_id=candidate,
            attempts=MAX_ID_ATTEMPTS,
        )
        return DuplicateIdentity(collection=collection, record_id=candidate)

    def _build_new_record(
        self,
        collection: str,
        record_id: str,
        record: Mapping[str, Any],
    ) -> Record:
        payload = _require_mapping(collection, record)
        new_record: Record = {RECORD_ID_FIELD: record_id}
        for key, value in payload.items():
            if key != RECORD_ID_FIELD:
                new_record[key] = deepcopy(value)
        if self._config.track_timestamps:
            timestamp = self._now_iso()
            new_record[CREATED_AT_FIELD] = timestamp
            new_record[UPDATED_AT_FIELD] = timestamp
        return new_record

    def _merge(self, existing: Record, patch: Mapping[str, Any]) -> Record:
        merged = dict(existing)
        for key, value in patch.items():
            if key != RECORD_ID_FIELD:
                merged[key] = deepcopy(value)
        if self._config.track_timestamps:
            merged[UPDATED_AT_FIELD] = self._now_iso()
        return merged

    def _collection_path(self, collection: str) -> Path:
        return collection_file_path(self._collections_dir, collection)

    def _now_iso(self) -> str:
        return self._clock().isoformat()


def _validate_collection_name(collection: str) -> None:
    if not isinstance(collection, str) or not re.fullmatch(COLLECTION_NAME_PATTERN, collection):
        raise LedgerCollectionError(
            f"Invalid collection name {collection!r}: use letters, digits, '_' or '-' only."
        )


def _require_mapping(collection: str, record: object) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise LedgerCollectionError(
            f"Invalid record for '{collection}': expected a mapping, "
            f"got {type(record).__name__}."
        )
    return record


def _record_ids(records: list[Record]) -> set[str]:
    return {str(item.get(RECORD_ID_FIELD)) for item in records}


def _index_of(records: list[Record], record_id: object) -> int | None:
    for index, item in enumerate(records):
        if item.get(RECORD_ID_FIELD) == record_id:
            return index
    return None


def _parse_backup(backup: str) -> tuple[StoreMetadata | None, dict[str, list[Record]]]:
    """Validate a backup payload before anything is written.

    Args:
        backup: JSON backup text.

    Returns:
        Pair of optional metadata and collection records.

    Raises:
        LedgerBackupError: If the payload is malformed.
    """
    try:
        payload = json.loads(backup)
    except json.JSONDecodeError as error:
        raise LedgerBackupError(f"Failed to parse backup: {error.msg}.") from error
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise LedgerBackupError("Invalid backup: expected an object with a 'data' object.")
    metadata: StoreMetadata | None = None
    metadata_payload = payload.get("metadata")
    if metadata_payload:
        if not isinstance(metadata_payload, dict):
            raise LedgerBackupError("Invalid backup: 'metadata' must be an object.")
        try:
            metadata = metadata_from_payload(metadata_payload)
        except (KeyError, TypeError, ValueError) as error:
            raise LedgerBackupError(f"Invalid backup metadata: {error}.") from error
    collections: dict[str, list[Record]] = {}
    for collection, records in payload["data"].items():
        try:
            _validate_collection_name(collection)
        except LedgerCollectionError as error:
            raise LedgerBackupError(f"Invalid backup: {error}") from error
        collections[collection] = _validate_backup_records(collection, records)
    return metadata, collections


def _validate_backup_records(collection: str, records: object) -> list[Record]:
    if not isinstance(records, list):
        raise LedgerBackupError(f"Invalid backup: '{collection}' must be a list of records.")
    seen: set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise LedgerBackupError(f"Invalid backup: {collection}[{index}] is not an object.")
        record_id = record.get(RECORD_ID_FIELD)
        if not isinstance(record_id, str) or not record_id:
            raise LedgerBackupError(f"Invalid backup: {collection}[{index}] has no string id.")
        if record_id in seen:
            raise LedgerBackupError(
                f"Invalid backup: duplicate id '{record_id}' in collection '{collection}'."
            )
        seen.add(record_id)
    return records


def _build_record_id() -> str:
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"{_to_base36(millis)}{uuid4().hex[:RECORD_ID_RANDOM_LENGTH]}"


def _build_device_id() -> str:
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(DEVICE_ID_LENGTH))
    return f"{DEVICE_ID_PREFIX}{suffix}"


def _to_base36(value: int) -> str:
    digits: list[str] = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
        if value == 0:
            return "".join(reversed(digits))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
