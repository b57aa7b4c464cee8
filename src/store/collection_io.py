"""Collection and metadata persistence helpers.

This module isolates JSON file IO for the data root.
It keeps record store orchestration focused on CRUD flow.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any

from core.constants import COLLECTION_FILE_SUFFIX
from core.errors import LedgerCollectionError, LedgerStorageError
from core.types import Record, StoreMetadata


def collection_file_path(collections_dir: Path, collection: str) -> Path:
    """Return the file backing one collection."""
    return collections_dir / f"{collection}{COLLECTION_FILE_SUFFIX}"


def list_persisted_collections(collections_dir: Path) -> tuple[str, ...]:
    """List collection names that have a file under the collections directory.

    Args:
        collections_dir: Directory holding collection files.

    Returns:
        Sorted collection names.
    """
    if not collections_dir.exists():
        return ()
    return tuple(
        sorted(
            path.name[: -len(COLLECTION_FILE_SUFFIX)]
            for path in collections_dir.glob(f"*{COLLECTION_FILE_SUFFIX}")
            if path.is_file()
        )
    )


def read_collection_file(collection_path: Path) -> list[Record]:
    """Read and validate one collection payload.

    Args:
        collection_path: Collection JSON path.

    Returns:
        Records in persisted order; empty when the file does not exist.

    Raises:
        LedgerStorageError: If the file is unreadable or corrupted.
    """
    if not collection_path.exists():
        return []
    payload = _read_json(collection_path)
    if not isinstance(payload, list):
        raise LedgerStorageError(
            f"Failed to parse collection at {collection_path}: "
            "expected JSON array at top level. Restore the collection from a backup."
        )
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise LedgerStorageError(
                f"Failed to parse collection at {collection_path}: "
                f"item {index} is not a JSON object. Restore the collection from a backup."
            )
    return payload


def write_collection_file(collection_path: Path, records: list[Record]) -> None:
    """Durably replace one collection payload.

    Args:
        collection_path: Collection JSON path.
        records: Records to persist in order.

    Raises:
        LedgerStorageError: If the write fails.
    """
    write_json_atomic(collection_path, records)


def read_metadata_file(metadata_path: Path) -> StoreMetadata | None:
    """Read store metadata if present.

    Args:
        metadata_path: Metadata JSON path.

    Returns:
        Parsed metadata, or None when the file does not exist.

    Raises:
        LedgerStorageError: If the metadata file is corrupted.
    """
    if not metadata_path.exists():
        return None
    payload = _read_json(metadata_path)
    if not isinstance(payload, dict):
        raise LedgerStorageError(
            f"Invalid store metadata at {metadata_path}: expected JSON object."
        )
    try:
        return metadata_from_payload(payload)
    except (KeyError, TypeError, ValueError) as error:
        raise LedgerStorageError(
            f"Invalid store metadata at {metadata_path}: {error}. "
            "Delete the metadata file to regenerate it."
        ) from error


def write_metadata_file(metadata_path: Path, metadata: StoreMetadata) -> None:
    """Durably write store metadata."""
    write_json_atomic(metadata_path, metadata_to_payload(metadata))


def metadata_to_payload(metadata: StoreMetadata) -> dict[str, Any]:
    """Serialize metadata with the persisted camelCase keys."""
    return {
        "schemaVersion": metadata.schema_version,
        "lastSync": metadata.last_sync,
        "deviceId": metadata.device_id,
    }


def metadata_from_payload(payload: dict[str, Any]) -> StoreMetadata:
    """Deserialize metadata from its persisted payload."""
    return StoreMetadata(
        schema_version=int(payload["schemaVersion"]),
        last_sync=str(payload["lastSync"]),
        device_id=str(payload["deviceId"]),
    )


def write_json_atomic(payload_path: Path, payload: object) -> None:
    """Write one JSON payload through a synced temporary file and rename.

    Args:
        payload_path: Destination path.
        payload: JSON-serializable payload.

    Raises:
        LedgerCollectionError: If the payload is not JSON-serializable.
        LedgerStorageError: If any filesystem step fails.
    """
    try:
        body = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError) as error:
        raise LedgerCollectionError(
            f"Failed to serialize payload for {payload_path}: {error}. "
            "Store only JSON-compatible field values."
        ) from error
    temp_name: str | None = None
    try:
        payload_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=payload_path.parent,
            prefix=f".{payload_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            temp_file.write(body)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_name, payload_path)
    except OSError as error:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)
        raise LedgerStorageError(
            f"Failed to write {payload_path}: {error}. "
            "Check free space and permissions on the data root."
        ) from error


def _read_json(payload_path: Path) -> object:
    try:
        return json.loads(payload_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise LedgerStorageError(
            f"Failed to parse JSON at {payload_path}: {error.msg}. "
            "Restore the file from a backup."
        ) from error
    except (OSError, UnicodeDecodeError) as error:
        raise LedgerStorageError(f"Failed to read {payload_path}: {error}.") from error
