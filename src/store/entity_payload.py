"""Shared payload serialization for typed entity records.

This module translates entity dataclasses to and from stored payloads.
Persisted keys come from each field's metadata; keys no field claims are
kept in ``extra_fields`` so they round-trip unchanged.
"""

from __future__ import annotations

from dataclasses import Field, fields
from typing import Any, Mapping, TypeVar

from core.errors import LedgerCollectionError
from core.types import Record

RecordT = TypeVar("RecordT")

_EXTRA_FIELDS = "extra_fields"


def entity_to_payload(entity: Any) -> Record:
    """Serialize an entity record into its stored payload.

    Args:
        entity: Entity dataclass instance.

    Returns:
        Payload keyed by persisted field names. Optional fields left as None
        are omitted.
    """
    payload: Record = {}
    for item in _entity_fields(type(entity)):
        value = getattr(entity, item.name)
        if value is None:
            continue
        payload[item.metadata["key"]] = _encode_value(item, value)
    for key, value in entity.extra_fields.items():
        payload.setdefault(key, value)
    return payload


def entity_from_payload(record_type: type[RecordT], payload: Mapping[str, Any]) -> RecordT:
    """Deserialize a stored payload into an entity record.

    Args:
        record_type: Entity dataclass type.
        payload: Stored payload.

    Returns:
        Parsed entity.

    Raises:
        LedgerCollectionError: If the payload lacks an id or has a malformed
            nested list.
    """
    if not isinstance(payload, Mapping):
        raise LedgerCollectionError(
            f"Invalid {record_type.__name__} payload: expected a mapping."
        )
    values: dict[str, Any] = {}
    consumed: set[str] = set()
    for item in _entity_fields(record_type):
        key = item.metadata["key"]
        if key not in payload:
            continue
        consumed.add(key)
        values[item.name] = _decode_value(record_type, item, payload[key])
    extra = {key: value for key, value in payload.items() if key not in consumed}
    try:
        return record_type(**values, extra_fields=extra)
    except TypeError as error:
        raise LedgerCollectionError(
            f"Invalid {record_type.__name__} payload: {error}."
        ) from error


def changes_to_patch(record_type: type, changes: Mapping[str, Any]) -> Record:
    """Translate attribute-named changes into a persisted-key patch.

    Args:
        record_type: Entity dataclass type.
        changes: Attribute name to new value.

    Returns:
        Patch keyed by persisted field names.

    Raises:
        LedgerCollectionError: If a name is unknown or targets the identity.
    """
    by_name = {item.name: item for item in _entity_fields(record_type)}
    patch: Record = {}
    for name, value in changes.items():
        item = by_name.get(name)
        if item is None or name == "record_id":
            raise LedgerCollectionError(
                f"Cannot change '{name}' on {record_type.__name__}: "
                f"expected one of {', '.join(sorted(set(by_name) - {'record_id'}))}."
            )
        patch[item.metadata["key"]] = None if value is None else _encode_value(item, value)
    return patch


def _entity_fields(record_type: type) -> tuple[Field[Any], ...]:
    return tuple(item for item in fields(record_type) if item.name != _EXTRA_FIELDS)


def _encode_value(item: Field[Any], value: Any) -> Any:
    nested = item.metadata.get("nested")
    if nested is None:
        return value
    return [entity_to_payload(entry) for entry in value]


def _decode_value(record_type: type, item: Field[Any], value: Any) -> Any:
    nested = item.metadata.get("nested")
    if nested is None or value is None:
        return value
    if not isinstance(value, list):
        raise LedgerCollectionError(
            f"Invalid {record_type.__name__} payload: "
            f"'{item.metadata['key']}' must be a list."
        )
    return tuple(entity_from_payload(nested, entry) for entry in value)
