"""Typed view over one store collection.

This module gives each entity type the same CRUD surface as the record
store while exchanging entity dataclasses instead of raw payloads.
"""

from __future__ import annotations

from typing import Any, Generic

from core.types import DuplicateIdentity, NotFound
from store.entity_payload import (
    RecordT,
    changes_to_patch,
    entity_from_payload,
    entity_to_payload,
)
from store.record_store import RecordStore


class TypedCollection(Generic[RecordT]):
    """CRUD over one collection for a single entity type."""

    def __init__(self, store: RecordStore, name: str, record_type: type[RecordT]) -> None:
        self._store = store
        self._name = name
        self._record_type = record_type

    @property
    def name(self) -> str:
        """Return the collection name."""
        return self._name

    def all(self) -> list[RecordT]:
        """Return every record in insertion order."""
        return [self._decode(payload) for payload in self._store.get_all(self._name)]

    def get(self, record_id: str) -> RecordT | NotFound:
        """Look up one record by identity."""
        payload = self._store.get_by_id(self._name, record_id)
        if isinstance(payload, NotFound):
            return payload
        return self._decode(payload)

    def find(self, **criteria: Any) -> list[RecordT]:
        """Return records whose attributes equal every criteria value."""
        patch = changes_to_patch(self._record_type, criteria)
        return [self._decode(payload) for payload in self._store.find(self._name, patch)]

    def create(self, record: RecordT) -> RecordT | DuplicateIdentity:
        """Store a new record; its record_id is replaced by a fresh one."""
        payload = self._store.create(self._name, entity_to_payload(record))
        if isinstance(payload, DuplicateIdentity):
            return payload
        return self._decode(payload)

    def update(self, record_id: str, **changes: Any) -> RecordT | NotFound:
        """Merge attribute changes into an existing record."""
        patch = changes_to_patch(self._record_type, changes)
        payload = self._store.update(self._name, record_id, patch)
        if isinstance(payload, NotFound):
            return payload
        return self._decode(payload)

    def save(self, record: RecordT) -> RecordT | NotFound:
        """Merge the set fields of ``record`` into its stored counterpart."""
        payload = entity_to_payload(record)
        result = self._store.update(self._name, payload["id"], payload)
        if isinstance(result, NotFound):
            return result
        return self._decode(result)

    def delete(self, record_id: str) -> bool:
        """Remove a record if present."""
        return self._store.delete(self._name, record_id)

    def _decode(self, payload: dict[str, Any]) -> RecordT:
        return entity_from_payload(self._record_type, payload)
