"""Public SDK surface for Ledger.

This module provides a stable import path for store consumers.
It re-exports the client, the record store, and typed models.
"""

from __future__ import annotations

from core.config import LedgerConfig
from core.errors import (
    LedgerBackupError,
    LedgerCollectionError,
    LedgerConfigError,
    LedgerError,
    LedgerSeedError,
    LedgerStorageError,
)
from core.types import (
    ChannelRecord,
    ContractLogEntry,
    ContractRecord,
    DuplicateIdentity,
    NotFound,
    PartnerRecord,
    Record,
    StorageFailure,
    StoreMetadata,
    UserRecord,
    WorkRecord,
)
from seed.seeding import seed_collection, seed_defaults
from seed.works_derivation import derive_works
from store.ledger_client import LedgerClient
from store.record_store import RecordStore
from store.typed_collection import TypedCollection

__all__ = [
    "ChannelRecord",
    "ContractLogEntry",
    "ContractRecord",
    "DuplicateIdentity",
    "LedgerBackupError",
    "LedgerClient",
    "LedgerCollectionError",
    "LedgerConfig",
    "LedgerConfigError",
    "LedgerError",
    "LedgerSeedError",
    "LedgerStorageError",
    "NotFound",
    "PartnerRecord",
    "Record",
    "RecordStore",
    "StorageFailure",
    "StoreMetadata",
    "TypedCollection",
    "UserRecord",
    "WorkRecord",
    "derive_works",
    "seed_collection",
    "seed_defaults",
]
