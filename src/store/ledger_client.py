"""Python SDK for console data.

This module exposes the service object that owns the record store and
hands typed collections to every consumer.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from pathlib import Path

from core.config import LedgerConfig
from core.constants import (
    CHANNELS_COLLECTION,
    CONTRACTS_COLLECTION,
    PARTNERS_COLLECTION,
    USERS_COLLECTION,
    WORKS_COLLECTION,
)
from core.types import ChannelRecord, ContractRecord, PartnerRecord, UserRecord, WorkRecord
from seed.seeding import seed_defaults
from seed.works_derivation import seed_works_from_contracts
from store.record_store import RecordStore
from store.typed_collection import TypedCollection


class LedgerClient:
    """Primary SDK entry point, constructed once per process."""

    def __init__(self, config: LedgerConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or LedgerConfig.from_env()
        self._store = RecordStore(self._config)
        self.users = TypedCollection(self._store, USERS_COLLECTION, UserRecord)
        self.contracts = TypedCollection(self._store, CONTRACTS_COLLECTION, ContractRecord)
        self.works = TypedCollection(self._store, WORKS_COLLECTION, WorkRecord)
        self.partners = TypedCollection(self._store, PARTNERS_COLLECTION, PartnerRecord)
        self.channels = TypedCollection(self._store, CHANNELS_COLLECTION, ChannelRecord)

    @property
    def config(self) -> LedgerConfig:
        """Return the runtime configuration."""
        return self._config

    @property
    def store(self) -> RecordStore:
        """Return the underlying record store."""
        return self._store

    def seed_defaults(
        self,
        seeded_at: datetime | None = None,
        include_samples: bool = False,
        derive_works: bool = False,
    ) -> dict[str, int]:
        """Run the startup seeding step.

        Args:
            seeded_at: Optional seeding timestamp.
            include_samples: Also seed sample partners and channels.
            derive_works: Seed works from stored contracts when works is empty.

        Returns:
            Collection name to number of records written.
        """
        counts = seed_defaults(
            self._store,
            self._config,
            seeded_at=seeded_at,
            include_samples=include_samples,
        )
        if derive_works:
            counts[WORKS_COLLECTION] = seed_works_from_contracts(self._store)
        return counts

    def with_data_root(self, data_root: str) -> "LedgerClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        return LedgerClient(replace(self._config, data_root=resolved_root))
