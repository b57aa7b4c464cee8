"""Ledger exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Expected outcomes such as a missing record are returned as values;
these exceptions cover configuration, medium, and caller faults.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all Ledger failures."""


class LedgerConfigError(LedgerError):
    """Raised for invalid runtime configuration."""


class LedgerStorageError(LedgerError):
    """Raised when the durable medium rejects or corrupts a read or write."""


class LedgerCollectionError(LedgerError):
    """Raised for invalid collection names or record payloads."""


class LedgerSeedError(LedgerError):
    """Raised for invalid seed files or seed payloads."""


class LedgerBackupError(LedgerError):
    """Raised when a backup payload cannot be restored."""
