"""Core constants used across Ledger modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".ledger")
COLLECTIONS_DIR_NAME = "collections"
COLLECTION_FILE_SUFFIX = ".json"
METADATA_FILE_NAME = "metadata.json"
SCHEMA_VERSION = 1
DEFAULT_COLLECTIONS = ("contracts", "works", "partners", "channels", "users", "notifications")
COLLECTION_NAME_PATTERN = r"[A-Za-z0-9_-]+"
RECORD_ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"
MAX_ID_ATTEMPTS = 8
RECORD_ID_RANDOM_LENGTH = 10
DEVICE_ID_PREFIX = "device_"
DEVICE_ID_LENGTH = 9
STORAGE_FAILURE_DEGRADE = "degrade"
STORAGE_FAILURE_RAISE = "raise"
SUPPORTED_STORAGE_FAILURE_MODES = (STORAGE_FAILURE_DEGRADE, STORAGE_FAILURE_RAISE)
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
USERS_COLLECTION = "users"
CONTRACTS_COLLECTION = "contracts"
WORKS_COLLECTION = "works"
PARTNERS_COLLECTION = "partners"
CHANNELS_COLLECTION = "channels"
WORK_ID_PREFIX = "work-"
