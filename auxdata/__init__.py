"""
SQLite-backed persistent key-value store.

This package provides a small cache-style store with:
- set/get/has/delete and batch variants
- Per-key TTL with lazy and explicit expiry cleanup
- Atomic increment/decrement across processes
- Callback transactions
- Chunked iteration and statistics
"""

from auxdata.engine import AsyncStore, PendingStore, Store
from auxdata.log import configure_logging
from auxdata.models.exceptions import (
    AuxDataError,
    DecodingError,
    EncodingError,
    InvalidArgumentError,
    InvalidKeyError,
    StorageBusyError,
    StorageError,
    StoragePermissionError,
    StorageUnavailableError,
    TransactionAlreadyActiveError,
    TransactionError,
    TransactionNotActiveError,
    ValueTooLargeError,
)
from auxdata.models.record import Stats
from auxdata.paths import project_root, storage_dir

__all__ = [
    "AsyncStore",
    "PendingStore",
    "Store",
    "Stats",
    "configure_logging",
    "project_root",
    "storage_dir",
    "AuxDataError",
    "DecodingError",
    "EncodingError",
    "InvalidArgumentError",
    "InvalidKeyError",
    "StorageBusyError",
    "StorageError",
    "StoragePermissionError",
    "StorageUnavailableError",
    "TransactionAlreadyActiveError",
    "TransactionError",
    "TransactionNotActiveError",
    "ValueTooLargeError",
]
