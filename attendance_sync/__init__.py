"""
Attendance Sync

Keeps an attendance record list in sync with a Firebase Realtime Database
and migrates legacy locally stored records into it, once.

Provides:
- SyncedStore: create/update/delete plus a live, flattened record list
- Firebase REST/streaming backend and an in-memory backend
- Legacy local storage backed by a JSON file

Usage:

    >>> from attendance_sync import StoreConfig, SyncedStore
    >>> class Handler:
    ...     def on_data_changed(self, records):
    ...         print(f"{len(records)} records")
    >>> async with SyncedStore.from_config(StoreConfig.from_env()) as store:
    ...     result = await store.init(Handler())
    ...     await store.create({"type": "attendance", "nama_lengkap": "Budi"})

Remote layout (below the root path, default ``absensi_data``):

    settings/default_settings   the single settings record
    attendance/{push_id}        one child per attendance record
"""

from .config import StoreConfig
from .exceptions import (
    AlreadyInitializedError,
    AttendanceSyncError,
    AuthenticationError,
    ConfigurationError,
    InvalidHandlerError,
    InvalidRecordError,
    LocalStorageError,
    MigrationParseError,
    NotInitializedError,
    StorageConnectionError,
    StoreError,
)
from .local import JsonFileLocalStore, LegacyLocalStore, MemoryLocalStore
from .migration import LegacyMigrator, MigrationResult, MigrationStatus
from .remote import FirebaseRealtimeStore, InMemoryRemoteStore, RemoteStore, Subscription
from .schema import (
    DEFAULT_SCHEMA,
    CollectionKind,
    CollectionSpec,
    Record,
    StoreSchema,
)
from .store import SyncedStore
from .types import ChangeHandler, OperationResult

__all__ = [
    # Store
    "SyncedStore",
    "StoreConfig",
    "OperationResult",
    "ChangeHandler",
    # Schema
    "Record",
    "CollectionKind",
    "CollectionSpec",
    "StoreSchema",
    "DEFAULT_SCHEMA",
    # Backends
    "RemoteStore",
    "Subscription",
    "FirebaseRealtimeStore",
    "InMemoryRemoteStore",
    "LegacyLocalStore",
    "JsonFileLocalStore",
    "MemoryLocalStore",
    # Migration
    "LegacyMigrator",
    "MigrationResult",
    "MigrationStatus",
    # Exceptions
    "AttendanceSyncError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "InvalidHandlerError",
    "InvalidRecordError",
    "StoreError",
    "StorageConnectionError",
    "AuthenticationError",
    "MigrationParseError",
    "LocalStorageError",
    "ConfigurationError",
]

__version__ = "0.1.0"
