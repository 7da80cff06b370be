"""
Synced attendance store.

Keeps a consumer's record list in sync with the remote database:
- Migrates legacy local records once, before subscribing
- Projects every remote change into a flat record list for the handler
- Routes create/update/delete to the settings singleton or the
  attendance collection

Construct one instance and hand it to whatever owns the UI.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .config import DEFAULT_LEGACY_KEY, StoreConfig
from .exceptions import (
    AlreadyInitializedError,
    AttendanceSyncError,
    InvalidHandlerError,
    InvalidRecordError,
    NotInitializedError,
    StoreError,
)
from .local.base import LegacyLocalStore
from .local.storage import JsonFileLocalStore, MemoryLocalStore
from .logging_utils import get_store_logger
from .migration import LegacyMigrator, MigrationResult
from .remote.base import RemoteStore, Subscription
from .remote.firebase import FirebaseRealtimeStore
from .schema import DEFAULT_SCHEMA, Record, StoreSchema, strip_id
from .types import ChangeHandler, OperationResult, is_change_handler

logger = get_store_logger("store")


class SyncedStore:
    """Attendance records synced with a remote database.

    Operations never raise: each returns an OperationResult carrying
    either success or the error that stopped it.

    Example:
        >>> store = SyncedStore.from_config(StoreConfig.from_env())
        >>> result = await store.init(handler)
        >>> await store.create({"type": "attendance", "nama_lengkap": "Budi"})
        >>> await store.close()
    """

    def __init__(
        self,
        remote: RemoteStore,
        local: LegacyLocalStore | None = None,
        schema: StoreSchema = DEFAULT_SCHEMA,
        legacy_key: str = DEFAULT_LEGACY_KEY,
    ) -> None:
        """Initialize the store.

        Args:
            remote: Remote store, rooted at the data's root path
            local: Legacy local store to migrate from (empty store if omitted)
            schema: Collection layout of the remote store
            legacy_key: Local storage key of the legacy blob
        """
        self.remote = remote
        self.local = local if local is not None else MemoryLocalStore()
        self.schema = schema
        self._migrator = LegacyMigrator(remote, self.local, schema, legacy_key)
        self._handler: ChangeHandler | None = None
        self._subscription: Subscription | None = None
        self._initialized = False
        self._error_reported = False
        self._records: list[Record] = []

    @classmethod
    def from_config(cls, config: StoreConfig, schema: StoreSchema = DEFAULT_SCHEMA) -> SyncedStore:
        """Create a store backed by Firebase and a local JSON file."""
        return cls(
            remote=FirebaseRealtimeStore.from_config(config),
            local=JsonFileLocalStore(config.resolved_local_storage_path),
            schema=schema,
            legacy_key=config.legacy_key,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def migration_done(self) -> bool:
        return self._migrator.done

    @property
    def records(self) -> list[Record]:
        """Copy of the most recent projection."""
        return [dict(record) for record in self._records]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self, handler: Any) -> OperationResult:
        """Migrate legacy data, then subscribe the handler to remote changes.

        Args:
            handler: Object with ``on_data_changed(records)``, optionally ``on_error(error)``
        """
        if self._initialized:
            return OperationResult.failure(AlreadyInitializedError())
        if not is_change_handler(handler):
            return OperationResult.failure(InvalidHandlerError(handler))

        self._handler = handler
        self._initialized = True
        self._error_reported = False

        await self._migrator.run()

        try:
            self._subscription = await self.remote.subscribe(
                "", self._on_snapshot, self._on_subscription_error
            )
        except StoreError as e:
            logger.error(f"Error subscribing to remote changes: {e}")
            self._initialized = False
            self._handler = None
            return OperationResult.failure(e)

        return OperationResult.ok()

    async def migrate(self) -> MigrationResult:
        """Retry a pending migration. No-op once the migration is done."""
        return await self._migrator.run()

    async def close(self) -> None:
        """Stop listening and close the underlying stores."""
        subscription, self._subscription = self._subscription, None
        try:
            if subscription is not None:
                await subscription.cancel()
            await self.remote.close()
        finally:
            self._initialized = False
            self._handler = None
            await self.local.close()

    async def __aenter__(self) -> SyncedStore:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # Record operations
    # =========================================================================

    async def create(self, record: Any) -> OperationResult:
        """Write a new record.

        Settings overwrite the singleton slot; any other type is added to
        the attendance collection under a generated key.
        """
        error = self._validate("create", record, require_id=False)
        if error:
            return OperationResult.failure(error)

        collection = self.schema.for_type(record["type"])
        payload = strip_id(record)

        async def _write() -> str:
            if collection.is_singleton:
                await self.remote.set(collection.item_path(), payload)
                return collection.singleton_key
            return await self.remote.push(collection.name, payload)

        return await self._run("create", collection.name, _write)

    async def update(self, record: Any) -> OperationResult:
        """Overwrite an existing record entirely, located by type and id."""
        error = self._validate("update", record, require_id=True)
        if error:
            return OperationResult.failure(error)

        path = self.schema.for_type(record["type"]).item_path(record["id"])
        payload = strip_id(record)

        async def _write() -> str:
            await self.remote.set(path, payload)
            return record["id"]

        return await self._run("update", path, _write)

    async def delete(self, record: Any) -> OperationResult:
        """Remove a record, located by type and id."""
        error = self._validate("delete", record, require_id=True)
        if error:
            return OperationResult.failure(error)

        path = self.schema.for_type(record["type"]).item_path(record["id"])

        async def _remove() -> str:
            await self.remote.remove(path)
            return record["id"]

        return await self._run("delete", path, _remove)

    def _validate(self, operation: str, record: Any, require_id: bool) -> AttendanceSyncError | None:
        if not self._initialized:
            return NotInitializedError(operation)
        if not isinstance(record, Mapping):
            return InvalidRecordError(operation, "record must be a mapping")
        if not record.get("type") or not isinstance(record["type"], str):
            return InvalidRecordError(operation, "missing type", field="type")
        if require_id and not record.get("id"):
            return InvalidRecordError(operation, "missing id", field="id")
        if require_id and not isinstance(record["id"], str):
            return InvalidRecordError(operation, "id must be a string", field="id")
        return None

    async def _run(
        self, operation: str, path: str, call: Callable[[], Awaitable[str]]
    ) -> OperationResult:
        try:
            record_id = await call()
        except StoreError as e:
            logger.error(f"Error in {operation} operation: {e}")
            return OperationResult.failure(e)
        except Exception as e:
            logger.error(f"Error in {operation} operation: {e}")
            return OperationResult.failure(StoreError(operation, path, cause=e))
        return OperationResult.ok(record_id=record_id)

    # =========================================================================
    # Subscription callbacks
    # =========================================================================

    async def _on_snapshot(self, snapshot: Any) -> None:
        records = self.schema.build_projection(snapshot)
        self._records = records
        handler = self._handler
        if handler is None:
            return
        try:
            result = handler.on_data_changed([dict(record) for record in records])
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Change handler failed")

    async def _on_subscription_error(self, error: StoreError) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        logger.error(f"Error listening to remote changes: {error}")

        on_error = getattr(self._handler, "on_error", None)
        if not callable(on_error):
            return
        try:
            result = on_error(error)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Change handler failed to process subscription error")
