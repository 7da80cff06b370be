"""
Legacy migrator for moving locally stored records to the database.

Reads the legacy blob (a JSON list of records kept under one local
storage key) and writes its settings and attendance records to the
remote store, once, without overwriting existing remote data.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ..config import DEFAULT_LEGACY_KEY
from ..exceptions import MigrationParseError, StorageConnectionError
from ..local.base import LegacyLocalStore
from ..logging_utils import StoreLoggerAdapter, get_store_logger
from ..remote.base import RemoteStore
from ..schema import ATTENDANCE_TYPE, DEFAULT_SCHEMA, SETTINGS_TYPE, StoreSchema, strip_id
from .types import MigrationResult, MigrationStatus

logger = get_store_logger("migration")


class LegacyMigrator:
    """Migrates legacy local records into the remote store.

    Remote data is authoritative: when the attendance collection already
    holds records, nothing is written and the legacy blob is dropped.

    Attendance records are written one at a time, in their original
    order, each under a newly generated key. A failure part-way leaves
    the records already written in place.

    Completion is tracked per migrator instance. A run that stops on a
    parse failure, or on a transport failure before anything was
    written, leaves the migration pending so the next ``run`` retries.
    """

    def __init__(
        self,
        remote: RemoteStore,
        local: LegacyLocalStore,
        schema: StoreSchema = DEFAULT_SCHEMA,
        legacy_key: str = DEFAULT_LEGACY_KEY,
    ) -> None:
        """Initialize the migrator.

        Args:
            remote: Target remote store
            local: Legacy local store holding the blob
            schema: Collection layout of the remote store
            legacy_key: Local storage key of the legacy blob
        """
        self.remote = remote
        self.local = local
        self.schema = schema
        self.legacy_key = legacy_key
        self._done = False
        self._log = StoreLoggerAdapter(logger, {"legacy_key": legacy_key})

    @property
    def done(self) -> bool:
        """Whether the migration has finished (successfully or permanently failed)."""
        return self._done

    async def run(self) -> MigrationResult:
        """Run the migration unless it is already done.

        Never raises; the outcome is reported in the returned result.
        """
        result = MigrationResult(
            status=MigrationStatus.PENDING,
            started_at=datetime.now(timezone.utc),
        )

        if self._done:
            self._log.info("Migration already done, skipping")
            return self._finish(result, MigrationStatus.SKIPPED, "already done")

        try:
            return await self._migrate(result)
        except StorageConnectionError as e:
            written = result.attendance_migrated + int(result.settings_migrated)
            if written == 0:
                self._log.warning(f"Remote store unreachable, migration left pending: {e}")
                return self._fail(result, MigrationStatus.PENDING, "remote store unreachable", e)
            self._log.error(
                f"Migration interrupted after {written} writes, "
                f"{result.attendance_total - result.attendance_migrated} attendance records "
                f"remain in local storage: {e}"
            )
            return self._fail(result, MigrationStatus.FAILED, "interrupted after partial write", e)
        except Exception as e:
            self._log.error(f"Error during legacy data migration: {e}", exc_info=True)
            return self._fail(result, MigrationStatus.FAILED, "migration error", e)

    async def _migrate(self, result: MigrationResult) -> MigrationResult:
        stored = await self.local.get_item(self.legacy_key)
        if not stored:
            self._log.info("No legacy data found to migrate")
            return self._finish(result, MigrationStatus.SKIPPED, "no legacy data")

        self._log.info("Found legacy data, attempting migration")
        try:
            local_data: Any = json.loads(stored)
        except json.JSONDecodeError as e:
            error = MigrationParseError(self.legacy_key, e)
            self._log.error(f"{error.message}: {e}")
            return self._fail(result, MigrationStatus.PENDING, "legacy data is not valid JSON", error)

        if not isinstance(local_data, list):
            self._log.error("Legacy data is not a list, cannot migrate")
            return self._finish(result, MigrationStatus.FAILED, "legacy data is not a list")

        settings = self.schema.collection(SETTINGS_TYPE)
        attendance = self.schema.collection(ATTENDANCE_TYPE)

        if await self.remote.child_count(attendance.name) > 0:
            self._log.info("Remote already has attendance data, skipping legacy migration")
            self._done = True
            await self.local.remove_item(self.legacy_key)
            return self._finish(result, MigrationStatus.SKIPPED, "remote already has attendance data")

        records = [item for item in local_data if isinstance(item, dict)]

        if not await self.remote.exists(settings.item_path()):
            local_settings = next(
                (item for item in records if item.get("type") == SETTINGS_TYPE), None
            )
            if local_settings is not None:
                self._log.info("Migrating settings from legacy data")
                await self.remote.set(settings.item_path(), strip_id(local_settings))
                result.settings_migrated = True
        else:
            self._log.info("Remote already has settings, skipping settings migration")

        items = [item for item in records if item.get("type") == ATTENDANCE_TYPE]
        result.attendance_total = len(items)
        if items:
            self._log.info(f"Found {len(items)} attendance items to migrate")
        for item in items:
            await self.remote.push(attendance.name, strip_id(item))
            result.attendance_migrated += 1
            self._log.debug(f"Migrated attendance item for {item.get('nama_lengkap')}")

        self._log.info(
            "Migration completed",
            extra={
                "settings_migrated": result.settings_migrated,
                "attendance_migrated": result.attendance_migrated,
            },
        )
        self._done = True
        await self.local.remove_item(self.legacy_key)
        return self._finish(result, MigrationStatus.COMPLETED)

    def _finish(
        self,
        result: MigrationResult,
        status: MigrationStatus,
        reason: str | None = None,
    ) -> MigrationResult:
        result.status = status
        result.reason = reason
        result.completed_at = datetime.now(timezone.utc)
        if result.done:
            self._done = True
        return result

    def _fail(
        self,
        result: MigrationResult,
        status: MigrationStatus,
        reason: str,
        error: Exception,
    ) -> MigrationResult:
        result.error_message = str(error)
        result.error_details = {"type": type(error).__name__}
        return self._finish(result, status, reason)
