"""
Shared test configuration and fixtures.

Provides in-memory remote and local stores, a recording change handler,
and a remote store that fails on demand.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest

from attendance_sync import InMemoryRemoteStore, MemoryLocalStore, SyncedStore
from attendance_sync.config import DEFAULT_LEGACY_KEY
from attendance_sync.exceptions import StoreError


class RecordingHandler:
    """Change handler that keeps every projection and error it receives."""

    def __init__(self) -> None:
        self.snapshots: list[list[dict[str, Any]]] = []
        self.errors: list[StoreError] = []

    def on_data_changed(self, records: list[dict[str, Any]]) -> None:
        self.snapshots.append(records)

    def on_error(self, error: StoreError) -> None:
        self.errors.append(error)

    @property
    def latest(self) -> list[dict[str, Any]]:
        return self.snapshots[-1] if self.snapshots else []


class FlakyRemoteStore(InMemoryRemoteStore):
    """In-memory store that raises configured errors.

    ``failures`` maps an operation name (get, exists, child_count, set,
    push, remove, subscribe) to the error it raises. ``push_limit`` lets
    that many pushes succeed before the ``push`` failure kicks in.
    """

    def __init__(
        self,
        *args: Any,
        failures: dict[str, Exception] | None = None,
        push_limit: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.failures = dict(failures or {})
        self.push_limit = push_limit
        self.calls: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        error = self.failures.get(operation)
        if error is None:
            return
        if operation == "push" and self.push_limit > 0:
            self.push_limit -= 1
            return
        raise error

    async def get(self, path: str) -> Any:
        self._maybe_fail("get")
        return await super().get(path)

    async def exists(self, path: str) -> bool:
        self._maybe_fail("exists")
        return await super().exists(path)

    async def child_count(self, path: str) -> int:
        self._maybe_fail("child_count")
        return await super().child_count(path)

    async def set(self, path: str, value: Any) -> None:
        self._maybe_fail("set")
        await super().set(path, value)

    async def push(self, path: str, value: Any) -> str:
        self._maybe_fail("push")
        return await super().push(path, value)

    async def remove(self, path: str) -> None:
        self._maybe_fail("remove")
        await super().remove(path)

    async def subscribe(self, path, on_value, on_error):
        self._maybe_fail("subscribe")
        return await super().subscribe(path, on_value, on_error)


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    """Empty in-memory remote store."""
    return InMemoryRemoteStore()


@pytest.fixture
def local() -> MemoryLocalStore:
    """Empty in-memory legacy local store."""
    return MemoryLocalStore()


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def flaky_remote():
    """Factory for remote stores that fail on demand.

    Call with ``failures`` (operation name to error) and optionally
    ``push_limit``, ``initial`` or ``root_path``.
    """
    return FlakyRemoteStore


@pytest.fixture
async def store(remote: InMemoryRemoteStore, local: MemoryLocalStore) -> AsyncIterator[SyncedStore]:
    """Store wired to the in-memory backends, not yet initialized."""
    synced = SyncedStore(remote, local, legacy_key=DEFAULT_LEGACY_KEY)
    yield synced
    await synced.close()


@pytest.fixture
async def ready_store(store: SyncedStore, handler: RecordingHandler) -> SyncedStore:
    """Initialized store with the recording handler attached."""
    result = await store.init(handler)
    assert result.is_ok
    return store
