"""
In-memory remote store.

Keeps the whole database tree in process, with the same write and
ordering rules as the hosted database. Listeners are awaited inside
the mutating call, so a write returns only after every subscriber
has seen the new value.
"""

from __future__ import annotations

import copy
from typing import Any

from ..exceptions import StoreError
from ..id_utils import PushIdGenerator
from ..logging_utils import get_store_logger
from .base import ErrorCallback, RemoteStore, Subscription, ValueCallback
from .tree import child_count, get_at, join_path, set_at, split_path

logger = get_store_logger("memory")


class _Listener:
    def __init__(self, segments: list[str], on_value: ValueCallback, on_error: ErrorCallback):
        self.segments = segments
        self.on_value = on_value
        self.on_error = on_error


class InMemoryRemoteStore(RemoteStore):
    """Remote store backed by a nested dict.

    Useful offline and in tests. ``writes`` records every mutation as
    (operation, path) tuples in call order.
    """

    def __init__(
        self,
        initial: Any = None,
        root_path: str = "",
        id_generator: PushIdGenerator | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            initial: Initial value of the whole tree
            root_path: Path all operations are relative to
            id_generator: Push ID generator (defaults to a fresh one)
        """
        self._tree: Any = set_at(None, [], initial)
        self.root_path = join_path(root_path)
        self._ids = id_generator or PushIdGenerator()
        self._listeners: list[_Listener] = []
        self._closed = False
        self.writes: list[tuple[str, str]] = []

    @property
    def tree(self) -> Any:
        """Deep copy of the whole tree."""
        return copy.deepcopy(self._tree)

    def _segments(self, path: str) -> list[str]:
        return split_path(join_path(self.root_path, path))

    def _check_open(self, operation: str, path: str) -> None:
        if self._closed:
            raise StoreError(operation, path, "store is closed")

    async def get(self, path: str) -> Any:
        self._check_open("get", path)
        return copy.deepcopy(get_at(self._tree, self._segments(path)))

    async def exists(self, path: str) -> bool:
        self._check_open("exists", path)
        return get_at(self._tree, self._segments(path)) is not None

    async def child_count(self, path: str) -> int:
        self._check_open("child_count", path)
        return child_count(get_at(self._tree, self._segments(path)))

    async def set(self, path: str, value: Any) -> None:
        self._check_open("set", path)
        await self._write("set", path, value)

    async def push(self, path: str, value: Any) -> str:
        self._check_open("push", path)
        key = self._ids.generate()
        await self._write("push", join_path(path, key), value)
        return key

    async def remove(self, path: str) -> None:
        self._check_open("remove", path)
        await self._write("remove", path, None)

    async def subscribe(
        self,
        path: str,
        on_value: ValueCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        self._check_open("subscribe", path)
        listener = _Listener(self._segments(path), on_value, on_error)
        self._listeners.append(listener)

        async def _cancel() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        await listener.on_value(copy.deepcopy(get_at(self._tree, listener.segments)))
        return Subscription(path, _cancel)

    async def fail_subscribers(self, error: StoreError) -> None:
        """Deliver an error to every subscriber and drop them."""
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            await listener.on_error(error)

    async def close(self) -> None:
        self._listeners.clear()
        self._closed = True

    async def _write(self, operation: str, path: str, value: Any) -> None:
        segments = self._segments(path)
        self._tree = set_at(self._tree, segments, value)
        self.writes.append((operation, join_path(path)))
        logger.debug(f"{operation} {'/'.join(segments)}")
        await self._notify(segments)

    async def _notify(self, changed: list[str]) -> None:
        for listener in list(self._listeners):
            prefix = min(len(changed), len(listener.segments))
            if changed[:prefix] != listener.segments[:prefix]:
                continue
            await listener.on_value(copy.deepcopy(get_at(self._tree, listener.segments)))
