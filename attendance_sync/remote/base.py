"""
Abstract remote store interface.

Defines the contract that remote database backends must implement.
Paths are slash-separated and relative to the backend's root path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from ..exceptions import StoreError

ValueCallback = Callable[[Any], Awaitable[None]]
ErrorCallback = Callable[[StoreError], Awaitable[None]]


class Subscription:
    """Handle for an active change subscription.

    Cancelling is idempotent.
    """

    def __init__(self, path: str, on_cancel: Callable[[], Awaitable[None]]) -> None:
        self.path = path
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def cancel(self) -> None:
        """Stop receiving change notifications."""
        if not self._active:
            return
        self._active = False
        await self._on_cancel()


class RemoteStore(ABC):
    """Abstract base class for remote document-tree stores.

    All implementations must provide:
    - Whole-value reads, existence checks and child counts
    - Overwriting writes, push with generated keys, and removal
    - Change subscriptions delivering the full value after every mutation
    """

    @abstractmethod
    async def get(self, path: str) -> Any:
        """Read the value at a path.

        Returns:
            The stored value, or None when nothing is stored there
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a value is stored at a path."""
        pass

    @abstractmethod
    async def child_count(self, path: str) -> int:
        """Count the children stored under a path.

        Returns:
            Number of children, 0 when the path is empty or a leaf
        """
        pass

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """Overwrite the value at a path. Writing None removes it."""
        pass

    @abstractmethod
    async def push(self, path: str, value: Any) -> str:
        """Append a value under a newly generated key.

        Returns:
            The generated key
        """
        pass

    @abstractmethod
    async def remove(self, path: str) -> None:
        """Remove the value at a path."""
        pass

    @abstractmethod
    async def subscribe(
        self,
        path: str,
        on_value: ValueCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Subscribe to changes below a path.

        ``on_value`` receives the full current value once after registration
        and again after every mutation. ``on_error`` receives at most one
        error, after which the subscription is dead.

        Raises:
            StoreError: If the subscription cannot be registered
        """
        pass

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
        pass
