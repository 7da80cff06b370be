"""
Abstract legacy local storage interface.

A string key-value store with the shape of browser ``localStorage``:
values are opaque strings, absent keys read as None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class LegacyLocalStore(ABC):
    """Abstract base class for local key-value stores."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Read the string stored under a key, None when absent."""
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store a string under a key, replacing any previous value."""
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass

    async def close(self) -> None:
        """Release resources. Default: nothing to release."""
        pass
