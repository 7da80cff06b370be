"""
Legacy local storage implementations.

JsonFileLocalStore persists the key-value pairs in one JSON object
file, e.g. an export of a browser's localStorage:

    {
      "absensi_data": "[{\\"type\\": \\"settings\\", ...}, ...]"
    }
"""

from __future__ import annotations

import json
from pathlib import Path

from .base import LegacyLocalStore
from .file_ops import read_json_object, write_json_atomic


class JsonFileLocalStore(LegacyLocalStore):
    """Local store backed by a single JSON object file.

    The file is re-read on every access so external edits are picked
    up; writes replace it atomically.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: JSON file holding the key-value pairs (created on first write)
        """
        self.path = Path(path)

    async def _load(self) -> dict[str, str]:
        data = await read_json_object(self.path) or {}
        return {
            str(key): value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
            for key, value in data.items()
        }

    async def get_item(self, key: str) -> str | None:
        return (await self._load()).get(key)

    async def set_item(self, key: str, value: str) -> None:
        items = await self._load()
        items[key] = value
        await write_json_atomic(self.path, items)

    async def remove_item(self, key: str) -> None:
        items = await self._load()
        if key not in items:
            return
        del items[key]
        await write_json_atomic(self.path, items)


class MemoryLocalStore(LegacyLocalStore):
    """Local store held in a dict, for tests and ephemeral use."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
