"""
Legacy local storage.

Provides the string key-value stores the migration reads legacy
records from.
"""

from .base import LegacyLocalStore
from .storage import JsonFileLocalStore, MemoryLocalStore

__all__ = [
    "LegacyLocalStore",
    "JsonFileLocalStore",
    "MemoryLocalStore",
]
