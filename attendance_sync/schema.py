"""
Collection schema for the attendance database.

Describes the logical collections stored under the root path so that
write routing and snapshot projection are driven by one table:

    {root}/
      settings/
        default_settings      singleton record
      attendance/
        {push_id}             one record per child
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .logging_utils import get_store_logger

logger = get_store_logger("schema")

Record = dict[str, Any]

SETTINGS_TYPE = "settings"
ATTENDANCE_TYPE = "attendance"
DEFAULT_SETTINGS_ID = "default_settings"


class CollectionKind(Enum):
    """How records are keyed inside a collection."""

    SINGLETON = "singleton"
    KEYED = "keyed"


@dataclass(frozen=True)
class CollectionSpec:
    """One logical collection under the root path.

    Attributes:
        name: Path segment of the collection below the root
        record_type: Value of the record ``type`` field routed here
        kind: SINGLETON (one fixed key) or KEYED (one child per record)
        singleton_key: Fixed child key for SINGLETON collections
    """

    name: str
    record_type: str
    kind: CollectionKind
    singleton_key: str | None = None

    def __post_init__(self) -> None:
        if self.kind == CollectionKind.SINGLETON and not self.singleton_key:
            raise ValueError(f"Singleton collection '{self.name}' needs a singleton_key")

    @property
    def is_singleton(self) -> bool:
        return self.kind == CollectionKind.SINGLETON

    def item_path(self, record_id: str | None = None) -> str:
        """Path of one record, relative to the root.

        Singletons default to their fixed key when no id is given.
        """
        key = record_id or self.singleton_key
        if not key:
            raise ValueError(f"Collection '{self.name}' needs a record id")
        return f"{self.name}/{key}"

    def project(self, value: Any) -> list[Record]:
        """Flatten this collection's part of a snapshot into records."""
        if not isinstance(value, Mapping):
            return []

        if self.is_singleton:
            stored = value.get(self.singleton_key)
            if stored is None:
                return []
            if not isinstance(stored, Mapping):
                logger.warning(f"Skipping non-object record at {self.item_path()}")
                return []
            record = dict(stored)
            record["id"] = self.singleton_key
            record.setdefault("type", self.record_type)
            return [record]

        records: list[Record] = []
        for key, stored in value.items():
            if not isinstance(stored, Mapping):
                logger.warning(f"Skipping non-object record at {self.name}/{key}")
                continue
            record = dict(stored)
            record["id"] = key
            records.append(record)
        return records


@dataclass(frozen=True)
class StoreSchema:
    """Ordered set of collections plus the routing fallback.

    Record types without a collection of their own are routed to the
    collection named by ``fallback_type``.
    """

    collections: tuple[CollectionSpec, ...]
    fallback_type: str = ATTENDANCE_TYPE

    def __post_init__(self) -> None:
        if not any(entry.record_type == self.fallback_type for entry in self.collections):
            raise ValueError(f"Fallback type '{self.fallback_type}' has no collection")

    def for_type(self, record_type: str) -> CollectionSpec:
        """Resolve the collection a record type is written to."""
        for entry in self.collections:
            if entry.record_type == record_type:
                return entry
        return self.collection(self.fallback_type)

    def collection(self, record_type: str) -> CollectionSpec:
        """Return the collection registered for exactly this type.

        Raises:
            KeyError: If no collection holds this record type
        """
        for entry in self.collections:
            if entry.record_type == record_type:
                return entry
        raise KeyError(record_type)

    def build_projection(self, snapshot: Any) -> list[Record]:
        """Build the flat, ordered record list for a root snapshot.

        Collections are emitted in schema order; children of keyed
        collections keep the snapshot's enumeration order.
        """
        if not isinstance(snapshot, Mapping):
            return []

        records: list[Record] = []
        for entry in self.collections:
            records.extend(entry.project(snapshot.get(entry.name)))
        return records


DEFAULT_SCHEMA = StoreSchema(
    collections=(
        CollectionSpec(
            name="settings",
            record_type=SETTINGS_TYPE,
            kind=CollectionKind.SINGLETON,
            singleton_key=DEFAULT_SETTINGS_ID,
        ),
        CollectionSpec(
            name="attendance",
            record_type=ATTENDANCE_TYPE,
            kind=CollectionKind.KEYED,
        ),
    ),
)


def strip_id(record: Mapping[str, Any]) -> Record:
    """Copy a record without its ``id`` field.

    The id is the record's key in the database, never part of the stored payload.
    """
    payload = dict(record)
    payload.pop("id", None)
    return payload
