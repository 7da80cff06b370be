"""
Result and handler types shared by the store and its callers.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .exceptions import AttendanceSyncError
from .schema import Record


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a store operation.

    Store operations never raise; failures are returned to the
    immediate caller with the error that caused them.

    Attributes:
        is_ok: True when the operation succeeded
        error: The failure, when is_ok is False
        record_id: Key the record was written under (create only)
    """

    is_ok: bool
    error: AttendanceSyncError | None = None
    record_id: str | None = None

    @classmethod
    def ok(cls, record_id: str | None = None) -> OperationResult:
        return cls(is_ok=True, record_id=record_id)

    @classmethod
    def failure(cls, error: AttendanceSyncError) -> OperationResult:
        return cls(is_ok=False, error=error)

    @property
    def message(self) -> str | None:
        """Failure message, None on success."""
        return self.error.message if self.error else None

    def raise_for_error(self) -> None:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        data: dict[str, Any] = {"is_ok": self.is_ok}
        if self.error is not None:
            data["error"] = self.error.message
            data["error_type"] = type(self.error).__name__
        if self.record_id is not None:
            data["record_id"] = self.record_id
        return data


@runtime_checkable
class ChangeHandler(Protocol):
    """Consumer notified with the full record list on every remote change.

    ``on_data_changed`` may be a plain function or a coroutine function.
    Handlers may also define ``on_error(error)`` to receive subscription
    failures.
    """

    def on_data_changed(self, records: list[Record]) -> Awaitable[None] | None: ...


def is_change_handler(handler: object) -> bool:
    """Check that a handler exposes a callable on_data_changed."""
    return handler is not None and callable(getattr(handler, "on_data_changed", None))
