"""
Custom exceptions for attendance sync.

All store implementations should raise these exceptions
for consistent error handling across remote and local backends.
"""


class AttendanceSyncError(Exception):
    """Base exception for all attendance sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AlreadyInitializedError(AttendanceSyncError):
    """Raised when init is called on a store that is already initialized."""

    def __init__(self) -> None:
        super().__init__("Store already initialized")


class NotInitializedError(AttendanceSyncError):
    """Raised when an operation runs before init."""

    def __init__(self, operation: str):
        super().__init__(f"Store not initialized: cannot {operation}", {"operation": operation})
        self.operation = operation


class InvalidHandlerError(AttendanceSyncError):
    """Raised when a change handler lacks a callable on_data_changed."""

    def __init__(self, handler: object):
        super().__init__(
            "Invalid data handler: on_data_changed must be callable",
            {"handler_type": type(handler).__name__},
        )


class InvalidRecordError(AttendanceSyncError):
    """Raised when a record is not a mapping or misses a required field."""

    def __init__(self, operation: str, reason: str, field: str | None = None):
        details = {"operation": operation, "reason": reason}
        if field:
            details["field"] = field
        super().__init__(f"Invalid record for {operation}: {reason}", details)
        self.operation = operation
        self.reason = reason
        self.field = field


class StoreError(AttendanceSyncError):
    """Raised when a remote store operation fails.

    Carries the underlying failure message so callers can surface it as-is.
    """

    retryable = False

    def __init__(
        self,
        operation: str,
        path: str | None = None,
        message: str | None = None,
        cause: Exception | None = None,
    ):
        reason = message or (str(cause) if cause else None) or "remote store failure"
        details = {"operation": operation, "reason": reason}
        if path is not None:
            details["path"] = path
        if cause:
            details["cause"] = type(cause).__name__
        super().__init__(reason, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(StoreError):
    """Raised when the remote store cannot be reached.

    Covers connection failures, timeouts, server errors and dropped
    event streams. These are transient and worth retrying later.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    retryable = True


class AuthenticationError(StoreError):
    """Raised when the remote store rejects the configured credentials."""


class MigrationParseError(AttendanceSyncError):
    """Raised when the legacy local blob is not valid JSON."""

    def __init__(self, key: str, cause: Exception | None = None):
        details = {"key": key}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Cannot parse legacy data stored under '{key}'", details)
        self.key = key
        self.cause = cause


class LocalStorageError(AttendanceSyncError):
    """Raised when a local storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Local storage error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class ConfigurationError(AttendanceSyncError):
    """Raised when store configuration is missing or invalid."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid configuration for {field}: {reason}",
            {"field": field, "reason": reason},
        )
        self.field = field
        self.reason = reason
