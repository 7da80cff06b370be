"""
Migration types and data structures.

Defines the outcome of moving legacy local records into the
remote database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MigrationStatus(Enum):
    """Status of a migration run.

    PENDING means the run stopped early but may be retried;
    every other status marks the migration as done.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class MigrationResult:
    """Result of one migration run.

    Contains what was written and, on failure, why the run stopped.
    """

    status: MigrationStatus
    reason: str | None = None
    settings_migrated: bool = False
    attendance_migrated: int = 0
    attendance_total: int = 0

    # Timing
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Error info (if pending or failed)
    error_message: str | None = None
    error_details: dict[str, Any] = field(default_factory=dict)

    @property
    def done(self) -> bool:
        """Whether this outcome marks the migration as finished."""
        return self.status != MigrationStatus.PENDING

    @property
    def duration_seconds(self) -> float | None:
        """Calculate migration duration."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "status": self.status.value,
            "reason": self.reason,
            "settings_migrated": self.settings_migrated,
            "attendance_migrated": self.attendance_migrated,
            "attendance_total": self.attendance_total,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "error_message": self.error_message,
            "error_details": self.error_details,
        }
