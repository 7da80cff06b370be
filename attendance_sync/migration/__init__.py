"""
Legacy data migration.

Moves records kept in legacy local storage into the remote
database, once.
"""

from .migrator import LegacyMigrator
from .types import MigrationResult, MigrationStatus

__all__ = [
    "LegacyMigrator",
    "MigrationResult",
    "MigrationStatus",
]
