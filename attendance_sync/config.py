"""
Store configuration.

Configuration can be provided directly, via environment variables,
or via the ``store`` section of a YAML settings file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

DEFAULT_ROOT_PATH = "absensi_data"
DEFAULT_LEGACY_KEY = "absensi_data"
DEFAULT_CONFIG_DIR = Path.home() / ".attendance_sync"


@dataclass
class StoreConfig:
    """Configuration for the synced attendance store.

    Environment Variables:
        ATTENDANCE_SYNC_DATABASE_URL: Realtime database URL (required)
        ATTENDANCE_SYNC_AUTH_TOKEN: Database secret or ID token
        ATTENDANCE_SYNC_ROOT_PATH: Root path of the data (default: absensi_data)
        ATTENDANCE_SYNC_LEGACY_KEY: Legacy local storage key (default: absensi_data)
        ATTENDANCE_SYNC_LOCAL_STORAGE: Path of the legacy local storage file
        ATTENDANCE_SYNC_REQUEST_TIMEOUT: Timeout for non-streaming requests (seconds)

    Attributes:
        database_url: Realtime database URL, e.g. https://my-app.firebaseio.com
        auth_token: Credential sent as the ``auth`` query parameter
        root_path: Path under which settings and attendance live
        legacy_key: Key of the legacy blob in local storage
        local_storage_path: JSON file backing the legacy local storage
        request_timeout: Total timeout for non-streaming requests, None for no timeout
    """

    database_url: str
    auth_token: str | None = None
    root_path: str = DEFAULT_ROOT_PATH
    legacy_key: str = DEFAULT_LEGACY_KEY
    local_storage_path: Path | None = None
    request_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ConfigurationError("database_url", "must not be empty")
        if not self.database_url.startswith(("http://", "https://")):
            raise ConfigurationError("database_url", "must be an http(s) URL")
        if self.local_storage_path is not None:
            self.local_storage_path = Path(self.local_storage_path).expanduser()
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigurationError("request_timeout", "must be positive")

    @property
    def resolved_local_storage_path(self) -> Path:
        """Local storage file, defaulting to ~/.attendance_sync/local_storage.json."""
        return self.local_storage_path or DEFAULT_CONFIG_DIR / "local_storage.json"

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Create config from environment variables.

        Raises:
            ConfigurationError: If ATTENDANCE_SYNC_DATABASE_URL is missing
                or a value is malformed
        """
        database_url = os.environ.get("ATTENDANCE_SYNC_DATABASE_URL")
        if not database_url:
            raise ConfigurationError(
                "database_url", "ATTENDANCE_SYNC_DATABASE_URL environment variable not set"
            )

        local_path = os.environ.get("ATTENDANCE_SYNC_LOCAL_STORAGE")
        return cls(
            database_url=database_url,
            auth_token=os.environ.get("ATTENDANCE_SYNC_AUTH_TOKEN"),
            root_path=os.environ.get("ATTENDANCE_SYNC_ROOT_PATH", DEFAULT_ROOT_PATH),
            legacy_key=os.environ.get("ATTENDANCE_SYNC_LEGACY_KEY", DEFAULT_LEGACY_KEY),
            local_storage_path=Path(local_path) if local_path else None,
            request_timeout=_parse_timeout(os.environ.get("ATTENDANCE_SYNC_REQUEST_TIMEOUT")),
        )

    @classmethod
    def from_file(cls, config_path: Path | None = None) -> StoreConfig:
        """Create config from the ``store`` section of a YAML settings file.

        ```yaml
        store:
          database_url: "https://my-app-default-rtdb.firebaseio.com"
          auth_token: "..."
          root_path: "absensi_data"
          legacy_key: "absensi_data"
          local_storage_path: "~/.attendance_sync/local_storage.json"
          request_timeout: 30
        ```

        Args:
            config_path: Path to settings.yaml. Defaults to ~/.attendance_sync/settings.yaml

        Raises:
            ConfigurationError: If the file is missing, unreadable or incomplete
        """
        path = config_path or DEFAULT_CONFIG_DIR / "settings.yaml"
        if not path.exists():
            raise ConfigurationError("config_path", f"{path} does not exist")

        try:
            content = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError("config_path", f"cannot read {path}: {e}") from e

        section: Any = content.get("store") if isinstance(content, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError("store", f"missing 'store' section in {path}")
        if not section.get("database_url"):
            raise ConfigurationError("database_url", f"not set in {path}")

        local_path = section.get("local_storage_path")
        timeout = section.get("request_timeout")
        return cls(
            database_url=str(section["database_url"]),
            auth_token=section.get("auth_token"),
            root_path=section.get("root_path", DEFAULT_ROOT_PATH),
            legacy_key=section.get("legacy_key", DEFAULT_LEGACY_KEY),
            local_storage_path=Path(local_path) if local_path else None,
            request_timeout=_parse_timeout(timeout),
        )


def _parse_timeout(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError("request_timeout", f"not a number: {value!r}") from e
