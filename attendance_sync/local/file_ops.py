"""
Atomic JSON file access for the legacy local storage file.

The file holds a single JSON object. Writes land in a sibling temp
file that is fsynced and renamed over the target, so a reader sees
either the old object or the new one.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import LocalStorageError


async def read_json_object(path: Path) -> dict[str, Any] | None:
    """Load the JSON object stored in a file.

    Returns:
        The object, or None when the file is missing or blank

    Raises:
        LocalStorageError: If the file is unreadable, not JSON, or not an object
    """
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise LocalStorageError("read", str(path), e) from e

    if not content.strip():
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise LocalStorageError("parse", str(path), e) from e
    if not isinstance(data, dict):
        raise LocalStorageError("parse", str(path), ValueError("expected a JSON object"))
    return data


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Replace a file with the JSON encoding of ``data``.

    Parent directories are created as needed.
    """
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise LocalStorageError("encode", str(path), e) from e

    try:
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".json")
    except OSError as e:
        raise LocalStorageError("write", str(path), e) from e

    os.close(fd)
    try:
        async with aiofiles.open(temp_name, "w", encoding="utf-8") as f:
            await f.write(payload)
            await f.flush()
            os.fsync(f.fileno())
        await aiofiles.os.rename(temp_name, path)
    except OSError as e:
        try:
            await aiofiles.os.remove(temp_name)
        except OSError:
            pass
        raise LocalStorageError("write", str(path), e) from e
