"""
Tree operations on database values.

Pure helpers shared by the in-memory store and the streaming client,
which both keep a local mirror of the remote tree. They follow the
database's storage rules:

- writing None to a path deletes it
- objects left empty after a write are removed from their parent
- children enumerate in key order (see ``id_utils.key_order``)
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from ..id_utils import key_order


def split_path(path: str) -> list[str]:
    """Split a slash-separated path into segments, ignoring empty ones."""
    return [segment for segment in path.split("/") if segment]


def join_path(*parts: str) -> str:
    """Join path parts, normalising slashes."""
    segments: list[str] = []
    for part in parts:
        segments.extend(split_path(part))
    return "/".join(segments)


def normalize(value: Any) -> Any:
    """Deep-copy a value the way the database would store it.

    None values and empty objects disappear; objects come back in
    key order.
    """
    if isinstance(value, Mapping):
        result = {}
        for key, child in sorted(value.items(), key=lambda item: key_order(str(item[0]))):
            child = normalize(child)
            if child is not None:
                result[str(key)] = child
        return result or None
    if isinstance(value, list):
        return [normalize(item) for item in value]
    return copy.deepcopy(value)


def _put_child(node: dict, key: str, value: Any) -> None:
    """Set a child and keep the node's children in key order."""
    is_new = key not in node
    node[key] = value
    if is_new:
        items = sorted(node.items(), key=lambda item: key_order(item[0]))
        node.clear()
        node.update(items)


def get_at(tree: Any, segments: list[str]) -> Any:
    """Return the value at a path, or None when absent."""
    node = tree
    for segment in segments:
        if not isinstance(node, Mapping) or segment not in node:
            return None
        node = node[segment]
    return node


def set_at(tree: Any, segments: list[str], value: Any) -> Any:
    """Write a value at a path and return the new root.

    The tree is modified in place where possible; callers must use the
    returned root since writing at the root replaces it.
    """
    cleaned = normalize(value)
    if not segments:
        return cleaned

    root = tree if isinstance(tree, dict) else {}
    node = root
    parents: list[tuple[dict, str]] = []
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            if cleaned is None:
                # Nothing to delete below a missing node
                return root or None
            child = {}
            _put_child(node, segment, child)
        parents.append((node, segment))
        node = child

    leaf = segments[-1]
    if cleaned is None:
        node.pop(leaf, None)
    else:
        _put_child(node, leaf, cleaned)

    for parent, key in reversed(parents):
        if parent[key]:
            break
        del parent[key]

    return root or None


def patch_at(tree: Any, segments: list[str], updates: Mapping[str, Any]) -> Any:
    """Apply a multi-child update below a path and return the new root.

    Update keys may themselves be slash-separated paths.
    """
    for key, value in updates.items():
        tree = set_at(tree, segments + split_path(str(key)), value)
    return tree


def child_count(value: Any) -> int:
    """Number of children of a node; leaves and missing nodes have none."""
    if isinstance(value, Mapping):
        return len(value)
    return 0


def shallow(value: Any) -> Any:
    """Shallow view of a node: child keys mapped to True, leaves as-is."""
    if isinstance(value, Mapping):
        return {key: True for key in value}
    return value
