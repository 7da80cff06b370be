"""
Firebase Realtime Database backend.

Talks to the database through its REST API:
- ``GET/PUT/POST/DELETE {database_url}/{path}.json`` for reads and writes
- ``shallow=true`` for existence checks and child counts
- ``print=silent`` so writes do not echo the stored value back
- the streaming API (Server-Sent Events) for change subscriptions

The stream sends ``put`` and ``patch`` events relative to the
subscribed path; the client applies them to a local mirror and hands
the full value to the subscriber after each one.
"""

from __future__ import annotations

import asyncio
import codecs
import copy
import json
from collections.abc import AsyncIterator, Mapping
from typing import Any
from urllib.parse import quote

import aiohttp

from ..config import StoreConfig
from ..exceptions import AuthenticationError, StorageConnectionError, StoreError
from ..logging_utils import get_store_logger
from .base import ErrorCallback, RemoteStore, Subscription, ValueCallback
from .tree import join_path, patch_at, set_at, split_path

logger = get_store_logger("firebase")

_NO_BODY = object()


class FirebaseRealtimeStore(RemoteStore):
    """Remote store backed by the Firebase Realtime Database REST API.

    Example:
        >>> store = FirebaseRealtimeStore(
        ...     database_url="https://my-app-default-rtdb.firebaseio.com",
        ...     root_path="absensi_data",
        ... )
        >>> key = await store.push("attendance", {"type": "attendance", "nama_lengkap": "A"})
        >>> await store.close()
    """

    def __init__(
        self,
        database_url: str,
        auth_token: str | None = None,
        root_path: str = "",
        request_timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            database_url: Database URL, e.g. https://my-app.firebaseio.com
            auth_token: Database secret or ID token, sent as ``auth``
            root_path: Path all operations are relative to
            request_timeout: Total timeout for non-streaming requests
            session: Optional shared aiohttp session (not closed by this store)
        """
        self.database_url = database_url.rstrip("/")
        self.auth_token = auth_token
        self.root_path = join_path(root_path)
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None
        self._streams: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(cls, config: StoreConfig) -> FirebaseRealtimeStore:
        """Create a store from a StoreConfig."""
        return cls(
            database_url=config.database_url,
            auth_token=config.auth_token,
            root_path=config.root_path,
            request_timeout=config.request_timeout,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout)
            )
            self._owns_session = True
        return self._session

    def _url(self, path: str) -> str:
        segments = split_path(join_path(self.root_path, path))
        return f"{self.database_url}/{'/'.join(quote(s, safe='') for s in segments)}.json"

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self.auth_token:
            params["auth"] = self.auth_token
        return params

    # =========================================================================
    # Reads and writes
    # =========================================================================

    async def get(self, path: str) -> Any:
        return await self._request("GET", "get", path)

    async def exists(self, path: str) -> bool:
        return await self._request("GET", "exists", path, params={"shallow": "true"}) is not None

    async def child_count(self, path: str) -> int:
        value = await self._request("GET", "child_count", path, params={"shallow": "true"})
        if isinstance(value, dict):
            return len(value)
        return 0

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self.remove(path)
            return
        await self._request("PUT", "set", path, body=value, params={"print": "silent"})

    async def push(self, path: str, value: Any) -> str:
        result = await self._request("POST", "push", path, body=value)
        if not isinstance(result, dict) or not result.get("name"):
            raise StoreError("push", path, f"unexpected push response: {result!r}")
        return str(result["name"])

    async def remove(self, path: str) -> None:
        await self._request("DELETE", "remove", path, params={"print": "silent"})

    async def _request(
        self,
        method: str,
        operation: str,
        path: str,
        body: Any = _NO_BODY,
        params: dict[str, str] | None = None,
    ) -> Any:
        session = await self._get_session()
        kwargs: dict[str, Any] = {"params": self._params(**(params or {}))}
        if body is not _NO_BODY:
            kwargs["data"] = json.dumps(body)
            kwargs["headers"] = {"Content-Type": "application/json"}

        try:
            async with session.request(method, self._url(path), **kwargs) as response:
                await _raise_for_status(response, operation, path)
                text = await response.text()
        except StoreError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageConnectionError(operation, path, cause=e) from e

        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreError(operation, path, "invalid JSON in response", cause=e) from e

    # =========================================================================
    # Streaming subscriptions
    # =========================================================================

    async def subscribe(
        self,
        path: str,
        on_value: ValueCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        session = await self._get_session()
        try:
            response = await session.get(
                self._url(path),
                params=self._params(),
                headers={"Accept": "text/event-stream"},
                timeout=aiohttp.ClientTimeout(),
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageConnectionError("subscribe", path, cause=e) from e

        try:
            await _raise_for_status(response, "subscribe", path)
        except StoreError:
            response.close()
            raise

        task = asyncio.create_task(self._read_stream(response, path, on_value, on_error))
        self._streams.add(task)
        task.add_done_callback(self._streams.discard)
        logger.info(f"Subscribed to {self._url(path)}")

        async def _cancel() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        return Subscription(path, _cancel)

    async def _read_stream(
        self,
        response: aiohttp.ClientResponse,
        path: str,
        on_value: ValueCallback,
        on_error: ErrorCallback,
    ) -> None:
        mirror: Any = None
        try:
            async for event_type, data in iter_sse_events(response.content):
                if event_type in ("put", "patch"):
                    payload = json.loads(data)
                    segments = split_path(payload["path"])
                    if event_type == "put":
                        mirror = set_at(mirror, segments, payload["data"])
                    else:
                        updates = payload["data"]
                        if not isinstance(updates, Mapping):
                            raise StoreError("subscribe", path, "malformed stream event")
                        mirror = patch_at(mirror, segments, updates)
                    await on_value(copy.deepcopy(mirror))
                elif event_type == "keep-alive":
                    continue
                elif event_type == "cancel":
                    raise StoreError("subscribe", path, f"subscription cancelled by server: {data}")
                elif event_type == "auth_revoked":
                    raise AuthenticationError("subscribe", path, "credential revoked")
                else:
                    logger.debug(f"Ignoring stream event: {event_type}")
            raise StorageConnectionError("subscribe", path, "event stream closed by server")
        except asyncio.CancelledError:
            raise
        except StoreError as e:
            await on_error(e)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await on_error(StorageConnectionError("subscribe", path, cause=e))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            await on_error(StoreError("subscribe", path, "malformed stream event", cause=e))
        except Exception as e:
            logger.exception("Unexpected error reading event stream")
            await on_error(StoreError("subscribe", path, cause=e))
        finally:
            response.close()

    async def close(self) -> None:
        """Cancel open streams and close the HTTP session."""
        streams = list(self._streams)
        for task in streams:
            task.cancel()
        for task in streams:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


async def _raise_for_status(
    response: aiohttp.ClientResponse, operation: str, path: str
) -> None:
    """Map HTTP error statuses to store exceptions."""
    if response.status < 400:
        return

    body = await response.text()
    message = _error_message(body) or response.reason or f"HTTP {response.status}"
    if response.status in (401, 403):
        raise AuthenticationError(operation, path, message)
    if response.status == 429 or response.status >= 500:
        raise StorageConnectionError(operation, path, message)
    raise StoreError(operation, path, message)


def _error_message(body: str) -> str | None:
    """Extract the message from an error body like {"error": "Permission denied"}."""
    body = body.strip()
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body[:200]
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    return body[:200]


async def iter_sse_events(content: Any) -> AsyncIterator[tuple[str, str]]:
    """Parse a Server-Sent Events byte stream into (event, data) pairs."""
    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""

    async for chunk in content.iter_any():
        buffer = (buffer + decoder.decode(chunk)).replace("\r\n", "\n")

        while "\n\n" in buffer:
            event_str, buffer = buffer.split("\n\n", 1)
            event = parse_sse_event(event_str)
            if event:
                yield event


def parse_sse_event(event_str: str) -> tuple[str, str] | None:
    """Parse a single SSE event block.

    Returns:
        (event type, data) or None for comment-only blocks
    """
    event_type = None
    data_lines: list[str] = []

    for line in event_str.split("\n"):
        if line.startswith(":"):
            continue
        if line.startswith("event:"):
            event_type = line[6:].strip()
        elif line.startswith("data:"):
            data_lines.append(line[5:].strip())

    if event_type is None and not data_lines:
        return None
    return event_type or "message", "\n".join(data_lines)
