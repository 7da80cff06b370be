"""Tests for the in-memory remote store."""

from __future__ import annotations

from typing import Any

import pytest

from attendance_sync import InMemoryRemoteStore
from attendance_sync.exceptions import StoreError


class Recorder:
    def __init__(self) -> None:
        self.values: list[Any] = []
        self.errors: list[StoreError] = []

    async def on_value(self, value: Any) -> None:
        self.values.append(value)

    async def on_error(self, error: StoreError) -> None:
        self.errors.append(error)


class TestInMemoryRemoteStore:
    """Tests for InMemoryRemoteStore."""

    async def test_set_get_remove(self, remote: InMemoryRemoteStore) -> None:
        """Test basic write and read semantics."""
        await remote.set("settings/default_settings", {"value": 1})

        assert await remote.get("settings/default_settings") == {"value": 1}
        assert await remote.exists("settings/default_settings")

        await remote.remove("settings/default_settings")

        assert await remote.get("settings") is None
        assert not await remote.exists("settings/default_settings")

    async def test_get_returns_copy(self, remote: InMemoryRemoteStore) -> None:
        """Test that callers cannot mutate stored data."""
        await remote.set("settings/default_settings", {"value": 1})

        value = await remote.get("settings/default_settings")
        value["value"] = 99

        assert await remote.get("settings/default_settings") == {"value": 1}

    async def test_push_generates_ordered_keys(self, remote: InMemoryRemoteStore) -> None:
        """Test that pushed children enumerate in creation order."""
        keys = [await remote.push("attendance", {"n": i}) for i in range(5)]

        stored = await remote.get("attendance")

        assert list(stored) == keys
        assert await remote.child_count("attendance") == 5
        assert await remote.child_count("missing") == 0

    async def test_root_path_scopes_operations(self) -> None:
        """Test that paths are relative to the root path."""
        remote = InMemoryRemoteStore(root_path="absensi_data")

        await remote.set("settings/default_settings", {"value": 1})

        assert remote.tree == {"absensi_data": {"settings": {"default_settings": {"value": 1}}}}
        assert await remote.get("") == {"settings": {"default_settings": {"value": 1}}}

    async def test_subscribe_delivers_initial_and_changes(
        self, remote: InMemoryRemoteStore
    ) -> None:
        """Test that subscribers see the current value and every change."""
        recorder = Recorder()
        subscription = await remote.subscribe("", recorder.on_value, recorder.on_error)

        key = await remote.push("attendance", {"n": 1})
        await remote.remove(f"attendance/{key}")

        assert recorder.values == [None, {"attendance": {key: {"n": 1}}}, None]
        assert subscription.active

    async def test_subscription_filters_unrelated_paths(
        self, remote: InMemoryRemoteStore
    ) -> None:
        """Test that writes outside the subscribed path are not delivered."""
        recorder = Recorder()
        await remote.subscribe("attendance", recorder.on_value, recorder.on_error)

        await remote.set("settings/default_settings", {"value": 1})
        await remote.push("attendance", {"n": 1})

        assert len(recorder.values) == 2

    async def test_cancel_stops_delivery(self, remote: InMemoryRemoteStore) -> None:
        """Test that cancelled subscriptions receive nothing further."""
        recorder = Recorder()
        subscription = await remote.subscribe("", recorder.on_value, recorder.on_error)

        await subscription.cancel()
        await subscription.cancel()
        await remote.push("attendance", {"n": 1})

        assert recorder.values == [None]
        assert not subscription.active

    async def test_closed_store_rejects_operations(self, remote: InMemoryRemoteStore) -> None:
        """Test that a closed store raises StoreError."""
        await remote.close()

        with pytest.raises(StoreError):
            await remote.get("")

    async def test_writes_log(self, remote: InMemoryRemoteStore) -> None:
        """Test that every mutation is recorded."""
        key = await remote.push("/attendance/", {"n": 1})
        await remote.set("settings/default_settings", {"v": 1})
        await remote.remove(f"attendance/{key}")

        assert remote.writes == [
            ("push", f"attendance/{key}"),
            ("set", "settings/default_settings"),
            ("remove", f"attendance/{key}"),
        ]
