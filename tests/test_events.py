"""Tests for EventEmitter."""
import asyncio
import logging

import pytest

from guestupload.utils.events import EventEmitter


@pytest.mark.asyncio
async def test_emit_calls_sync_and_async_listeners_in_order():
    events = EventEmitter()
    calls = []

    async def async_listener(value):
        calls.append(("async", value))

    events.on("done", lambda value: calls.append(("sync", value)))
    events.on("done", async_listener)

    await events.emit("done", 1)

    assert calls == [("sync", 1), ("async", 1)]


@pytest.mark.asyncio
async def test_listener_errors_are_not_raised():
    events = EventEmitter()
    calls = []

    def broken(_):
        raise ValueError("boom")

    events.on("done", broken)
    events.on("done", calls.append)

    await events.emit("done", "x")
    events.emit_sync("done", "y")

    assert calls == ["x", "y"]


@pytest.mark.asyncio
async def test_emit_sync_schedules_coroutine_listeners():
    events = EventEmitter()
    seen = asyncio.Event()

    async def listener():
        seen.set()

    events.on("tick", listener)
    events.emit_sync("tick")

    await asyncio.wait_for(seen.wait(), timeout=1)


@pytest.mark.asyncio
async def test_failing_coroutine_listener_is_logged(caplog):
    events = EventEmitter()

    async def listener(value):
        raise RuntimeError("listener boom")

    events.on("snapshot", listener)

    with caplog.at_level(logging.ERROR, logger="guestupload.utils.events"):
        events.emit_sync("snapshot", 1)
        await events.drain()
        await asyncio.sleep(0)

    messages = [record.getMessage() for record in caplog.records]
    assert any("Error in event listener for snapshot: listener boom" in m for m in messages)
    assert not any("never retrieved" in m for m in messages)


@pytest.mark.asyncio
async def test_drain_waits_for_scheduled_listeners():
    events = EventEmitter()
    seen = []

    async def listener(value):
        await asyncio.sleep(0.01)
        seen.append(value)

    events.on("tick", listener)
    events.emit_sync("tick", 1)
    events.emit_sync("tick", 2)

    await events.drain()

    assert sorted(seen) == [1, 2]


def test_on_off_and_duplicates():
    events = EventEmitter()

    def listener():
        pass

    events.on("tick", listener)
    events.on("tick", listener)
    assert events.has_listeners("tick")

    events.off("tick", listener)
    assert not events.has_listeners("tick")
    events.off("missing", listener)
