"""Tests for DeliveryChannelManager."""

import asyncio
import logging
from datetime import datetime, timezone

import pytest

from workroom.delivery import ChannelState, DeliveryChannelManager
from workroom.models import ChannelEvent, Message


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll until predicate() holds or fail."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
async def manager(api, push, settings):
    dm = DeliveryChannelManager(api.room_id, api, push, settings)
    yield dm
    await dm.stop()


class TestInitialSync:
    """Tests for start() and the first fetch."""

    @pytest.mark.asyncio
    async def test_history_loaded_in_order(self, manager, api):
        api.add_record("one")
        api.add_record("two")
        api.add_record("three")

        await manager.start()

        assert manager.state is ChannelState.LIVE
        assert [m.text for m in manager.messages] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_all_pages_fetched(self, api, push, settings):
        for i in range(7):
            api.add_record(f"m{i}")
        settings.history_page_size = 3
        dm = DeliveryChannelManager(api.room_id, api, push, settings)

        await dm.start()
        try:
            assert [m.text for m in dm.messages] == [f"m{i}" for i in range(7)]
        finally:
            await dm.stop()

    @pytest.mark.asyncio
    async def test_page_cap_logs_truncation(self, api, push, settings, caplog):
        for i in range(7):
            api.add_record(f"m{i}")
        settings.history_page_size = 3
        settings.max_history_pages = 2
        dm = DeliveryChannelManager(api.room_id, api, push, settings)

        with caplog.at_level(logging.WARNING, logger="workroom.delivery.channel"):
            await dm.start()
        try:
            assert [m.text for m in dm.messages] == [f"m{i}" for i in range(1, 7)]
            assert "History truncated" in caplog.text
        finally:
            await dm.stop()

    @pytest.mark.asyncio
    async def test_initial_failure_is_not_fatal(self, manager, api):
        api.fail_list = True

        await manager.start()

        assert manager.state is ChannelState.LIVE
        assert manager.messages == []

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, manager, api, push):
        await manager.start()
        await manager.start()

        assert push.handler_count(ChannelEvent.MESSAGE_NEW) == 1


class TestPushDelivery:
    """Tests for messages arriving over push."""

    @pytest.mark.asyncio
    async def test_push_appends(self, manager, push):
        await manager.start()

        await push.emit(
            ChannelEvent.MESSAGE_NEW,
            {"_id": "p1", "workroomId": "room1", "sender": "worker_1", "text": "hello",
             "createdAt": "2024-05-01T11:00:00Z"},
        )

        await wait_for(lambda: len(manager.messages) == 1)
        assert manager.messages[0].text == "hello"

    @pytest.mark.asyncio
    async def test_other_room_ignored(self, manager, push):
        await manager.start()

        await push.emit(ChannelEvent.MESSAGE_NEW, {"_id": "p1", "workroomId": "elsewhere"})
        await asyncio.sleep(0.05)

        assert manager.messages == []

    @pytest.mark.asyncio
    async def test_push_then_reconcile_dedupes(self, manager, api, push):
        await manager.start()
        record = api.add_record("once")

        await push.emit(ChannelEvent.MESSAGE_NEW, dict(record))
        await wait_for(lambda: len(manager.messages) == 1)
        await manager.sync()

        assert [m.id for m in manager.messages] == [record["_id"]]

    @pytest.mark.asyncio
    async def test_push_before_initial_fetch_completes(self, api, push, settings):
        gate = asyncio.Event()
        original = api.list_messages

        async def slow_list(*args, **kwargs):
            await gate.wait()
            return await original(*args, **kwargs)

        api.list_messages = slow_list
        api.add_record("history")
        dm = DeliveryChannelManager(api.room_id, api, push, settings)
        starting = asyncio.create_task(dm.start())
        await asyncio.sleep(0.01)

        await push.emit(
            ChannelEvent.MESSAGE_NEW,
            {"_id": "live", "workroomId": "room1", "text": "early", "createdAt": "2024-05-02T00:00:00Z"},
        )
        gate.set()
        await starting
        try:
            await wait_for(lambda: len(dm.messages) == 2)
            assert [m.text for m in dm.messages] == ["history", "early"]
        finally:
            await dm.stop()


class TestReconciliation:
    """Tests for the fixed-interval refetch."""

    @pytest.mark.asyncio
    async def test_converges_after_one_tick(self, manager, api, settings):
        ticks = []
        seen = []

        async def hook():
            ticks.append(1)
            seen.append(len(manager.messages))

        manager.add_reconcile_hook(hook)
        await manager.start()
        api.add_record("missed by push")

        await wait_for(lambda: ticks, timeout=settings.reconcile_interval * 1.5 + 0.5)

        # The first tick alone brought the view up to date
        assert seen[0] == 1

    @pytest.mark.asyncio
    async def test_failures_retry_next_tick(self, manager, api):
        api.fail_list = True
        await manager.start()
        api.add_record("later")
        await asyncio.sleep(0.12)

        assert manager.state is ChannelState.LIVE
        api.fail_list = False

        await wait_for(lambda: len(manager.messages) == 1, timeout=1.0)

    @pytest.mark.asyncio
    async def test_hooks_run_each_tick(self, manager):
        calls = []

        async def hook():
            calls.append(1)

        manager.add_reconcile_hook(hook)
        await manager.start()

        await wait_for(lambda: len(calls) >= 2, timeout=1.0)

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_stop_timer(self, manager, api):
        async def hook():
            raise RuntimeError("hook broke")

        manager.add_reconcile_hook(hook)
        await manager.start()
        api.add_record("still arrives")

        await wait_for(lambda: len(manager.messages) == 1, timeout=1.0)


class TestLocalDelivery:
    """Tests for locally confirmed messages."""

    @pytest.mark.asyncio
    async def test_deliver_then_push_same_id(self, manager, push):
        await manager.start()
        confirmed = Message(
            id="c1", sender_id="client_1", text="mine",
            timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

        assert await manager.deliver(confirmed)
        await push.emit(
            ChannelEvent.MESSAGE_NEW,
            {"_id": "c1", "workroomId": "room1", "text": "mine", "sender": "client_1"},
        )
        await asyncio.sleep(0.05)

        assert len(manager.messages) == 1
        assert not await manager.deliver(confirmed)

    @pytest.mark.asyncio
    async def test_listeners_get_full_view(self, manager, api):
        views = []
        manager.add_listener(views.append)
        api.add_record("a")

        await manager.start()

        assert [m.text for m in views[-1]] == ["a"]


class TestStop:
    """Tests for stop()."""

    @pytest.mark.asyncio
    async def test_stop_releases_everything(self, manager, api, push):
        await manager.start()

        await manager.stop()
        calls = api.list_calls
        api.add_record("after stop")
        await asyncio.sleep(0.15)

        assert manager.state is ChannelState.CLOSED
        assert push.handler_count(ChannelEvent.MESSAGE_NEW) == 0
        assert api.list_calls == calls
        assert manager.messages == []

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, manager):
        await manager.start()

        await manager.stop()
        await manager.stop()

        assert manager.state is ChannelState.CLOSED

    @pytest.mark.asyncio
    async def test_stop_resolves_queued_deliveries(self, manager):
        stalled = asyncio.Event()

        async def stuck_consumer():
            await stalled.wait()

        manager._consume = stuck_consumer
        await manager.start()
        confirmed = Message(
            id="c1", sender_id="client_1", text="mine",
            timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )
        pending = asyncio.create_task(manager.deliver(confirmed))
        await asyncio.sleep(0.01)

        await manager.stop()

        assert await pending is False
