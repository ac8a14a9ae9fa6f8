"""End-to-end tests: client sessions against the backend over ASGI."""

import asyncio

import httpx
import pytest

from workroom import (
    DisabledPushChannel,
    PendingFile,
    RoomLockedError,
    RoomPhase,
    WorkroomApiClient,
    WorkroomSession,
)
from workroom.api import create_fastapi_app
from workroom.clients.push import PushChannelBase
from workroom.config import WorkroomSettings
from workroom.errors import CollaboratorError
from workroom.models import ChannelEvent, PushEvent

BASE_URL = "http://test"


class HubPushChannel(PushChannelBase):
    """Push channel wired straight into the backend's RoomHub."""

    def __init__(self, hub, room_id: str, user_id: str):
        super().__init__()
        self._hub = hub
        self._room_id = room_id
        self._user_id = user_id
        self._conn = None

    async def send_json(self, data) -> None:
        envelope = PushEvent.from_wire(data)
        if envelope is not None:
            await self.dispatch(envelope)

    async def connect(self) -> None:
        self._conn = self._hub.register(self, self._user_id)
        self._hub.join(self._conn, self._room_id)

    async def close(self) -> None:
        if self._conn is not None:
            self._hub.leave(self._conn)
            self._conn = None

    async def send(self, event: ChannelEvent, data: dict) -> None:
        await self._hub.broadcast(self._room_id, event, data, exclude=self._conn)


async def wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def tick_counter(session) -> list:
    """Record each completed reconciliation tick of a session."""
    ticks = []

    async def count():
        ticks.append(1)

    session._delivery.add_reconcile_hook(count)
    return ticks


@pytest.fixture
async def http(application):
    transport = httpx.ASGITransport(app=create_fastapi_app(application))
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def fast_settings():
    return WorkroomSettings(
        api_base=BASE_URL, reconcile_interval=0.05, typing_timeout=0.3
    )


@pytest.fixture
async def room_id(http):
    response = await http.post(
        "/api/workrooms",
        json={"worker_id": "worker_1", "title": "Logo"},
        headers={"X-User-Id": "client_1"},
    )
    return response.json()["workroomId"]


def api_for(http, user_id: str) -> WorkroomApiClient:
    return WorkroomApiClient(BASE_URL, user_id=user_id, client=http)


class TestWorkroomEndToEnd:
    """Two parties in one room."""

    @pytest.mark.asyncio
    async def test_chat_typing_and_finalise(self, application, http, room_id, fast_settings):
        hub = application.hub
        async with WorkroomSession(
            room_id, api_for(http, "client_1"), HubPushChannel(hub, room_id, "client_1"), fast_settings
        ) as client, WorkroomSession(
            room_id, api_for(http, "worker_1"), HubPushChannel(hub, room_id, "worker_1"), fast_settings
        ) as worker:
            assert client.meta.role.value == "client"
            assert worker.meta.role.value == "worker"

            worker.composer.text = "Draft attached"
            worker.composer.add_file(PendingFile("draft.png", b"\x89PNG", "image/png"))
            sent = await worker.composer.submit()

            await wait_for(lambda: sent.id in [m.id for m in client.messages])
            received = client.delivery.messages[-1]
            assert received.sender_id == "worker_1"
            assert received.attachments[0].name == "draft.png"

            await client.send_typing()
            await wait_for(lambda: worker.typing.is_partner_typing)
            assert not client.typing.is_partner_typing

            await client.handshake.finalise()
            await wait_for(lambda: worker.handshake.phase is RoomPhase.ONE_PARTY_FINALISED)

            await worker.handshake.finalise()
            await wait_for(lambda: client.tracker.is_locked)
            assert client.tracker.state.finalised_at == worker.tracker.state.finalised_at

            client.composer.text = "after lock"
            with pytest.raises(RoomLockedError):
                await client.composer.submit()

    @pytest.mark.asyncio
    async def test_push_disabled_converges_by_reconciliation(self, http, room_id, fast_settings):
        async with WorkroomSession(
            room_id, api_for(http, "client_1"), DisabledPushChannel(), fast_settings
        ) as client, WorkroomSession(
            room_id, api_for(http, "worker_1"), DisabledPushChannel(), fast_settings
        ) as worker:
            ticks = tick_counter(client)

            worker.composer.text = "no push here"
            sent = await worker.composer.submit()
            # One tick may already be in flight; the next one starts after the write
            target = len(ticks) + 2
            await wait_for(lambda: len(ticks) >= target)
            assert sent.id in [m.id for m in client.messages]

            await worker.handshake.finalise()
            target = len(ticks) + 2
            await wait_for(lambda: len(ticks) >= target)
            assert client.handshake.phase is RoomPhase.ONE_PARTY_FINALISED

    @pytest.mark.asyncio
    async def test_server_lock_wins_over_stale_view(self, http, room_id):
        settings = WorkroomSettings(api_base=BASE_URL, reconcile_interval=60)
        async with WorkroomSession(
            room_id, api_for(http, "client_1"), DisabledPushChannel(), settings
        ) as client:
            for user in ("client_1", "worker_1"):
                await http.post(f"/api/workrooms/{room_id}/finalise", headers={"X-User-Id": user})
            assert not client.tracker.is_locked

            client.composer.text = "stale view"
            with pytest.raises(RoomLockedError):
                await client.composer.submit()

            assert client.composer.text == "stale view"

    @pytest.mark.asyncio
    async def test_stranger_cannot_enter(self, http, room_id, fast_settings):
        session = WorkroomSession(
            room_id, api_for(http, "someone"), DisabledPushChannel(), fast_settings
        )

        with pytest.raises(CollaboratorError) as exc_info:
            await session.enter()

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_session_never_deletes(self, http, room_id, fast_settings):
        methods = []

        async def record(request):
            methods.append(request.method)

        http.event_hooks["request"].append(record)
        async with WorkroomSession(
            room_id, api_for(http, "client_1"), DisabledPushChannel(), fast_settings
        ) as client:
            client.composer.text = "hello"
            await client.composer.submit()
            await client.handshake.finalise()

        assert "DELETE" not in methods
        assert {"GET", "POST"} <= set(methods)
