"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from workroom.clients.push import PushChannelBase  # noqa: E402
from workroom.config import WorkroomSettings  # noqa: E402
from workroom.errors import CollaboratorError, PushChannelError  # noqa: E402
from workroom.models import (  # noqa: E402
    ChannelEvent,
    MessagePage,
    PushEvent,
    Role,
    RoomMeta,
    RoomState,
)


class FakePushChannel(PushChannelBase):
    """In-process push channel; tests inject events with emit()."""

    def __init__(self, fail_connect: bool = False, fail_send: bool = False):
        super().__init__()
        self.fail_connect = fail_connect
        self.fail_send = fail_send
        self.connected = False
        self.closed = 0
        self.sent: list[tuple[ChannelEvent, dict]] = []

    async def connect(self) -> None:
        if self.fail_connect:
            raise PushChannelError("connect refused")
        self.connected = True

    async def close(self) -> None:
        self.connected = False
        self.closed += 1

    async def send(self, event: ChannelEvent, data: dict) -> None:
        if self.fail_send:
            raise PushChannelError("send failed")
        self.sent.append((event, data))

    async def emit(self, event: ChannelEvent, data: dict) -> None:
        await self.dispatch(PushEvent(event=event, data=data))

    def handler_count(self, event: ChannelEvent) -> int:
        return len(self._handlers.get(event, []))


class FakeWorkroomApi:
    """In-memory REST collaborators for one room."""

    def __init__(
        self,
        room_id: str = "room1",
        user_id: str = "client_1",
        role: Role = Role.CLIENT,
        page_size: int = 50,
    ):
        self.room_id = room_id
        self.user_id = user_id
        self.role = role
        self.page_size = page_size
        self.state = RoomState()
        self.records: list[dict] = []
        self.fail_list = False
        self.fail_post = False
        self.list_calls = 0
        self.posts: list[tuple[str | None, list]] = []
        self.finalise_calls = 0
        self.finalise_reply: dict | None = None
        self._seq = 0

    def add_record(self, text: str, sender: str = "worker_1", **extra) -> dict:
        self._seq += 1
        record = {
            "_id": f"m{self._seq:03d}",
            "workroomId": self.room_id,
            "sender": sender,
            "text": text,
            "createdAt": f"2024-05-01T10:00:{self._seq:02d}.000Z",
        }
        record.update(extra)
        self.records.append(record)
        return record

    async def get_current_user(self) -> str:
        return self.user_id

    async def get_meta(self, room_id: str) -> RoomMeta:
        return RoomMeta(
            room_id=room_id,
            role=self.role,
            state=RoomState(
                client_finalised=self.state.client_finalised,
                worker_finalised=self.state.worker_finalised,
                finalised_at=self.state.finalised_at,
            ),
            title="Logo redesign",
        )

    async def list_messages(
        self, room_id: str, cursor: str | None = None, limit: int | None = None
    ) -> MessagePage:
        self.list_calls += 1
        if self.fail_list:
            raise CollaboratorError("history unavailable", status_code=503)
        size = limit or self.page_size
        end = int(cursor) if cursor else len(self.records)
        start = max(end - size, 0)
        return MessagePage(
            items=[dict(r) for r in self.records[start:end]],
            next_cursor=str(start) if start > 0 else None,
        )

    async def post_message(self, room_id: str, text: str | None, files: list) -> dict:
        self.posts.append((text, list(files)))
        if self.fail_post:
            raise CollaboratorError("write failed", status_code=502)
        attachments = [
            {"url": f"/files/{f.filename}", "original_name": f.filename, "contentType": f.content_type}
            for f in files
        ]
        return self.add_record(text or "", sender=self.user_id, attachments=attachments)

    async def finalise(self, room_id: str) -> dict:
        self.finalise_calls += 1
        if self.finalise_reply is not None:
            return self.finalise_reply
        if self.role is Role.CLIENT:
            self.state.client_finalised = True
        else:
            self.state.worker_finalised = True
        return {
            "workroomId": room_id,
            "clientFinalised": self.state.client_finalised,
            "workerFinalised": self.state.worker_finalised,
            "finalisedAt": None,
        }


@pytest.fixture
def settings():
    """Short intervals so timer-driven behaviour is observable in tests."""
    return WorkroomSettings(
        api_base="http://test",
        ws_url="ws://test/ws",
        reconcile_interval=0.05,
        typing_timeout=0.2,
        history_page_size=50,
    )


@pytest.fixture
def push():
    return FakePushChannel()


@pytest.fixture
def api():
    return FakeWorkroomApi()


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from workroom.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest_asyncio.fixture
async def application():
    """Started backend on an in-memory database."""
    from workroom.app import Application

    app = Application(db_path=":memory:", settings=WorkroomSettings(history_page_size=50))
    await app.start()
    yield app
    await app.stop()
