"""SIM implementation - scripted two-party workroom scenario."""

import asyncio
import random
from typing import Protocol

import httpx

from workroom import (
    DisabledPushChannel,
    WebSocketPushChannel,
    WorkroomApiClient,
    WorkroomSession,
    WorkroomSettings,
)
from workroom.clients import USER_HEADER
from workroom.config import derive_ws_url
from workroom.logging_config import get_logger

logger = get_logger(__name__)


class ISim(Protocol):
    """Drive a client and a worker through one workroom."""

    async def start(self) -> None:
        """Start scripted scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


CLIENT_ID = "client_001"
WORKER_ID = "worker_001"

SCRIPT = [
    (CLIENT_ID, "Hi! The brief is attached, let me know if anything is unclear."),
    (WORKER_ID, "Thanks, reading it now."),
    (WORKER_ID, "First draft is ready for review."),
    (CLIENT_ID, "Looks great, finalising on my side."),
]


class Sim:
    """Runs the scripted scenario against a live backend."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        settings: WorkroomSettings | None = None,
    ):
        self._api_url = api_url
        self._settings = settings or WorkroomSettings(
            api_base=api_url, ws_url=derive_ws_url(api_url)
        )
        self._running = False
        self._task: asyncio.Task | None = None
        self._last_room_id: str | None = None

    @property
    def last_room_id(self) -> str | None:
        return self._last_room_id

    async def start(self) -> None:
        """Start scripted scenario."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run_scenario(self) -> None:
        """Open a room, chat, then finalise from both sides."""
        try:
            room_id = await self._open_room()
            self._last_room_id = room_id

            client_api = WorkroomApiClient(self._api_url, user_id=CLIENT_ID)
            worker_api = WorkroomApiClient(self._api_url, user_id=WORKER_ID)
            try:
                async with WorkroomSession(
                    room_id, client_api, self._push(room_id, CLIENT_ID), self._settings
                ) as client, WorkroomSession(
                    room_id, worker_api, self._push(room_id, WORKER_ID), self._settings
                ) as worker:
                    sessions = {CLIENT_ID: client, WORKER_ID: worker}

                    for user_id, text in SCRIPT:
                        if not self._running:
                            break
                        session = sessions[user_id]
                        await session.send_typing()
                        await asyncio.sleep(random.uniform(0.2, 0.6))
                        session.composer.text = text
                        await session.composer.submit()
                        logger.info("SIM: %s -> %s", user_id, text)

                    await client.handshake.finalise()
                    await worker.handshake.finalise()
                    logger.info(
                        "SIM: room %s is %s; settle at %s",
                        room_id,
                        worker.handshake.phase.value,
                        worker.handshake.settlement_path,
                    )
            finally:
                await client_api.close()
                await worker_api.close()

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False

    def _push(self, room_id: str, user_id: str):
        if not self._settings.push_enabled:
            return DisabledPushChannel()
        return WebSocketPushChannel(self._settings.ws_url, room_id, user_id)

    async def _open_room(self) -> str:
        """Create the room as the client."""
        async with httpx.AsyncClient(base_url=self._api_url, timeout=10.0) as client:
            response = await client.post(
                "/api/workrooms",
                json={"worker_id": WORKER_ID, "title": "Logo redesign"},
                headers={USER_HEADER: CLIENT_ID},
            )
            response.raise_for_status()
            return response.json()["workroomId"]
