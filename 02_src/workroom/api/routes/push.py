"""Push channel WebSocket route."""

import json

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from ...app import IApplication
from ...errors import WorkroomError
from ...logging_config import get_logger
from ...models import ChannelEvent, PushEvent

logger = get_logger(__name__)


def create_push_router(app: IApplication) -> APIRouter:
    """Create push router."""
    router = APIRouter(tags=["push"])

    @router.websocket("/ws")
    async def push_endpoint(websocket: WebSocket, userId: str | None = Query(None)):
        """Join rooms and relay typing signals; receive room broadcasts."""
        if not userId:
            await websocket.close(code=1008)
            return

        await websocket.accept()
        conn = app.hub.register(websocket, userId)
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    payload = json.loads(raw)
                except ValueError:
                    continue
                envelope = PushEvent.from_wire(payload) if isinstance(payload, dict) else None
                if envelope is None:
                    continue

                room_id = str(envelope.data.get("workroomId") or "")
                if envelope.event is ChannelEvent.JOIN:
                    try:
                        await app.service.access(room_id, userId)
                    except WorkroomError as e:
                        await websocket.send_json(
                            PushEvent(ChannelEvent.ERROR, {"workroomId": room_id, "error": str(e)}).to_wire()
                        )
                        continue
                    app.hub.join(conn, room_id)
                elif envelope.event is ChannelEvent.TYPING and room_id in conn.rooms:
                    await app.hub.broadcast(
                        room_id,
                        ChannelEvent.TYPING,
                        {"workroomId": room_id, "userId": userId},
                        exclude=conn,
                    )
        except WebSocketDisconnect:
            logger.debug("Client %s disconnected", userId)
        finally:
            app.hub.leave(conn)

    return router
