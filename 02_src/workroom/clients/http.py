"""REST collaborators over httpx."""

import httpx

from ..errors import CollaboratorError, RoomLockedError
from ..logging_config import get_logger
from ..models import MessagePage, PendingFile, Role, RoomMeta, RoomState
from ..normalize import first_of, parse_timestamp

logger = get_logger(__name__)

USER_HEADER = "X-User-Id"


class WorkroomApiClient:
    """Talks to the workroom backend on behalf of one user."""

    def __init__(
        self,
        base_url: str,
        user_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._user_id = user_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_current_user(self) -> str:
        data = await self._request("GET", "/api/auth/me")
        user_id = first_of(data.get("user"), ("_id", "id"))
        if user_id is None:
            raise CollaboratorError("No current user in /api/auth/me response")
        return str(user_id)

    async def get_meta(self, room_id: str) -> RoomMeta:
        data = await self._request("GET", f"/api/workrooms/{room_id}/meta", room_id=room_id)
        return RoomMeta(
            room_id=data.get("workroomId", room_id),
            role=Role(data.get("role", Role.WORKER.value)),
            state=RoomState(
                client_finalised=bool(data.get("clientFinalised")),
                worker_finalised=bool(data.get("workerFinalised")),
                finalised_at=parse_timestamp(data.get("finalisedAt")),
            ),
            title=data.get("title") or "",
            client_id=data.get("createdBy") or None,
            worker_id=data.get("selectedApplicant") or None,
        )

    async def list_messages(
        self, room_id: str, cursor: str | None = None, limit: int | None = None
    ) -> MessagePage:
        params: dict = {}
        if cursor:
            params["cursor"] = cursor
        if limit:
            params["limit"] = limit
        data = await self._request(
            "GET", f"/api/workrooms/{room_id}/messages", room_id=room_id, params=params
        )
        items = first_of(data, ("items", "messages", "data")) or []
        return MessagePage(
            items=[i for i in items if isinstance(i, dict)],
            next_cursor=data.get("nextCursor") or None,
        )

    async def post_message(
        self, room_id: str, text: str | None, files: list[PendingFile]
    ) -> dict:
        form = {"text": text} if text else {}
        uploads = [
            ("attachments", (f.filename, f.content, f.content_type)) for f in files
        ]
        data = await self._request(
            "POST",
            f"/api/workrooms/{room_id}/messages",
            room_id=room_id,
            data=form,
            files=uploads or None,
        )
        record = first_of(data, ("message", "item", "data", "msg"))
        return record if isinstance(record, dict) else {}

    async def finalise(self, room_id: str) -> dict:
        return await self._request("POST", f"/api/workrooms/{room_id}/finalise", room_id=room_id)

    async def _request(
        self, method: str, path: str, room_id: str | None = None, **kwargs
    ) -> dict:
        headers = {USER_HEADER: self._user_id} if self._user_id else {}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise CollaboratorError(f"{method} {path} failed: {e}") from e

        if response.status_code == 409 and room_id is not None:
            raise RoomLockedError(room_id, _error_detail(response))
        if response.status_code >= 400:
            raise CollaboratorError(
                f"{method} {path} returned {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        if "application/json" not in response.headers.get("content-type", ""):
            snippet = response.text[:300]
            raise CollaboratorError(
                f"Unexpected {response.status_code}. Non-JSON response: {snippet}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorError(f"Invalid JSON from {path}: {e}") from e
        return data if isinstance(data, dict) else {}


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error text from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:300]
    detail = first_of(body, ("detail", "error", "message")) if isinstance(body, dict) else None
    return str(detail) if detail is not None else str(body)[:300]
