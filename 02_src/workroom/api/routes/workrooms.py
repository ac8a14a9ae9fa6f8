"""Workroom API routes."""

from datetime import datetime

from pydantic import BaseModel
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from ...app import IApplication
from ...backend import Upload
from ...errors import WorkroomError
from ..deps import current_user_id, http_error


class CreateWorkroomRequest(BaseModel):
    """Request model for opening a workroom. The caller is the client."""

    worker_id: str
    title: str = ""
    room_id: str | None = None


class FinaliseResponse(BaseModel):
    """Response model for finalisation flags."""

    workroomId: str
    clientFinalised: bool
    workerFinalised: bool
    finalisedAt: datetime | None = None


class MetaResponse(FinaliseResponse):
    """Response model for room meta."""

    title: str
    createdBy: str
    selectedApplicant: str
    role: str


def create_workrooms_router(app: IApplication) -> APIRouter:
    """Create workrooms router."""
    router = APIRouter(prefix="/api/workrooms", tags=["workrooms"])

    @router.post("", response_model=MetaResponse, status_code=201)
    async def create_workroom(
        request: CreateWorkroomRequest,
        user_id: str = Depends(current_user_id),
    ) -> dict:
        """Open a room between the caller (client) and a worker."""
        try:
            room = await app.service.create_room(
                client_id=user_id,
                worker_id=request.worker_id,
                title=request.title,
                room_id=request.room_id,
            )
            return await app.service.get_meta(room.room_id, user_id)
        except WorkroomError as e:
            raise http_error(e)

    @router.get("/{room_id}/meta", response_model=MetaResponse)
    async def get_meta(room_id: str, user_id: str = Depends(current_user_id)) -> dict:
        """Title, roles and finalisation status."""
        try:
            return await app.service.get_meta(room_id, user_id)
        except WorkroomError as e:
            raise http_error(e)

    @router.get("/{room_id}/messages")
    async def list_messages(
        room_id: str,
        cursor: str | None = Query(None, description="Opaque pagination cursor"),
        limit: int | None = Query(None, ge=1, le=200),
        user_id: str = Depends(current_user_id),
    ) -> dict:
        """Newest page of messages older than cursor, oldest-first."""
        try:
            return await app.service.list_messages(room_id, user_id, cursor, limit)
        except WorkroomError as e:
            raise http_error(e)

    @router.post("/{room_id}/messages", status_code=201)
    async def post_message(
        room_id: str,
        text: str | None = Form(None),
        attachments: list[UploadFile] | None = File(None),
        user_id: str = Depends(current_user_id),
    ) -> dict:
        """Post text and up to 10 attachments."""
        uploads = []
        for upload in attachments or []:
            content = await upload.read()
            uploads.append(
                Upload(
                    filename=upload.filename or "file",
                    content_type=upload.content_type or "application/octet-stream",
                    size=len(content),
                )
            )
        try:
            message = await app.service.post_message(room_id, user_id, text, uploads)
            return {"item": message.to_wire()}
        except WorkroomError as e:
            raise http_error(e)

    @router.delete("/{room_id}/messages/{message_id}")
    async def delete_message(
        room_id: str,
        message_id: str,
        user_id: str = Depends(current_user_id),
    ) -> dict:
        """Soft delete a message."""
        try:
            message = await app.service.delete_message(room_id, user_id, message_id)
        except WorkroomError as e:
            raise http_error(e)
        if message is None:
            raise HTTPException(status_code=404, detail="Message not found")
        return {
            "success": True,
            "data": {"id": message.id, "deletedAt": message.deleted_at.isoformat()},
        }

    @router.post("/{room_id}/finalise", response_model=FinaliseResponse)
    async def finalise(room_id: str, user_id: str = Depends(current_user_id)) -> dict:
        """Record the caller's finalise."""
        try:
            return await app.service.finalise(room_id, user_id)
        except WorkroomError as e:
            raise http_error(e)

    return router
