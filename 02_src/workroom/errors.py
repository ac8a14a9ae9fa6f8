"""Exception taxonomy for the workroom core."""


class WorkroomError(Exception):
    """Base class for all workroom errors."""


class ValidationError(WorkroomError):
    """Action refused locally before any network call."""


class EmptyMessageError(ValidationError):
    """Submission has neither text nor attachments."""

    def __init__(self, message: str = "Message is empty"):
        super().__init__(message)


class RoomLockedError(ValidationError):
    """Room is finalised by both parties and is append-closed."""

    def __init__(self, room_id: str, message: str = "Chat is finalized"):
        super().__init__(f"{message}: {room_id}")
        self.room_id = room_id


class TransientError(WorkroomError):
    """I/O failure that may succeed on retry."""


class CollaboratorError(TransientError):
    """A backend collaborator call failed or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SubmitFailedError(TransientError):
    """Message write failed; the draft is kept for retry."""


class PushChannelError(TransientError):
    """Push channel could not be opened or used."""


class RoomNotFoundError(WorkroomError):
    """No room with this id."""

    def __init__(self, room_id: str):
        super().__init__(f"Workroom not found: {room_id}")
        self.room_id = room_id


class AccessDeniedError(WorkroomError):
    """Caller is not a participant of the room."""
