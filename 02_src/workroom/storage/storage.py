"""SQLite storage implementation."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import StoredAttachment, StoredMessage, WorkroomRecord
from ..models.records import iso


class IStorage(Protocol):
    """Persistent storage for rooms and messages (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Rooms
    async def save_room(self, room: WorkroomRecord) -> None:
        """Insert or replace a room."""
        ...

    async def get_room(self, room_id: str) -> WorkroomRecord | None:
        """Get a room by id."""
        ...

    async def finalise_room(
        self, room_id: str, role: str, now: datetime, retention: timedelta
    ) -> tuple[WorkroomRecord, bool] | None:
        """Set one party's flag. Returns (room, newly_locked)."""
        ...

    # Messages
    async def save_message(self, message: StoredMessage) -> bool:
        """Save a message unless the room is locked. Returns whether it was stored."""
        ...

    async def list_messages(
        self, room_id: str, cursor: str | None = None, limit: int = 50
    ) -> tuple[list[StoredMessage], str | None]:
        """Newest page older than cursor, returned oldest-first, plus next cursor."""
        ...

    async def soft_delete_message(
        self, room_id: str, message_id: str, now: datetime
    ) -> StoredMessage | None:
        """Mark a message deleted."""
        ...

    # Lifecycle
    async def purge_expired(self, now: datetime) -> int:
        """Delete rooms whose retention window has passed."""
        ...

    async def clear(self) -> None:
        """Clear all data."""
        ...


def _parse(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def encode_cursor(message: StoredMessage) -> str:
    return f"{iso(message.created_at)}|{message.id}"


def decode_cursor(cursor: str) -> tuple[str, str] | None:
    created_at, sep, message_id = cursor.partition("|")
    if not sep or not created_at or not message_id:
        return None
    return created_at, message_id


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA foreign_keys = ON")

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def _db(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Rooms
    async def save_room(self, room: WorkroomRecord) -> None:
        """Insert or replace a room."""
        await self._db.execute(
            """
            INSERT OR REPLACE INTO workrooms
            (room_id, title, client_id, worker_id, client_finalised,
             worker_finalised, finalised_at, expire_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                room.room_id,
                room.title,
                room.client_id,
                room.worker_id,
                int(room.client_finalised),
                int(room.worker_finalised),
                iso(room.finalised_at),
                iso(room.expire_at),
                iso(room.created_at),
            ),
        )
        await self._db.commit()

    async def get_room(self, room_id: str) -> WorkroomRecord | None:
        """Get a room by id."""
        cursor = await self._db.execute(
            """
            SELECT room_id, title, client_id, worker_id, client_finalised,
                   worker_finalised, finalised_at, expire_at, created_at
            FROM workrooms
            WHERE room_id = ?
            """,
            (room_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return WorkroomRecord(
            room_id=row[0],
            title=row[1],
            client_id=row[2],
            worker_id=row[3],
            client_finalised=bool(row[4]),
            worker_finalised=bool(row[5]),
            finalised_at=_parse(row[6]),
            expire_at=_parse(row[7]),
            created_at=_parse(row[8]),
        )

    async def finalise_room(
        self, room_id: str, role: str, now: datetime, retention: timedelta
    ) -> tuple[WorkroomRecord, bool] | None:
        """Set one party's flag; stamp finalised_at when both are set."""
        column = {"client": "client_finalised", "worker": "worker_finalised"}[role]
        await self._db.execute(
            f"UPDATE workrooms SET {column} = 1 WHERE room_id = ?",
            (room_id,),
        )
        # Only the first call that sees both flags stamps the terminal time
        cursor = await self._db.execute(
            """
            UPDATE workrooms
            SET finalised_at = ?, expire_at = ?
            WHERE room_id = ? AND client_finalised = 1 AND worker_finalised = 1
              AND finalised_at IS NULL
            """,
            (iso(now), iso(now + retention), room_id),
        )
        newly_locked = cursor.rowcount > 0
        await self._db.commit()

        room = await self.get_room(room_id)
        if room is None:
            return None
        return room, newly_locked

    # Messages
    async def save_message(self, message: StoredMessage) -> bool:
        """
        Save a message with its attachments.

        The insert only lands while the room is still open. Returns False
        when the room was finalised (or removed) first.
        """
        cursor = await self._db.execute(
            """
            INSERT INTO messages (id, room_id, sender_id, text, created_at, deleted, deleted_at)
            SELECT ?, ?, ?, ?, ?, ?, ?
            WHERE EXISTS (
                SELECT 1 FROM workrooms WHERE room_id = ? AND finalised_at IS NULL
            )
            """,
            (
                message.id,
                message.room_id,
                message.sender_id,
                message.text,
                iso(message.created_at),
                int(message.deleted),
                iso(message.deleted_at),
                message.room_id,
            ),
        )
        if cursor.rowcount == 0:
            await self._db.rollback()
            return False

        for position, attachment in enumerate(message.attachments):
            await self._db.execute(
                """
                INSERT INTO attachments
                (message_id, position, url, public_id, type, original_name, size, content_type)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    position,
                    attachment.url,
                    attachment.public_id,
                    attachment.type,
                    attachment.original_name,
                    attachment.size,
                    attachment.content_type,
                ),
            )

        await self._db.commit()
        return True

    async def list_messages(
        self, room_id: str, cursor: str | None = None, limit: int = 50
    ) -> tuple[list[StoredMessage], str | None]:
        """Newest page older than cursor, returned oldest-first, plus next cursor."""
        bound = decode_cursor(cursor) if cursor else None
        if bound:
            result = await self._db.execute(
                """
                SELECT id, room_id, sender_id, text, created_at
                FROM messages
                WHERE room_id = ? AND deleted = 0
                  AND (created_at < ? OR (created_at = ? AND id < ?))
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (room_id, bound[0], bound[0], bound[1], limit + 1),
            )
        else:
            result = await self._db.execute(
                """
                SELECT id, room_id, sender_id, text, created_at
                FROM messages
                WHERE room_id = ? AND deleted = 0
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (room_id, limit + 1),
            )
        rows = await result.fetchall()

        has_more = len(rows) > limit
        rows = list(reversed(rows[:limit]))

        messages = []
        for row in rows:
            messages.append(
                StoredMessage(
                    id=row[0],
                    room_id=row[1],
                    sender_id=row[2],
                    text=row[3],
                    created_at=_parse(row[4]),
                    attachments=await self._get_attachments(row[0]),
                )
            )

        next_cursor = encode_cursor(messages[0]) if has_more and messages else None
        return messages, next_cursor

    async def soft_delete_message(
        self, room_id: str, message_id: str, now: datetime
    ) -> StoredMessage | None:
        """Mark a message deleted. None if no such live message."""
        cursor = await self._db.execute(
            """
            UPDATE messages SET deleted = 1, deleted_at = ?
            WHERE room_id = ? AND id = ? AND deleted = 0
            """,
            (iso(now), room_id, message_id),
        )
        await self._db.commit()
        if cursor.rowcount == 0:
            return None

        cursor = await self._db.execute(
            """
            SELECT id, room_id, sender_id, text, created_at
            FROM messages WHERE id = ?
            """,
            (message_id,),
        )
        row = await cursor.fetchone()
        return StoredMessage(
            id=row[0],
            room_id=row[1],
            sender_id=row[2],
            text=row[3],
            created_at=_parse(row[4]),
            deleted=True,
            deleted_at=now,
        )

    async def _get_attachments(self, message_id: str) -> list[StoredAttachment]:
        cursor = await self._db.execute(
            """
            SELECT url, public_id, type, original_name, size, content_type
            FROM attachments
            WHERE message_id = ?
            ORDER BY position ASC
            """,
            (message_id,),
        )
        rows = await cursor.fetchall()
        return [
            StoredAttachment(
                url=r[0],
                public_id=r[1],
                type=r[2],
                original_name=r[3],
                size=r[4],
                content_type=r[5],
            )
            for r in rows
        ]

    # Lifecycle
    async def purge_expired(self, now: datetime) -> int:
        """Delete rooms (and, by cascade, their messages) past expire_at."""
        cursor = await self._db.execute(
            "DELETE FROM workrooms WHERE expire_at IS NOT NULL AND expire_at <= ?",
            (iso(now),),
        )
        await self._db.commit()
        return cursor.rowcount

    async def clear(self) -> None:
        """Clear all data."""
        tables = ["attachments", "messages", "workrooms"]

        for table in tables:
            await self._db.execute(f"DELETE FROM {table}")

        await self._db.commit()
