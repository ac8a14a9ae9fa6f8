"""Backend bootstrap and lifecycle management."""

import asyncio
import os
from typing import Protocol

from .backend import RoomHub, WorkroomService
from .config import WorkroomSettings, resolve_db_path
from .logging_config import get_logger
from .storage import IStorage, Storage

logger = get_logger(__name__)

PURGE_INTERVAL_SECONDS = 3600


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...

    @property
    def service(self) -> WorkroomService:
        ...

    @property
    def hub(self) -> RoomHub:
        ...


class Application:
    """Reference backend: storage, push hub and workroom service."""

    def __init__(
        self,
        db_path: str | None = None,
        settings: WorkroomSettings | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings or WorkroomSettings.from_env()

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._hub: RoomHub | None = None
        self._service: WorkroomService | None = None
        self._purge_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Hub (no dependencies)
        self._hub = RoomHub()

        # 3. Service (depends on Storage + Hub)
        self._service = WorkroomService(self._storage, self._hub, self._settings)
        await self._service.purge_expired()

        # 4. Retention sweeper
        self._purge_task = asyncio.create_task(self._purge_loop())
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._purge_task:
            self._purge_task.cancel()
            try:
                await self._purge_task
            except asyncio.CancelledError:
                pass
            self._purge_task = None
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    async def _purge_loop(self) -> None:
        """Delete rooms past their retention window."""
        while True:
            try:
                await asyncio.sleep(PURGE_INTERVAL_SECONDS)
                if self._service:
                    await self._service.purge_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Purge error: {e}", exc_info=True)

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def hub(self) -> RoomHub:
        """Get hub instance."""
        if not self._hub:
            raise RuntimeError("Application not started")
        return self._hub

    @property
    def service(self) -> WorkroomService:
        """Get workroom service instance."""
        if not self._service:
            raise RuntimeError("Application not started")
        return self._service
