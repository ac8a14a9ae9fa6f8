"""FastAPI application setup."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import auth, control, push, workrooms


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None, sim: Any = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        if sim is not None:
            await sim.stop()
        await application.stop()

    fastapi_app = FastAPI(
        title="Workroom API",
        description="Workroom messaging backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:5174"],  # Vite default
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(auth.create_auth_router(application))
    fastapi_app.include_router(workrooms.create_workrooms_router(application))
    fastapi_app.include_router(push.create_push_router(application))
    fastapi_app.include_router(control.create_control_router(application, sim))

    return fastapi_app
