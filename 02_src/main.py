"""Main entry point for the workroom backend."""

import os
from dataclasses import replace
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from sim import Sim
from workroom import WorkroomSettings
from workroom.api import create_fastapi_app
from workroom.config import derive_ws_url
from workroom.logging_config import setup_logging


def main():
    """Run the backend with the scripted SIM attached."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    api_url = f"http://{api_host}:{api_port}"

    settings = WorkroomSettings.from_env()
    if not os.getenv("WORKROOM_API_BASE"):
        settings = replace(settings, api_base=api_url, ws_url=derive_ws_url(api_url))

    sim = Sim(api_url=api_url, settings=settings)
    app = create_fastapi_app(sim=sim)

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
