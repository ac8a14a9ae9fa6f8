"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "workroom.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_API_BASE = "http://localhost:8000"


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def derive_ws_url(api_base: str) -> str:
    """Turn an http(s) API base into the push channel endpoint."""
    base = api_base.rstrip("/")
    if base.startswith("https://"):
        return "wss://" + base[len("https://"):] + "/ws"
    if base.startswith("http://"):
        return "ws://" + base[len("http://"):] + "/ws"
    return base + "/ws"


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class WorkroomSettings:
    """Tunables for one room view and the reference backend."""

    api_base: str = DEFAULT_API_BASE
    ws_url: str = derive_ws_url(DEFAULT_API_BASE)
    reconcile_interval: float = 1.0  # seconds between full refetches
    typing_timeout: float = 2.0  # seconds before "partner is typing" clears
    history_page_size: int = 50
    max_history_pages: int = 20
    push_enabled: bool = True
    retention_days: int = 7  # post-finalisation retention window

    @classmethod
    def from_env(cls) -> "WorkroomSettings":
        """Build settings from WORKROOM_* environment variables."""
        api_base = os.getenv("WORKROOM_API_BASE", DEFAULT_API_BASE)
        return cls(
            api_base=api_base,
            ws_url=os.getenv("WORKROOM_WS_URL") or derive_ws_url(api_base),
            reconcile_interval=float(os.getenv("WORKROOM_RECONCILE_INTERVAL", "1.0")),
            typing_timeout=float(os.getenv("WORKROOM_TYPING_TIMEOUT", "2.0")),
            history_page_size=int(os.getenv("WORKROOM_HISTORY_PAGE_SIZE", "50")),
            max_history_pages=int(os.getenv("WORKROOM_MAX_HISTORY_PAGES", "20")),
            push_enabled=_env_flag(os.getenv("WORKROOM_PUSH_ENABLED"), True),
            retention_days=int(os.getenv("WORKROOM_RETENTION_DAYS", "7")),
        )
