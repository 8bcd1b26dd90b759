# coffeediary_backend/app/config/manifest.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from .paths import get_data_dir

BACKEND_LOCAL = "local"
BACKEND_SUPABASE = "supabase"
SUPPORTED_BACKENDS: Tuple[str, ...] = (BACKEND_LOCAL, BACKEND_SUPABASE)

# Storage buckets (same ids as the hosted project)
AVATARS_BUCKET = "avatars"
PHOTOS_BUCKET = "coffee-photos"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _default_db_url() -> str:
    return f"sqlite:///{(get_data_dir() / 'coffeediary.sqlite3').resolve()}"


@dataclass(frozen=True)
class Settings:
    backend: str = BACKEND_LOCAL
    supabase_url: str = ""
    supabase_anon_key: str = ""
    db_url: str = ""
    session_cookie: str = "cd_session"
    public_url: str = "http://localhost:8000"
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    app_env: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = _env("COFFEEDIARY_CORS_ORIGINS", "http://localhost:3000")
        return cls(
            backend=_env("COFFEEDIARY_BACKEND", BACKEND_LOCAL).lower() or BACKEND_LOCAL,
            supabase_url=_env("SUPABASE_URL").rstrip("/"),
            supabase_anon_key=_env("SUPABASE_ANON_KEY"),
            db_url=_env("COFFEEDIARY_DB_URL") or _env("DATABASE_URL") or _default_db_url(),
            session_cookie=_env("COFFEEDIARY_SESSION_COOKIE", "cd_session") or "cd_session",
            public_url=_env("COFFEEDIARY_PUBLIC_URL", "http://localhost:8000").rstrip("/"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=_env("COFFEEDIARY_LOG_LEVEL", "INFO").upper() or "INFO",
            app_env=_env("APP_ENV", "development"),
        )


def validate_settings(settings: Settings) -> List[str]:
    """Return human-readable problems; empty list means the config is usable."""
    problems: List[str] = []
    if settings.backend not in SUPPORTED_BACKENDS:
        problems.append(
            f"COFFEEDIARY_BACKEND={settings.backend!r} is not one of {', '.join(SUPPORTED_BACKENDS)}"
        )
    if settings.backend == BACKEND_SUPABASE:
        missing = [
            name for name, value in (
                ("SUPABASE_URL", settings.supabase_url),
                ("SUPABASE_ANON_KEY", settings.supabase_anon_key),
            ) if not value
        ]
        if missing:
            problems.append(
                f"{' and '.join(missing)} must be set when COFFEEDIARY_BACKEND=supabase "
                "(check your .env file)"
            )
    return problems
