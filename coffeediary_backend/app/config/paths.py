# coffeediary_backend/app/config/paths.py
"""
Central path resolution for the coffee diary.

Env overrides:
    DATA_DIR

Defaults:
    <repo_root>/data
    <DATA_DIR>/media          (local blob store root)

DATA_DIR is re-read on every call so tests can point it at a tmp tree
before building an app.
"""
from __future__ import annotations

import os
from pathlib import Path

_THIS_FILE = Path(__file__).resolve()

def _resolve_repo_root() -> Path:
    p = _THIS_FILE
    for _ in range(6):
        if (p.parent / "coffeediary_backend" / "app").exists():
            return p.parent
        p = p.parent
    return _THIS_FILE.parents[3]

REPO_ROOT: Path = _resolve_repo_root()

def _env_path(name: str) -> Path | None:
    raw = (os.getenv(name) or "").strip().strip('"').strip("'")
    if not raw:
        return None
    return Path(raw).expanduser().resolve()

def get_data_dir() -> Path:
    return (_env_path("DATA_DIR") or REPO_ROOT / "data").resolve()

def get_media_dir() -> Path:
    return get_data_dir() / "media"

def ensure_data_dir_exists(*parts: str) -> Path:
    """
    Ensure DATA_DIR (and optional subpaths) exist.
    Examples:
        ensure_data_dir_exists() -> <DATA_DIR>
        ensure_data_dir_exists("media", "avatars") -> <DATA_DIR>/media/avatars
    """
    p = get_data_dir().joinpath(*parts)
    p.mkdir(parents=True, exist_ok=True)
    return p

__all__ = ["REPO_ROOT", "get_data_dir", "get_media_dir", "ensure_data_dir_exists"]
