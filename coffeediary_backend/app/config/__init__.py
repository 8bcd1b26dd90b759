# coffeediary_backend/app/config/__init__.py
from __future__ import annotations

# Re-export config surface expected by callers across the app.

# Env settings live in manifest.py
from .manifest import (
    AVATARS_BUCKET,
    BACKEND_LOCAL,
    BACKEND_SUPABASE,
    PHOTOS_BUCKET,
    SUPPORTED_BACKENDS,
    Settings,
    validate_settings,
)

# Path helpers live in paths.py
from .paths import (
    REPO_ROOT,
    get_data_dir,
    get_media_dir,
    ensure_data_dir_exists,
)

__all__ = [
    # manifest
    "AVATARS_BUCKET",
    "BACKEND_LOCAL",
    "BACKEND_SUPABASE",
    "PHOTOS_BUCKET",
    "SUPPORTED_BACKENDS",
    "Settings",
    "validate_settings",
    # paths
    "REPO_ROOT",
    "get_data_dir",
    "get_media_dir",
    "ensure_data_dir_exists",
]
