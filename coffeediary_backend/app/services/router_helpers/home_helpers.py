# coffeediary_backend/app/services/router_helpers/home_helpers.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from coffeediary_backend.app.errors import BackendError
from coffeediary_backend.app.schemas import NAV_FALLBACK_NICKNAME, AuthUser, Entry, Profile
from coffeediary_backend.app.services.backend import DataClient
from coffeediary_backend.app.utils.logs import get_logger
from .view import page_view

log = get_logger("pages.home")

RECENT_LIMIT = 5


def nav_profile(client: DataClient, user: AuthUser) -> Dict[str, Any]:
    """Header block: nickname (with fallback) and avatar."""
    profile: Optional[Profile] = None
    try:
        profile = client.profiles.get_profile(user.id)
    except BackendError as e:
        log.warning("nav profile lookup failed for %s: %s", user.id, e.message)
    return {
        "nickname": (profile.nickname if profile else "") or NAV_FALLBACK_NICKNAME,
        "avatar_url": profile.avatar_url if profile else None,
        "email": user.email,
    }


# What it does: home page = nav profile + most recent entries.
def home_view(client: DataClient, user: AuthUser) -> Dict[str, Any]:
    error: Optional[str] = None
    recent: List[Entry] = []
    try:
        recent = client.entries.list_entries(user.id, limit=RECENT_LIMIT)
    except BackendError as e:
        log.warning("recent entries failed for %s: %s", user.id, e.message)
        error = e.message
    return page_view(error=error, nav=nav_profile(client, user), recent_entries=recent)
