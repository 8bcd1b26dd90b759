# coffeediary_backend/app/services/router_helpers/dash_helpers.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from coffeediary_backend.app.errors import BackendError
from coffeediary_backend.app.schemas import AuthUser
from coffeediary_backend.app.services.aggregation import TRENDS_PLACEHOLDER, summarize, trends
from coffeediary_backend.app.services.backend import DataClient
from coffeediary_backend.app.utils.logs import get_logger
from .view import page_view

log = get_logger("pages.dashboard")

RECENT_LIMIT = 5


def dashboard_view(client: DataClient, user: AuthUser, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Summary cards, trend charts (or the placeholder notice) and recent entries."""
    try:
        entries = client.entries.list_entries(user.id)
    except BackendError as e:
        log.warning("dashboard fetch failed for %s: %s", user.id, e.message)
        return page_view(error=e.message, stats=None, trends=None, placeholder=None, recent_entries=[])

    charts = trends(entries, now)
    return page_view(
        stats=summarize(entries, now),
        trends=charts,
        placeholder=None if charts is not None else TRENDS_PLACEHOLDER,
        recent_entries=entries[:RECENT_LIMIT],
    )
