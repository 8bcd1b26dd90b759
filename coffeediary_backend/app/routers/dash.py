from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from coffeediary_backend.app.services.router_helpers.dash_helpers import dashboard_view
from .deps import Page, require_page

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# What it does: summary cards, trend histograms (3+ entries) and recent entries.
@router.get("")
def dashboard(page: Page = Depends(require_page)) -> Dict[str, Any]:
    return dashboard_view(page.client, page.user)
