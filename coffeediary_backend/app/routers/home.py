from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from coffeediary_backend.app.services.router_helpers.home_helpers import home_view
from .deps import Page, require_page

router = APIRouter(tags=["home"])


# What it does: nav profile + 5 most recent entries.
@router.get("/")
def home(page: Page = Depends(require_page)) -> Dict[str, Any]:
    return home_view(page.client, page.user)
