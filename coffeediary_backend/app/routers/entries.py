from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from coffeediary_backend.app.schemas import EntryFilter, SortMode
from coffeediary_backend.app.services.router_helpers import entry_helpers as H
from coffeediary_backend.app.services.router_helpers.view import page_view
from .deps import Page, require_page

router = APIRouter(prefix="/entries", tags=["entries"])


# What it does: full history filtered client-side; filters never stack.
@router.get("")
def list_entries(
    page: Page = Depends(require_page),
    q: str = "",
    origin: str = "",
    roast: str = "",
    brew_method: str = "",
    min_rating: int = Query(0, ge=0, le=5),
    sort: SortMode = SortMode.DATE,
) -> Dict[str, Any]:
    params = EntryFilter(
        q=q, origin=origin, roast=roast, brew_method=brew_method, min_rating=min_rating, sort=sort
    )
    return H.entries_view(page.client, page.user, params)


@router.get("/{entry_id}")
def entry_detail(entry_id: str, page: Page = Depends(require_page)):
    view = H.entry_detail(page.client, page.user, entry_id)
    if view is None:
        return JSONResponse(page_view(error=H.NOT_FOUND, entry=None), status_code=404)
    return view
