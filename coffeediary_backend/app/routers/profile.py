from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from coffeediary_backend.app.services.router_helpers import profile_helpers as H
from .deps import Page, read_image, require_page

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
def get_profile(page: Page = Depends(require_page)) -> Dict[str, Any]:
    return H.profile_view(page.client, page.user)


@router.post("")
def post_profile(
    page: Page = Depends(require_page),
    nickname: str = Form(""),
    bio: str = Form(""),
    favorite_types: List[str] = Form([]),
    avatar: Optional[UploadFile] = File(None),
) -> Dict[str, Any]:
    """Upsert-style: replaces nickname, bio and types; a new avatar replaces the old one."""
    return H.save_profile(
        page.client, page.user, nickname, bio, favorite_types, read_image("avatar", avatar)
    )
