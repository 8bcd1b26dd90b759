# coffeediary_backend/app/services/router_helpers/entry_helpers.py
"""
Record-entry form, entries list and entry detail.

The list page fetches the owner's whole history once and hands it to the
aggregation engine; filters always run against that unfiltered base.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from coffeediary_backend.app.config import PHOTOS_BUCKET
from coffeediary_backend.app.errors import BackendError, FormValidationError
from coffeediary_backend.app.schemas import (
    FLAVOR_NOTES, ROAST_LEVELS, TASTE_ATTRIBUTES, TASTE_DEFAULT, TASTE_LABELS,
    AuthUser, EntryCreate, EntryFilter,
)
from coffeediary_backend.app.services.aggregation import (
    distinct_brew_methods, distinct_origins, filter_entries,
)
from coffeediary_backend.app.services.backend import DataClient
from coffeediary_backend.app.utils.logs import get_logger
from coffeediary_backend.app.utils.strings import null_to_none_or_strip
from coffeediary_backend.app.utils.uploads import ImageUpload, photo_path
from .view import page_view

log = get_logger("pages.entries")

NOT_FOUND = "記録が見つかりません"
BEAN_NAME_REQUIRED = "豆の名前を入力してください"


# ---- record form --------------------------------------------------------------
def record_form_options() -> Dict[str, Any]:
    return page_view(
        roast_levels=ROAST_LEVELS,
        flavor_notes=FLAVOR_NOTES,
        taste_attributes=[{"key": k, "label": TASTE_LABELS[k]} for k in TASTE_ATTRIBUTES],
        defaults={**{k: TASTE_DEFAULT for k in TASTE_ATTRIBUTES}, "rating": TASTE_DEFAULT, "made_by_user": True},
    )


def _score(fields: Dict[str, Any], key: str) -> int:
    raw = fields.get(key)
    if raw in (None, ""):
        return TASTE_DEFAULT
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise FormValidationError(key, f"{TASTE_LABELS.get(key, '評価')}は1〜5で入力してください")
    if not 1 <= value <= 5:
        raise FormValidationError(key, f"{TASTE_LABELS.get(key, '評価')}は1〜5で入力してください")
    return value


def _flavors(selected: Sequence[str], custom: Optional[str]) -> List[str]:
    out: List[str] = []
    for note in selected:
        if note not in FLAVOR_NOTES:
            raise FormValidationError("flavor_notes", f"不明なフレーバーです: {note}")
        if note not in out:
            out.append(note)
    extra = null_to_none_or_strip(custom)
    if extra and extra not in out:
        out.append(extra)
    return out


def build_entry(fields: Dict[str, Any], photos: Optional[List[str]] = None) -> EntryCreate:
    """Validate the raw form fields into an insertable entry."""
    bean_name = null_to_none_or_strip(fields.get("bean_name"))
    if not bean_name:
        raise FormValidationError("bean_name", BEAN_NAME_REQUIRED)

    roast = null_to_none_or_strip(fields.get("roast_level"))
    if roast and roast not in ROAST_LEVELS:
        raise FormValidationError("roast_level", f"焙煎度を選択してください: {roast}")

    made_by_user = bool(fields.get("made_by_user", True))
    return EntryCreate(
        bean_name=bean_name,
        bean_origin=null_to_none_or_strip(fields.get("bean_origin")),
        roast_level=roast,
        shop=null_to_none_or_strip(fields.get("shop")),
        brew_method=null_to_none_or_strip(fields.get("brew_method")),
        made_by_user=made_by_user,
        # grind size only applies to coffee the user brewed
        grind_size=fields.get("grind_size") if made_by_user else None,
        sourness=_score(fields, "sourness"),
        sweetness=_score(fields, "sweetness"),
        bitterness=_score(fields, "bitterness"),
        richness=_score(fields, "richness"),
        rating=_score(fields, "rating"),
        flavor_notes=_flavors(fields.get("flavor_notes") or [], fields.get("custom_flavor")),
        memo=null_to_none_or_strip(fields.get("memo")),
        photos=photos or [],
    )


def record_entry(
    client: DataClient,
    user: AuthUser,
    fields: Dict[str, Any],
    photo: Optional[ImageUpload] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Upload the optional photo, then insert the entry.

    Validation runs before anything is written. A failed insert after a
    successful upload leaves the photo in storage.
    """
    build_entry(fields)
    photos: List[str] = []
    if photo is not None:
        path = photo_path(user.id, photo.filename)
        client.blobs.upload(user.id, PHOTOS_BUCKET, path, photo.data, photo.content_type)
        photos.append(client.blobs.public_url(PHOTOS_BUCKET, path))
        log.info("photo stored at %s/%s", PHOTOS_BUCKET, path)
    entry = client.entries.insert_entry(
        user.id, build_entry(fields, photos), created_at=now or datetime.now().astimezone()
    )
    log.info("entry %s recorded for %s", entry.id, user.id)
    return page_view(entry=entry, redirect="/")


# ---- list / detail --------------------------------------------------------------
def entries_view(client: DataClient, user: AuthUser, params: EntryFilter) -> Dict[str, Any]:
    try:
        base = client.entries.list_entries(user.id)
    except BackendError as e:
        log.warning("entries fetch failed for %s: %s", user.id, e.message)
        return page_view(
            error=e.message, entries=[], shown=0, total=0,
            filters=params, options={"origins": [], "brew_methods": [], "roast_levels": ROAST_LEVELS},
        )
    shown = filter_entries(base, params)
    return page_view(
        entries=shown,
        shown=len(shown),
        total=len(base),
        summary=f"{len(shown)}件表示 / 全{len(base)}件",
        filters=params,
        options={
            "origins": distinct_origins(base),
            "brew_methods": distinct_brew_methods(base),
            "roast_levels": ROAST_LEVELS,
        },
    )


def entry_detail(client: DataClient, user: AuthUser, entry_id: str) -> Optional[Dict[str, Any]]:
    """Detail view, or None when the entry is missing or someone else's."""
    entry = client.entries.get_entry(user.id, entry_id)
    if entry is None:
        return None
    tastes = [{"key": k, "label": TASTE_LABELS[k], "value": getattr(entry, k)} for k in TASTE_ATTRIBUTES]
    return page_view(entry=entry, tastes=tastes)
