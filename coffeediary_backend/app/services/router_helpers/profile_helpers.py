# coffeediary_backend/app/services/router_helpers/profile_helpers.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from coffeediary_backend.app.config import AVATARS_BUCKET
from coffeediary_backend.app.errors import BackendError, FormValidationError
from coffeediary_backend.app.schemas import (
    BIO_MAX, COFFEE_TYPES, DEFAULT_NICKNAME, NICKNAME_MAX, AuthUser, Profile, ProfileUpdate,
)
from coffeediary_backend.app.services.backend import DataClient
from coffeediary_backend.app.utils.logs import get_logger
from coffeediary_backend.app.utils.strings import last_url_segment
from coffeediary_backend.app.utils.uploads import ImageUpload, avatar_path
from .view import page_view

log = get_logger("pages.profile")

SAVED = "プロフィールを更新しました"


def _load(client: DataClient, user: AuthUser) -> Profile:
    # a missing row (trigger not run yet) renders as an empty default profile
    return client.profiles.get_profile(user.id) or Profile(id=user.id, nickname=DEFAULT_NICKNAME)


# What it does: profile editor state (current values + selectable coffee types).
def profile_view(client: DataClient, user: AuthUser) -> Dict[str, Any]:
    try:
        profile = _load(client, user)
    except BackendError as e:
        log.warning("profile load failed for %s: %s", user.id, e.message)
        return page_view(error=e.message, profile=None, coffee_types=COFFEE_TYPES)
    return page_view(
        profile=profile,
        email=user.email,
        coffee_types=COFFEE_TYPES,
        incomplete=profile.is_incomplete(),
    )


def validate_profile(nickname: Optional[str], bio: Optional[str], favorite_types: Sequence[str]) -> ProfileUpdate:
    nickname = (nickname or "").strip()
    if not nickname:
        raise FormValidationError("nickname", "ニックネームを入力してください")
    if len(nickname) > NICKNAME_MAX:
        raise FormValidationError("nickname", f"ニックネームは{NICKNAME_MAX}文字以内で入力してください")
    bio = bio or ""
    if len(bio) > BIO_MAX:
        raise FormValidationError("bio", f"自己紹介は{BIO_MAX}文字以内で入力してください")
    chosen: List[str] = []
    for t in favorite_types:
        if t not in COFFEE_TYPES:
            raise FormValidationError("favorite_types", f"不明なコーヒーの種類です: {t}")
        if t not in chosen:
            chosen.append(t)
    return ProfileUpdate(nickname=nickname, bio=bio, favorite_types=chosen)


def _replace_avatar(client: DataClient, user: AuthUser, old_url: Optional[str], avatar: ImageUpload) -> str:
    old_name = last_url_segment(old_url or "")
    if old_name:
        try:
            client.blobs.remove(user.id, AVATARS_BUCKET, [f"{user.id}/{old_name}"])
        except BackendError as e:
            # save continues; the stale object stays in the bucket
            log.warning("old avatar %s not removed: %s", old_name, e.message)
    path = avatar_path(user.id, avatar.filename)
    client.blobs.upload(user.id, AVATARS_BUCKET, path, avatar.data, avatar.content_type)
    return client.blobs.public_url(AVATARS_BUCKET, path)


def save_profile(
    client: DataClient,
    user: AuthUser,
    nickname: Optional[str],
    bio: Optional[str],
    favorite_types: Sequence[str],
    avatar: Optional[ImageUpload] = None,
) -> Dict[str, Any]:
    """Validate, swap the avatar if a new one came in, then upsert the row."""
    update = validate_profile(nickname, bio, favorite_types)
    current = _load(client, user)
    update.avatar_url = current.avatar_url
    if avatar is not None:
        update.avatar_url = _replace_avatar(client, user, current.avatar_url, avatar)
    profile = client.profiles.upsert_profile(user.id, update)
    log.info("profile saved for %s", user.id)
    return page_view(message=SAVED, profile=profile, coffee_types=COFFEE_TYPES, redirect="/")
