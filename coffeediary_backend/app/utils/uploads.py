# coffeediary_backend/app/utils/uploads.py
from __future__ import annotations

import io
import time
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from coffeediary_backend.app.errors import FormValidationError
from .strings import file_extension, safe_filename

MAX_IMAGE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content_type: str
    data: bytes


def check_image(field: str, filename: str, content_type: str | None, data: bytes) -> ImageUpload:
    """Accept only decodable images; raise FormValidationError otherwise."""
    if not content_type or not content_type.startswith("image/"):
        raise FormValidationError(field, f"画像ファイルを選択してください（{content_type or '不明な形式'}）")
    if not data:
        raise FormValidationError(field, "画像ファイルが空です")
    if len(data) > MAX_IMAGE_BYTES:
        raise FormValidationError(field, "画像ファイルが大きすぎます（10MBまで）")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise FormValidationError(field, f"画像を読み込めませんでした: {e}")
    return ImageUpload(filename=filename or "image", content_type=content_type, data=data)


def now_ms() -> int:
    return int(time.time() * 1000)


def photo_path(user_id: str, filename: str) -> str:
    # <owner>/<epoch ms>-<name>
    return f"{user_id}/{now_ms()}-{safe_filename(filename, fallback='photo')}"


def avatar_path(user_id: str, filename: str) -> str:
    # <owner>/<epoch ms>.<ext>
    return f"{user_id}/{now_ms()}.{file_extension(filename)}"
