from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from coffeediary_backend.app.services.backend import Backend
from .deps import get_backend

router = APIRouter(prefix="/media", tags=["media"])


# What it does: public reads of locally stored avatars and photos.
@router.get("/{bucket}/{path:path}")
def read_media(bucket: str, path: str, backend: Backend = Depends(get_backend)):
    target = backend.serve_blob(bucket, path) if backend.serve_blob is not None else None
    if target is None:
        raise HTTPException(status_code=404, detail="Object not found")
    return FileResponse(target)
