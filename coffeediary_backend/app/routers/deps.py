from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from fastapi import Depends, Request, UploadFile
from starlette.requests import HTTPConnection

from coffeediary_backend.app.config import Settings
from coffeediary_backend.app.errors import AuthRequired
from coffeediary_backend.app.schemas import AuthUser
from coffeediary_backend.app.services.auth_flow import AuthFlowController, AuthState
from coffeediary_backend.app.services.backend import Backend, DataClient
from coffeediary_backend.app.utils.uploads import ImageUpload, check_image


def get_backend(conn: HTTPConnection) -> Backend:
    return conn.app.state.backend


def get_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def access_token_from(conn: HTTPConnection) -> str:
    """Bearer header first, then the session cookie."""
    auth = conn.headers.get("authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return conn.cookies.get(get_settings(conn).session_cookie, "")


# What it does: one auth flow per request, subscribed only while the page handles it.
def page_flow(request: Request, backend: Backend = Depends(get_backend)) -> Iterator[AuthFlowController]:
    with AuthFlowController(backend.identity, access_token_from(request)) as flow:
        yield flow


@dataclass
class Page:
    flow: AuthFlowController
    user: AuthUser
    client: DataClient
    token: str


def require_page(
    flow: AuthFlowController = Depends(page_flow),
    backend: Backend = Depends(get_backend),
) -> Page:
    """Signed-in guard for every page except /auth."""
    state, user = flow.snapshot()
    if state is not AuthState.AUTHENTICATED or user is None:
        raise AuthRequired()
    return Page(flow=flow, user=user, client=backend.connect(flow.access_token), token=flow.access_token)


def read_image(field: str, upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    """Checked image from a multipart part; an empty part means no file was chosen."""
    if upload is None or not upload.filename:
        return None
    data = upload.file.read()
    return check_image(field, upload.filename, upload.content_type, data)
