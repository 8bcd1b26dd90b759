# coffeediary_backend/app/services/backend/supabase.py
"""
httpx adapter for the hosted platform (Supabase).

- Auth:    /auth/v1/{signup,token,logout,user,recover}
- Tables:  /rest/v1/users, /rest/v1/coffee_entries (row policies keyed by the bearer token)
- Storage: /storage/v1/object/{bucket}/{path}, public reads under /object/public/

The anon key goes in the `apikey` header on every call; table and storage
calls carry the caller's access token so the platform's row and bucket
policies apply. Failures are raised, never retried.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from coffeediary_backend.app.config import Settings
from coffeediary_backend.app.errors import AuthError, BackendError
from coffeediary_backend.app.schemas import (
    AuthSession, AuthUser, Entry, EntryCreate, Profile, ProfileUpdate,
)
from coffeediary_backend.app.utils.logs import get_logger
from .base import (
    AuthEvent, Backend, BlobStore, DataClient, EntryStore, IdentityProvider,
    ProfileStore, SignUpResult, check_owner_path,
)

log = get_logger("backend.supabase")

ENTRIES_TABLE = "coffee_entries"
PROFILES_TABLE = "users"


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return resp.text or f"HTTP {resp.status_code}"


def _user_from(body: Dict[str, Any]) -> AuthUser:
    meta = body.get("user_metadata") or {}
    return AuthUser(id=body["id"], email=body.get("email") or "", nickname=meta.get("nickname"))


class SupabaseHttp:
    """Shared httpx client plus request helpers."""

    def __init__(self, url: str, anon_key: str, transport: Optional[httpx.BaseTransport] = None):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        timeout = httpx.Timeout(connect=5.0, read=10.0, write=30.0, pool=5.0)
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
        self.client = httpx.Client(
            base_url=self.url,
            headers={"apikey": anon_key},
            timeout=timeout,
            limits=limits,
            transport=transport,
        )

    def headers(self, access_token: Optional[str] = None, **extra: str) -> Dict[str, str]:
        h = {"Authorization": f"Bearer {access_token or self.anon_key}"}
        h.update(extra)
        return h

    def send(self, method: str, path: str, *, auth: bool = False, **kwargs: Any) -> httpx.Response:
        try:
            resp = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            log.warning("%s %s failed: %s", method, path, exc)
            raise BackendError(f"network error: {exc}") from exc
        if resp.status_code >= 400:
            text = _error_text(resp)
            log.warning("%s %s -> %s %s", method, path, resp.status_code, text)
            if auth:
                raise AuthError.from_provider_message(text)
            raise BackendError(text, status=resp.status_code)
        return resp

    def close(self) -> None:
        self.client.close()


# ---- identity ----------------------------------------------------------------
class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, http: SupabaseHttp):
        super().__init__()
        self.http = http

    def sign_up(self, email: str, password: str, nickname: str) -> SignUpResult:
        resp = self.http.send(
            "POST", "/auth/v1/signup", auth=True,
            headers=self.http.headers(),
            json={"email": email, "password": password, "data": {"nickname": nickname}},
        )
        body = resp.json()
        # autoconfirm projects answer with a session, others with the bare user
        user_body = body.get("user") or body
        return SignUpResult(user=_user_from(user_body), needs_confirmation=not body.get("access_token"))

    def sign_in(self, email: str, password: str) -> AuthSession:
        resp = self.http.send(
            "POST", "/auth/v1/token", auth=True,
            params={"grant_type": "password"},
            headers=self.http.headers(),
            json={"email": email, "password": password},
        )
        body = resp.json()
        session = AuthSession(access_token=body["access_token"], user=_user_from(body["user"]))
        self.events.emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_out(self, access_token: str) -> None:
        user = self.get_user(access_token)
        try:
            self.http.send("POST", "/auth/v1/logout", auth=True, headers=self.http.headers(access_token))
        except AuthError as e:
            # an expired or revoked token is already signed out upstream
            log.info("logout with rejected token: %s", e.message)
        session = AuthSession(access_token=access_token, user=user) if user else None
        self.events.emit(AuthEvent.SIGNED_OUT, session)

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        if not access_token:
            return None
        try:
            resp = self.http.send("GET", "/auth/v1/user", auth=True, headers=self.http.headers(access_token))
        except AuthError:
            return None
        return _user_from(resp.json())

    def reset_password(self, email: str) -> None:
        self.http.send("POST", "/auth/v1/recover", auth=True, headers=self.http.headers(), json={"email": email})


# ---- tables ------------------------------------------------------------------
class SupabaseEntryStore(EntryStore):
    def __init__(self, http: SupabaseHttp, access_token: str):
        self.http = http
        self.token = access_token

    def list_entries(self, user_id: str, *, limit: Optional[int] = None) -> List[Entry]:
        params: Dict[str, Any] = {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "order": "created_at.desc",
        }
        if limit:
            params["limit"] = limit
        resp = self.http.send(
            "GET", f"/rest/v1/{ENTRIES_TABLE}", params=params, headers=self.http.headers(self.token)
        )
        return [Entry.model_validate(row) for row in resp.json()]

    def get_entry(self, user_id: str, entry_id: str) -> Optional[Entry]:
        resp = self.http.send(
            "GET", f"/rest/v1/{ENTRIES_TABLE}",
            params={"select": "*", "id": f"eq.{entry_id}", "user_id": f"eq.{user_id}"},
            headers=self.http.headers(self.token),
        )
        rows = resp.json()
        return Entry.model_validate(rows[0]) if rows else None

    def insert_entry(
        self, user_id: str, data: EntryCreate, *, created_at: Optional[datetime] = None
    ) -> Entry:
        row = {"user_id": user_id, **data.model_dump(mode="json")}
        if created_at is not None:
            row["created_at"] = created_at.isoformat()
        resp = self.http.send(
            "POST", f"/rest/v1/{ENTRIES_TABLE}", json=row,
            headers=self.http.headers(self.token, Prefer="return=representation"),
        )
        return Entry.model_validate(resp.json()[0])


class SupabaseProfileStore(ProfileStore):
    def __init__(self, http: SupabaseHttp, access_token: str):
        self.http = http
        self.token = access_token

    def get_profile(self, user_id: str) -> Optional[Profile]:
        resp = self.http.send(
            "GET", f"/rest/v1/{PROFILES_TABLE}",
            params={"select": "*", "id": f"eq.{user_id}"},
            headers=self.http.headers(self.token),
        )
        rows = resp.json()
        return Profile.model_validate(rows[0]) if rows else None

    def upsert_profile(self, user_id: str, data: ProfileUpdate) -> Profile:
        row = {
            "id": user_id,
            **data.model_dump(mode="json"),
            "updated_at": datetime.now().astimezone().isoformat(),
        }
        resp = self.http.send(
            "POST", f"/rest/v1/{PROFILES_TABLE}", json=row,
            headers=self.http.headers(
                self.token, Prefer="resolution=merge-duplicates,return=representation"
            ),
        )
        return Profile.model_validate(resp.json()[0])


# ---- storage -----------------------------------------------------------------
class SupabaseBlobStore(BlobStore):
    def __init__(self, http: SupabaseHttp, access_token: str):
        self.http = http
        self.token = access_token

    def upload(self, user_id: str, bucket: str, path: str, data: bytes, content_type: str) -> None:
        check_owner_path(user_id, path)
        self.http.send(
            "POST", f"/storage/v1/object/{quote(bucket)}/{quote(path)}", content=data,
            headers=self.http.headers(self.token, **{"Content-Type": content_type}),
        )

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.http.url}/storage/v1/object/public/{quote(bucket)}/{quote(path)}"

    def remove(self, user_id: str, bucket: str, paths: Sequence[str]) -> None:
        for p in paths:
            check_owner_path(user_id, p)
        self.http.send(
            "DELETE", f"/storage/v1/object/{quote(bucket)}", json={"prefixes": list(paths)},
            headers=self.http.headers(self.token),
        )


def build_supabase_backend(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> Backend:
    http = SupabaseHttp(settings.supabase_url, settings.supabase_anon_key, transport=transport)

    def connect(access_token: str) -> DataClient:
        return DataClient(
            entries=SupabaseEntryStore(http, access_token),
            profiles=SupabaseProfileStore(http, access_token),
            blobs=SupabaseBlobStore(http, access_token),
        )

    log.info("supabase backend ready (%s)", http.url)
    return Backend(
        kind="supabase",
        identity=SupabaseIdentityProvider(http),
        connect=connect,
        on_close=http.close,
    )
