# coffeediary_backend/app/services/backend/base.py
"""
Contracts for the backend-as-a-service collaborators.

The page controllers only talk to these four interfaces; `local.py` and
`supabase.py` provide implementations. Access is always on behalf of one
user: stores never return another identity's rows.
"""
from __future__ import annotations

import threading
from datetime import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from coffeediary_backend.app.errors import BackendError
from coffeediary_backend.app.schemas import (
    AuthSession, AuthUser, Entry, EntryCreate, Profile, ProfileUpdate,
)
from coffeediary_backend.app.utils.logs import get_logger

log = get_logger("auth.events")


# ---- auth state notifications ------------------------------------------------
class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthCallback = Callable[[AuthEvent, Optional[AuthSession]], None]


class Subscription:
    """Handle returned by `on_auth_state_change`; release it with `unsubscribe()`."""

    def __init__(self, hub: "AuthEventHub", key: int):
        self._hub = hub
        self._key = key
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._hub._drop(self._key)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class AuthEventHub:
    """In-process fan-out of sign-in / sign-out notifications."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._next = 0
        self._callbacks: Dict[int, AuthCallback] = {}

    def subscribe(self, callback: AuthCallback) -> Subscription:
        with self._lock:
            self._next += 1
            self._callbacks[self._next] = callback
            return Subscription(self, self._next)

    def _drop(self, key: int) -> None:
        with self._lock:
            self._callbacks.pop(key, None)

    def emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        with self._lock:
            callbacks = list(self._callbacks.values())
        log.info("auth event %s (%d listeners)", event.value, len(callbacks))
        for cb in callbacks:
            try:
                cb(event, session)
            except Exception:
                # keep notifying the rest
                log.exception("auth listener failed on %s", event.value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)


# ---- collaborators -----------------------------------------------------------
@dataclass
class SignUpResult:
    user: AuthUser
    needs_confirmation: bool = False


class IdentityProvider(ABC):
    def __init__(self) -> None:
        self.events = AuthEventHub()

    @abstractmethod
    def sign_up(self, email: str, password: str, nickname: str) -> SignUpResult: ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    def sign_out(self, access_token: str) -> None: ...

    @abstractmethod
    def get_user(self, access_token: str) -> Optional[AuthUser]: ...

    @abstractmethod
    def reset_password(self, email: str) -> None: ...

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        return self.events.subscribe(callback)


class EntryStore(ABC):
    @abstractmethod
    def list_entries(self, user_id: str, *, limit: Optional[int] = None) -> List[Entry]:
        """Owner's entries, newest first."""

    @abstractmethod
    def get_entry(self, user_id: str, entry_id: str) -> Optional[Entry]: ...

    @abstractmethod
    def insert_entry(
        self, user_id: str, data: EntryCreate, *, created_at: Optional[datetime] = None
    ) -> Entry: ...


class ProfileStore(ABC):
    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    @abstractmethod
    def upsert_profile(self, user_id: str, data: ProfileUpdate) -> Profile: ...


class BlobStore(ABC):
    @abstractmethod
    def upload(self, user_id: str, bucket: str, path: str, data: bytes, content_type: str) -> None: ...

    @abstractmethod
    def public_url(self, bucket: str, path: str) -> str: ...

    @abstractmethod
    def remove(self, user_id: str, bucket: str, paths: Sequence[str]) -> None: ...


def check_owner_path(user_id: str, path: str) -> None:
    """Writes/deletes are allowed only under the acting user's folder."""
    head = path.split("/", 1)[0]
    if not user_id or head != user_id or "/" not in path or ".." in path.split("/"):
        raise BackendError("new row violates row-level security policy", status=403)


@dataclass
class DataClient:
    """Stores acting on behalf of one signed-in caller."""
    entries: EntryStore
    profiles: ProfileStore
    blobs: BlobStore


@dataclass
class Backend:
    """Identity provider plus a factory for per-caller data clients."""
    kind: str
    identity: IdentityProvider
    connect: Callable[[str], DataClient]
    on_close: Optional[Callable[[], None]] = None
    # (bucket, path) -> file on disk; only backends that serve their own blobs
    serve_blob: Optional[Callable[[str, str], Optional[Path]]] = None

    def close(self) -> None:
        if self.on_close is not None:
            self.on_close()
