# coffeediary_backend/app/services/backend/local.py
"""
Local stand-in for the hosted platform: SQLModel tables for identities,
profiles and entries, blobs under DATA_DIR/media, passlib password hashes.

Mirrors the hosted behavior the app relies on: a default profile row is
created on registration, rows are only visible to their owner, and blob
writes are restricted to the owner's folder.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import quote

from passlib.context import CryptContext
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from coffeediary_backend.app.config import Settings, get_media_dir
from coffeediary_backend.app.db.models import (
    AuthToken, CoffeeEntry, UserAccount, UserProfile, utcnow,
)
from coffeediary_backend.app.db.session import init_db, make_engine, session_scope
from coffeediary_backend.app.errors import AuthError, BackendError
from coffeediary_backend.app.schemas import (
    DEFAULT_NICKNAME, AuthSession, AuthUser, Entry, EntryCreate, Profile, ProfileUpdate,
)
from coffeediary_backend.app.utils.logs import get_logger
from .base import (
    AuthEvent, Backend, BlobStore, DataClient, EntryStore, IdentityProvider,
    ProfileStore, SignUpResult, check_owner_path,
)

log = get_logger("backend.local")

MIN_PASSWORD_LENGTH = 6
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _store_error(action: str, exc: Exception) -> BackendError:
    log.warning("local store %s failed: %s", action, exc)
    return BackendError(f"{action} failed: {exc}")


# ---- identity ----------------------------------------------------------------
class LocalIdentityProvider(IdentityProvider):
    def __init__(self, engine: Engine):
        super().__init__()
        self.engine = engine

    def sign_up(self, email: str, password: str, nickname: str) -> SignUpResult:
        email = email.strip().lower()
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError.from_provider_message(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
            )
        with session_scope(self.engine) as s:
            if s.exec(select(UserAccount).where(UserAccount.email == email)).first():
                raise AuthError.from_provider_message("User already registered")
            account = UserAccount(email=email, password_hash=pwd_context.hash(password))
            s.add(account)
            s.flush()
            # registration trigger: one default profile row per identity
            s.add(UserProfile(id=account.id, nickname=(nickname or "").strip() or DEFAULT_NICKNAME))
            s.commit()
            log.info("registered %s", account.id)
            return SignUpResult(user=AuthUser(id=account.id, email=account.email, nickname=nickname))

    def sign_in(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        with session_scope(self.engine) as s:
            account = s.exec(select(UserAccount).where(UserAccount.email == email)).first()
            if not account or not pwd_context.verify(password or "", account.password_hash):
                raise AuthError.from_provider_message("Invalid login credentials")
            if not account.email_confirmed:
                raise AuthError.from_provider_message("Email not confirmed")
            token = secrets.token_urlsafe(32)
            s.add(AuthToken(token=token, user_id=account.id))
            s.commit()
            session = AuthSession(access_token=token, user=AuthUser(id=account.id, email=account.email))
        self.events.emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_out(self, access_token: str) -> None:
        with session_scope(self.engine) as s:
            row = s.get(AuthToken, access_token)
            if row is None:
                return
            account = s.get(UserAccount, row.user_id)
            s.delete(row)
            s.commit()
        user = AuthUser(id=account.id, email=account.email) if account else None
        session = AuthSession(access_token=access_token, user=user) if user else None
        self.events.emit(AuthEvent.SIGNED_OUT, session)

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        if not access_token:
            return None
        with session_scope(self.engine) as s:
            row = s.get(AuthToken, access_token)
            if row is None:
                return None
            account = s.get(UserAccount, row.user_id)
            return AuthUser(id=account.id, email=account.email) if account else None

    def reset_password(self, email: str) -> None:
        # no mailer locally; unknown addresses are not revealed
        log.info("password reset requested for %s", (email or "").strip().lower())


# ---- stores ------------------------------------------------------------------
def _to_entry(row: CoffeeEntry) -> Entry:
    return Entry.model_validate(row.model_dump())

def _to_profile(row: UserProfile) -> Profile:
    return Profile.model_validate(row.model_dump())


class LocalEntryStore(EntryStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    def list_entries(self, user_id: str, *, limit: Optional[int] = None) -> List[Entry]:
        stmt = (
            select(CoffeeEntry)
            .where(CoffeeEntry.user_id == user_id)
            .order_by(CoffeeEntry.created_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        try:
            with session_scope(self.engine) as s:
                return [_to_entry(r) for r in s.exec(stmt).all()]
        except SQLAlchemyError as e:
            raise _store_error("list entries", e)

    def get_entry(self, user_id: str, entry_id: str) -> Optional[Entry]:
        try:
            with session_scope(self.engine) as s:
                row = s.get(CoffeeEntry, entry_id)
                if row is None or row.user_id != user_id:
                    return None
                return _to_entry(row)
        except SQLAlchemyError as e:
            raise _store_error("get entry", e)

    def insert_entry(
        self, user_id: str, data: EntryCreate, *, created_at: Optional[datetime] = None
    ) -> Entry:
        row = CoffeeEntry(user_id=user_id, **data.model_dump(mode="json"))
        if created_at is not None:
            # naive input is taken as UTC; the column keeps an aware value
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            created_at = created_at.astimezone(timezone.utc)
            row.created_at = created_at
            row.updated_at = created_at
        try:
            with session_scope(self.engine) as s:
                s.add(row)
                s.commit()
                s.refresh(row)
                return _to_entry(row)
        except SQLAlchemyError as e:
            raise _store_error("insert entry", e)


class LocalProfileStore(ProfileStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            with session_scope(self.engine) as s:
                row = s.get(UserProfile, user_id)
                return _to_profile(row) if row else None
        except SQLAlchemyError as e:
            raise _store_error("get profile", e)

    def upsert_profile(self, user_id: str, data: ProfileUpdate) -> Profile:
        try:
            with session_scope(self.engine) as s:
                row = s.get(UserProfile, user_id) or UserProfile(id=user_id, nickname=data.nickname)
                row.nickname = data.nickname
                row.bio = data.bio
                row.favorite_types = list(data.favorite_types)
                row.avatar_url = data.avatar_url
                row.updated_at = utcnow()
                s.add(row)
                s.commit()
                s.refresh(row)
                return _to_profile(row)
        except SQLAlchemyError as e:
            raise _store_error("upsert profile", e)


class LocalBlobStore(BlobStore):
    """Public-read buckets as folders under DATA_DIR/media."""

    def __init__(self, root: Path, public_url: str):
        self.root = root
        self.base_url = public_url.rstrip("/")

    def _path(self, bucket: str, path: str) -> Path:
        return self.root / bucket / path

    def upload(self, user_id: str, bucket: str, path: str, data: bytes, content_type: str) -> None:
        check_owner_path(user_id, path)
        dest = self._path(bucket, path)
        if dest.exists():
            raise BackendError("The resource already exists", status=409)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            tmp = dest.with_suffix(dest.suffix + ".tmp")
            tmp.write_bytes(data)
            tmp.replace(dest)
        except OSError as e:
            raise _store_error("upload", e)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/media/{quote(bucket)}/{quote(path)}"

    def remove(self, user_id: str, bucket: str, paths: Sequence[str]) -> None:
        for p in paths:
            check_owner_path(user_id, p)
            self._path(bucket, p).unlink(missing_ok=True)

    def open(self, bucket: str, path: str) -> Optional[Path]:
        """Resolved file for serving, or None if missing or outside the bucket."""
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base not in target.parents or not target.is_file():
            return None
        return target


def build_local_backend(settings: Settings) -> Backend:
    engine = make_engine(settings.db_url)
    init_db(engine)
    blobs = LocalBlobStore(get_media_dir(), settings.public_url)
    client = DataClient(
        entries=LocalEntryStore(engine),
        profiles=LocalProfileStore(engine),
        blobs=blobs,
    )
    log.info("local backend ready (%s)", settings.db_url)
    return Backend(
        kind="local",
        identity=LocalIdentityProvider(engine),
        connect=lambda access_token: client,
        on_close=engine.dispose,
        serve_blob=blobs.open,
    )
