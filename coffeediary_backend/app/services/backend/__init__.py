# coffeediary_backend/app/services/backend/__init__.py
from __future__ import annotations

from coffeediary_backend.app.config import BACKEND_SUPABASE, Settings

from .base import (
    AuthEvent, AuthEventHub, Backend, BlobStore, DataClient, EntryStore,
    IdentityProvider, ProfileStore, SignUpResult, Subscription,
)


def build_backend(settings: Settings) -> Backend:
    """Pick the implementation named by COFFEEDIARY_BACKEND."""
    if settings.backend == BACKEND_SUPABASE:
        from .supabase import build_supabase_backend
        return build_supabase_backend(settings)
    from .local import build_local_backend
    return build_local_backend(settings)


__all__ = [
    "AuthEvent", "AuthEventHub", "Backend", "BlobStore", "DataClient", "EntryStore",
    "IdentityProvider", "ProfileStore", "SignUpResult", "Subscription", "build_backend",
]
