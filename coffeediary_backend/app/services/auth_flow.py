# coffeediary_backend/app/services/auth_flow.py
"""
Authentication flow controller.

State goes checking -> authenticated | unauthenticated when the page
mounts (session query), then follows SIGNED_IN / SIGNED_OUT
notifications for the same identity until the page unmounts. The
provider subscription is held only between mount and unmount.
"""
from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, List, Optional, Tuple

from coffeediary_backend.app.schemas import AuthSession, AuthUser
from coffeediary_backend.app.utils.logs import get_logger
from .backend.base import AuthEvent, IdentityProvider, Subscription

log = get_logger("auth.flow")


class AuthState(str, Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


Listener = Callable[["AuthFlowController", AuthEvent], None]


class AuthFlowController:
    def __init__(self, identity: IdentityProvider, access_token: Optional[str]):
        self.identity = identity
        self.access_token = access_token or ""
        self.state = AuthState.CHECKING
        self.user: Optional[AuthUser] = None
        self._subscription: Optional[Subscription] = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # -- lifecycle -------------------------------------------------------
    def mount(self) -> "AuthFlowController":
        user = self.identity.get_user(self.access_token) if self.access_token else None
        with self._lock:
            self.user = user
            self.state = AuthState.AUTHENTICATED if user else AuthState.UNAUTHENTICATED
        self._subscription = self.identity.on_auth_state_change(self._on_event)
        return self

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    def __enter__(self) -> "AuthFlowController":
        return self.mount()

    def __exit__(self, *exc) -> None:
        self.unmount()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def snapshot(self) -> Tuple[AuthState, Optional[AuthUser]]:
        with self._lock:
            return self.state, self.user

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # -- notifications ---------------------------------------------------
    def _same_token(self, session: Optional[AuthSession]) -> bool:
        return bool(session and self.access_token and session.access_token == self.access_token)

    def _on_event(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        # events arrive on provider threads
        with self._lock:
            if not self._apply(event, session):
                return
            state = self.state
        log.info("page session %s after %s", state.value, event.value)
        for listener in list(self._listeners):
            listener(self, event)

    def _apply(self, event: AuthEvent, session: Optional[AuthSession]) -> bool:
        if event is AuthEvent.SIGNED_IN and session is not None:
            # only this page's token, or a refresh of the identity it already shows
            same_user = self.user is not None and session.user.id == self.user.id
            if not (self._same_token(session) or same_user):
                return False
            self.user = session.user
            self.state = AuthState.AUTHENTICATED
            return True
        if event is AuthEvent.SIGNED_OUT and self._same_token(session):
            self.user = None
            self.state = AuthState.UNAUTHENTICATED
            return True
        return False
