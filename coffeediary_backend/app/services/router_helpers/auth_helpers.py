# coffeediary_backend/app/services/router_helpers/auth_helpers.py
from __future__ import annotations

from typing import Any, Dict

from coffeediary_backend.app.errors import AuthError, BackendError, FormValidationError
from coffeediary_backend.app.schemas import NICKNAME_MAX, LoginIn, SignUpIn
from coffeediary_backend.app.services.backend import Backend
from coffeediary_backend.app.utils.logs import get_logger
from .view import page_view

log = get_logger("auth")

SIGNUP_SENT = "認証メールを送信しました。メールをご確認ください。"
SIGNUP_DONE = "登録が完了しました。ログインしてください。"
LOGIN_DONE = "ログインしました。ホームページへ移動します..."
RESET_SENT = "パスワード再設定用メールを送信しました。メールをご確認ください。"
RESET_NEEDS_EMAIL = "メールアドレスを入力してください。"
RESET_FAILED = "パスワードリセットエラー: "

HOME_ROUTE = "/"
PROFILE_ROUTE = "/profile"


def auth_page() -> Dict[str, Any]:
    return page_view(state="unauthenticated", modes=["login", "signup"], default_mode="login")


def signup(backend: Backend, body: SignUpIn) -> Dict[str, Any]:
    if not body.nickname:
        raise FormValidationError("nickname", "ニックネームを入力してください")
    if len(body.nickname) > NICKNAME_MAX:
        raise FormValidationError("nickname", f"ニックネームは{NICKNAME_MAX}文字以内で入力してください")
    result = backend.identity.sign_up(body.email, body.password, body.nickname)
    log.info("sign-up ok for %s (confirmation=%s)", result.user.id, result.needs_confirmation)
    # no profile-completeness redirect here; that check runs at login only
    return page_view(
        message=SIGNUP_SENT if result.needs_confirmation else SIGNUP_DONE,
        next_mode="login",
        user_id=result.user.id,
    )


def post_login_redirect(backend: Backend, access_token: str, user_id: str) -> str:
    """`/profile` when bio or favorite types are missing, else `/`. Not persisted."""
    try:
        profile = backend.connect(access_token).profiles.get_profile(user_id)
    except BackendError as e:
        log.warning("profile lookup after login failed for %s: %s", user_id, e.message)
        profile = None
    if profile is None or profile.is_incomplete():
        return PROFILE_ROUTE
    return HOME_ROUTE


def login(backend: Backend, body: LoginIn) -> Dict[str, Any]:
    session = backend.identity.sign_in(body.email, body.password)
    return page_view(
        message=LOGIN_DONE,
        access_token=session.access_token,
        user=session.user,
        redirect=post_login_redirect(backend, session.access_token, session.user.id),
    )


def logout(backend: Backend, access_token: str) -> Dict[str, Any]:
    if access_token:
        backend.identity.sign_out(access_token)
    return page_view(redirect="/auth")


def password_reset(backend: Backend, email: str) -> Dict[str, Any]:
    email = (email or "").strip()
    if not email:
        raise FormValidationError("email", RESET_NEEDS_EMAIL)
    try:
        backend.identity.reset_password(email)
    except (AuthError, BackendError) as e:
        log.warning("password reset failed for %s: %s", email, e.message)
        return page_view(error=f"{RESET_FAILED}{e.message}")
    return page_view(message=RESET_SENT)
