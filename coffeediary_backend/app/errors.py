# coffeediary_backend/app/errors.py
"""Error taxonomy for the coffee diary.

Backend (store/blob) failures, auth failures mapped once from the
provider's text, client-side form validation, and startup config.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class CoffeeDiaryError(Exception):
    """Base exception for the coffee diary backend."""

    pass


class ConfigError(CoffeeDiaryError):
    """Raised at startup when required settings are missing or invalid."""

    pass


class BackendError(CoffeeDiaryError):
    """Raised when the entry store or blob store call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class FormValidationError(CoffeeDiaryError):
    """Raised when a form field fails its client-side constraint."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class AuthErrorKind(str, Enum):
    EMAIL_UNCONFIRMED = "email_unconfirmed"
    INVALID_CREDENTIALS = "invalid_credentials"
    DUPLICATE_EMAIL = "duplicate_email"
    WEAK_PASSWORD = "weak_password"
    OTHER = "other"


# provider text fragment -> kind; first match wins
_PROVIDER_MARKERS = (
    ("email not confirmed", AuthErrorKind.EMAIL_UNCONFIRMED),
    ("invalid login credentials", AuthErrorKind.INVALID_CREDENTIALS),
    ("already registered", AuthErrorKind.DUPLICATE_EMAIL),
    ("password should be at least", AuthErrorKind.WEAK_PASSWORD),
)

_USER_MESSAGES = {
    AuthErrorKind.EMAIL_UNCONFIRMED: "メールアドレスが確認されていません。メールをご確認ください。",
    AuthErrorKind.INVALID_CREDENTIALS: "メールアドレスまたはパスワードが正しくありません。",
    AuthErrorKind.DUPLICATE_EMAIL: "このメールアドレスは既に登録されています。",
    AuthErrorKind.WEAK_PASSWORD: "パスワードは8文字以上にしてください。",
}


class AuthError(CoffeeDiaryError):
    """Identity provider failure, tagged by kind."""

    def __init__(self, kind: AuthErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message

    @classmethod
    def from_provider_message(cls, text: str) -> "AuthError":
        low = (text or "").lower()
        for marker, kind in _PROVIDER_MARKERS:
            if marker in low:
                return cls(kind, text)
        return cls(AuthErrorKind.OTHER, text)

    def user_message(self) -> str:
        if self.kind is AuthErrorKind.OTHER:
            if not self.message:
                return "認証中に予期せぬエラーが発生しました。"
            return f"エラーが発生しました: {self.message}"
        return _USER_MESSAGES[self.kind]


class AuthRequired(CoffeeDiaryError):
    """Raised by page guards when no valid session is present."""

    pass
