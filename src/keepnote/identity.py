from typing import Optional, Protocol

import structlog

from keepnote.errors import (
    AccountDisabledError,
    AuthError,
    NetworkError,
    PopupBlockedError,
    ProviderDisabledError,
    RateLimitedError,
    SignInCancelledError,
)
from keepnote.models import User

logger = structlog.get_logger(__name__)

_MESSAGES = {
    SignInCancelledError: "Sign-in was cancelled. Please try again.",
    PopupBlockedError: "Pop-up was blocked. Please allow pop-ups and try again.",
    NetworkError: "Network error. Please check your connection and try again.",
    RateLimitedError: "Too many sign-in attempts. Please try again later.",
    AccountDisabledError: "This account has been disabled.",
    ProviderDisabledError: "Sign-in is not enabled. Please contact support.",
}

_DEFAULT_MESSAGE = "An error occurred during sign-in. Please try again."


def auth_error_message(error: Exception) -> str:
    """Maps a sign-in failure to the text shown to the user."""
    for error_type, message in _MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return _DEFAULT_MESSAGE


class IdentityProvider(Protocol):
    def sign_in(self) -> User: ...

    def sign_out(self) -> None: ...

    def current_user(self) -> Optional[User]: ...


class LocalIdentityProvider:
    """
    Single-user provider for running without an external identity service.
    Signing in always yields the configured user.
    """

    def __init__(self, uid: str = "local", display_name: Optional[str] = None):
        self._user = User(uid=uid, display_name=display_name or uid)
        self._signed_in: Optional[User] = None

    def sign_in(self) -> User:
        self._signed_in = self._user
        logger.info("Signed in", uid=self._user.uid)
        return self._user

    def sign_out(self) -> None:
        if self._signed_in is not None:
            logger.info("Signed out", uid=self._signed_in.uid)
        self._signed_in = None

    def current_user(self) -> Optional[User]:
        return self._signed_in


__all__ = [
    "AuthError",
    "IdentityProvider",
    "LocalIdentityProvider",
    "auth_error_message",
]
