class KeepNoteError(Exception):
    """Base class for errors raised outside the pure formatting core."""


class NoteNotFoundError(KeepNoteError):
    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


class StoreError(KeepNoteError):
    """The note store could not be read or written."""


class NotSignedInError(KeepNoteError):
    def __init__(self):
        super().__init__("No user is signed in")


class AuthError(KeepNoteError):
    """
    Sign-in failed. Subclasses name the condition; `code` mirrors the
    provider's error code when there is one.
    """

    code = "auth/unknown"


class SignInCancelledError(AuthError):
    code = "auth/popup-closed-by-user"


class PopupBlockedError(AuthError):
    code = "auth/popup-blocked"


class NetworkError(AuthError):
    code = "auth/network-request-failed"


class RateLimitedError(AuthError):
    code = "auth/too-many-requests"


class AccountDisabledError(AuthError):
    code = "auth/user-disabled"


class ProviderDisabledError(AuthError):
    code = "auth/operation-not-allowed"
