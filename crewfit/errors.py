"""Error taxonomy for the social core.

Every error carries a machine-readable ``code`` so the HTTP layer can map
it to a status and clients can branch on it without parsing messages.
"""

from enum import Enum


class ConflictCode(str, Enum):
    ALREADY_FRIENDS = "already_friends"
    ALREADY_SENT = "already_sent"
    ALREADY_RECEIVED = "already_received"


class SocialError(Exception):
    code = "social_error"

    def __init__(self, message: str = "", code: str | None = None):
        super().__init__(message or self.code)
        if code is not None:
            self.code = code

    @property
    def detail(self) -> str:
        return str(self)


class ConflictError(SocialError):
    """Duplicate or contradictory friend-request state."""

    def __init__(self, code: ConflictCode, message: str = ""):
        super().__init__(message or code.value.replace("_", " "), code=code.value)
        self.conflict = code


class NotFoundError(SocialError):
    code = "not_found"


class PermissionDeniedError(SocialError, PermissionError):
    code = "permission_denied"


class ValidationError(SocialError, ValueError):
    code = "validation_error"


class TransientFetchError(SocialError):
    """I/O failure (or timeout) from a collaborator."""

    code = "transient_fetch_error"
