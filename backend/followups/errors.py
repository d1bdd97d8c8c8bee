"""Domain error kinds raised by the stores and the auth flows.

Routers never build error responses themselves; ``main.py`` maps each kind
to a status code and the ``{"error": ...}`` envelope.
"""
from __future__ import annotations


class FollowUpsError(Exception):
    """Base class for every domain outcome that is not a success."""

    message = "the server encountered a problem and could not process your request"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class NotFound(FollowUpsError):
    message = "the requested resource could not be found"


class EditConflict(FollowUpsError):
    message = "unable to update the record due to an edit conflict, please try again"


class ValidationFailed(FollowUpsError):
    """Caller input broke one or more field rules."""

    message = "validation failed"

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__()
        self.errors = dict(errors)


class DuplicateEmail(ValidationFailed):
    def __init__(self) -> None:
        super().__init__({"email": "a user with this email address already exists"})


class TransientStoreError(FollowUpsError):
    """Timeout or connection failure; the caller may retry."""


class AuthenticationFailed(FollowUpsError):
    """Security-sensitive failure.

    Subclasses carry a fixed message and nothing else, so no response can
    reveal which underlying check failed.
    """

    def __init__(self) -> None:
        super().__init__()


class InvalidCredentials(AuthenticationFailed):
    message = "invalid authentication credentials"


class InvalidOrExpiredToken(AuthenticationFailed):
    message = "invalid or expired token"


class AuthenticationRequired(FollowUpsError):
    message = "you must be authenticated to access this resource"


class InactiveAccount(FollowUpsError):
    message = "your user account must be activated to access this resource"
