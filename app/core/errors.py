"""Error taxonomy shared by services, routers and the socket layer.

Services raise these; ``app.main`` renders them as ``{"error": code, "message": ...}``
with the matching status code.
"""

from collections.abc import Iterable

from fastapi import status


class DomainError(Exception):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.message
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ConflictError(DomainError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class AlreadyParticipatedError(ConflictError):
    code = "ALREADY_PARTICIPATED"
    message = "User already joined this listing"


class AlreadyFavoritedError(ConflictError):
    code = "ALREADY_FAVORITED"
    message = "Listing is already in favorites"


class AuthorCannotJoinError(DomainError):
    code = "AUTHOR_CANNOT_JOIN"
    message = "The author cannot join their own listing"


class PostNotOpenError(DomainError):
    code = "POST_NOT_OPEN"
    message = "Listing is not open for participation"


class ForbiddenError(DomainError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Only the author may do this"


class UserIdRequiredError(DomainError):
    code = "USER_ID_REQUIRED"
    message = "A user id is required"


class InvalidTransitionError(DomainError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str, allowed: Iterable[str]) -> None:
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(f"Cannot change status from {current} to {requested}; allowed: {allowed_text}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "current": self.current, "allowed": self.allowed}
