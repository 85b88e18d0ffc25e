"""Error hierarchy for carlot.

Every failure the API reports is a ``CarlotError`` carrying a human readable
message and the HTTP status it maps to. The FastAPI handler registered in
``carlot.shared.http`` turns them into ``{"detail": message}`` responses.
"""

from fastapi import status


class CarlotError(Exception):
    """Base exception for all carlot errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: dict[str, str] | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(CarlotError):
    """No bearer token, or one that cannot be parsed as such."""

    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredential(CarlotError):
    """Bad or expired token signature, or a failed password check."""

    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateEmail(CarlotError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Email is already in use"):
        super().__init__(message)


class InvalidArgument(CarlotError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(CarlotError):
    """Record missing, or owned by someone else. The two are never told apart."""

    status_code = status.HTTP_404_NOT_FOUND


class UpstreamFailure(CarlotError):
    """The record store or blob store failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
