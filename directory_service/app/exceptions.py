from __future__ import annotations


class DirectoryError(Exception):
    """Base exception for all directory-service errors.

    status_code 는 HTTP 응답 코드로 그대로 사용된다.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DirectoryError):
    """Missing or malformed fields (e.g., empty title, severity out of range)."""

    status_code = 400


class UnauthorizedError(DirectoryError):
    """Missing or invalid session cookie."""

    status_code = 401


class ForbiddenError(DirectoryError):
    """Authenticated caller is not allowed to act on the resource."""

    status_code = 403


class NotFoundError(DirectoryError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(DirectoryError):
    """Duplicate unique key (username, email, title, slug, bookmark pair)."""

    status_code = 409
