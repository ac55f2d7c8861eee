from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for authority exceptions mapped to Yggdrasil error responses.

    Each exception class carries the HTTP status_code and the machine-readable
    ``error`` kind the protocol expects in the response body:
    - IllegalArgumentException (400)
    - ForbiddenOperationException (403)
    """

    status_code: int = 400
    error_code: str = "IllegalArgumentException"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        cause: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.cause = cause


class IllegalArgumentError(ServiceError):
    """Request is malformed (400)."""
    status_code = 400
    error_code = "IllegalArgumentException"


class MalformedIdentifierError(IllegalArgumentError, ValueError):
    """An identifier is not a 32-hex undashed or 8-4-4-4-12 dashed UUID."""

    def __init__(self, value: str, reason: str = "invalid identifier") -> None:
        super().__init__(f"Invalid identifier: {reason}")
        self.value = value


class ForbiddenOperationError(ServiceError):
    """Operation refused by the authority (403)."""
    status_code = 403
    error_code = "ForbiddenOperationException"


class InvalidCredentialsError(ForbiddenOperationError):
    def __init__(self, message: str = "Invalid credentials. Invalid username or password.") -> None:
        super().__init__(message)


class InvalidTokenError(ForbiddenOperationError):
    def __init__(self, message: str = "Invalid token.") -> None:
        super().__init__(message)


class NoProfileError(ForbiddenOperationError):
    def __init__(self, message: str = "No profile found for user") -> None:
        super().__init__(message)


__all__ = [
    "ServiceError",
    "IllegalArgumentError",
    "MalformedIdentifierError",
    "ForbiddenOperationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NoProfileError",
]
