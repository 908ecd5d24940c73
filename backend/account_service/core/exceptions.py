"""Custom exceptions for application-specific error handling."""

from __future__ import annotations

from typing import Any, Dict, Optional

from account_service.core.results import ErrorKind, Outcome


class AccountServiceError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error envelope returned by the API."""
        return {
            "statusCode": self.status_code,
            "success": False,
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class NotFoundError(AccountServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "not_found", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NOT_FOUND", details=details, status_code=404)


class ConflictError(AccountServiceError):
    """Raised when a request conflicts with current state."""

    def __init__(self, message: str = "conflict", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="CONFLICT", details=details, status_code=409)


class BadRequestError(AccountServiceError):
    """Raised when request is invalid."""

    def __init__(self, message: str = "bad_request", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


# ===== CONFIGURATION / DATABASE EXCEPTIONS =====


class InvalidConfigurationError(AccountServiceError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else {}
        super().__init__(message, error_code="INVALID_CONFIG", details=details, status_code=500)


class DatabaseException(AccountServiceError):
    """Raised when the credential store cannot complete a write."""

    def __init__(self, message: str = "internal_error"):
        super().__init__(message, error_code="DB_ERROR", status_code=500)


# ===== AUTHENTICATION EXCEPTIONS =====


class AuthenticationException(AccountServiceError):
    """Base exception for authentication errors."""

    def __init__(
        self,
        message: str = "not_authenticated",
        *,
        error_code: str = "NOT_AUTHENTICATED",
        status_code: int = 401,
    ):
        super().__init__(message, error_code=error_code, status_code=status_code)


class InvalidCredentialsError(AuthenticationException):
    """Raised when a password does not match the stored hash."""

    def __init__(self, message: str = "invalid_credentials"):
        super().__init__(message, error_code="INVALID_CREDENTIALS")


class InvalidTokenError(AuthenticationException):
    """Raised when a token is malformed, forged, or names an unknown user."""

    def __init__(self, message: str = "invalid_token"):
        super().__init__(message, error_code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationException):
    """Raised when token has expired."""

    def __init__(self, message: str = "token_expired"):
        super().__init__(message, error_code="EXPIRED_TOKEN")


class TokenReusedError(AuthenticationException):
    """Raised when a superseded refresh token is presented again."""

    def __init__(self, message: str = "refresh_token_expired_or_used"):
        super().__init__(message, error_code="TOKEN_REUSED")


_KIND_TO_EXCEPTION = {
    ErrorKind.bad_request: BadRequestError,
    ErrorKind.not_found: NotFoundError,
    ErrorKind.conflict: ConflictError,
    ErrorKind.bad_credential: InvalidCredentialsError,
    ErrorKind.unauthorized: AuthenticationException,
    ErrorKind.invalid_token: InvalidTokenError,
    ErrorKind.expired: ExpiredTokenError,
    ErrorKind.token_reused: TokenReusedError,
    ErrorKind.internal: DatabaseException,
}


def exception_for(kind: ErrorKind, message: str | None = None) -> AccountServiceError:
    exc_type = _KIND_TO_EXCEPTION[kind]
    if message:
        return exc_type(message)
    return exc_type()


def raise_for_outcome(outcome: Outcome) -> None:
    """Translate a failed core outcome into the matching HTTP-facing exception."""
    if outcome.error is not None:
        raise exception_for(outcome.error, outcome.message)
