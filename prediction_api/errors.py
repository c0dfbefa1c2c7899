from typing import Any, Optional

from postgrest.exceptions import APIError as PostgrestError

from .constants import MISSING_CAPABILITY_CODES, PG_UNIQUE_VIOLATION, PGRST_NO_ROWS


class APIError(Exception):
    """Unified error class for everything a request handler can report."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            **({"code": self.code} if self.code else {}),
            **({"details": self.details} if self.details else {}),
        }


class ValidationError(APIError):
    status_code = 400


class AuthenticationError(APIError):
    status_code = 401


class PermissionDeniedError(APIError):
    status_code = 403


class NotFoundError(APIError):
    status_code = 404


class ConflictError(APIError):
    status_code = 409


class StorageError(APIError):
    """A persistence-layer failure, carrying the underlying PostgREST message."""

    status_code = 500

    @classmethod
    def wrap(cls, message: str, exc: Exception) -> "StorageError":
        return cls(message, code=_error_code(exc), details=_error_message(exc))


class ConfigurationError(RuntimeError):
    pass


def _error_code(exc: Any) -> Optional[str]:
    code = getattr(exc, "code", None)
    return str(code) if code is not None else None


def _error_message(exc: Any) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


def is_no_rows(exc: Any) -> bool:
    """True when a `.single()` lookup failed only because nothing matched."""
    return isinstance(exc, PostgrestError) and _error_code(exc) == PGRST_NO_ROWS


def is_missing_capability(exc: Any) -> bool:
    """True when the server lacks the RPC function or column we asked for."""
    return isinstance(exc, PostgrestError) and _error_code(exc) in MISSING_CAPABILITY_CODES


def is_unique_violation(exc: Any) -> bool:
    return isinstance(exc, PostgrestError) and _error_code(exc) == PG_UNIQUE_VIOLATION
