from typing import Any, Dict, Optional

from flask import jsonify

from .errors import APIError


def _build_payload(
    success: bool,
    message: Optional[str] = None,
    data: Optional[Any] = None,
    error: Optional[Any] = None,
) -> Dict[str, Any]:
    """Construct the `{success, message?, data?, error?}` envelope."""
    payload: Dict[str, Any] = {"success": success}
    if message is not None:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    if error is not None:
        payload["error"] = error
    return payload


def make_ok(data: Optional[Any] = None, message: Optional[str] = None, status_code: int = 200):
    """Return a standardized success response."""
    response = jsonify(_build_payload(True, message=message, data=data))
    return response, status_code


def make_error(
    error: Optional[Any] = None,
    message: str = "An error occurred",
    status_code: int = 400,
):
    """Return a standardized error response."""
    if isinstance(error, APIError):
        status_code = error.status_code
        message = error.message
        error = error.details

    response = jsonify(_build_payload(False, message=message, error=error))
    return response, status_code
