"""
Bearer-token guards for Flask views.

`require_auth` resolves the `Authorization: Bearer <jwt>` header to the
stored user and exposes it as `g.current_user`; `require_admin` additionally
insists on `type == "admin"`. Failures raise APIError subclasses, which the
app's error handler renders as the usual JSON envelope.
"""

from functools import wraps
from typing import Any, Dict, Optional

from flask import g, request

from .composition.container import services
from .errors import AuthenticationError, PermissionDeniedError


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def load_current_user() -> Optional[Dict[str, Any]]:
    """Resolve the caller if a token was sent; None for anonymous requests."""
    token = _bearer_token()
    if token is None:
        return None
    g.current_user = services().users.authenticate(token)
    return g.current_user


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("type") == "admin"


def require_auth(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if _bearer_token() is None:
            raise AuthenticationError("Authorization token required")
        load_current_user()
        return f(*args, **kwargs)
    return wrapper


def require_admin(f):
    @wraps(f)
    @require_auth
    def wrapper(*args, **kwargs):
        if not is_admin(g.current_user):
            raise PermissionDeniedError("Admin access required")
        return f(*args, **kwargs)
    return wrapper
