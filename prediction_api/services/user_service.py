from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import bcrypt
import jwt

from ..adapters.supabase_client import first_row, run_rows
from ..config import setup_logger
from ..constants import USERS_TABLE
from ..domain.contracts import User
from ..errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..settings import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRES_HOURS, JWT_SECRET
from ..utils import drop_unset, pick, without_password
from .base import BaseService

log = setup_logger(__name__)

_PROFILE_FIELDS = ("name", "avatar_url", "favorite_team_id")
_ADMIN_FIELDS = ("name", "email", "provider", "type", "avatar_url", "favorite_team_id")


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def check_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def generate_token(user: Dict[str, Any]) -> str:
    payload = {
        "user_id": user.get("user_id"),
        "email": user.get("email"),
        "type": user.get("type"),
        "exp": datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Decoded payload, or None when the token is expired or invalid."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        log.info("token_expired")
        return None
    except jwt.InvalidTokenError:
        log.info("token_invalid")
        return None


def _session(user: Dict[str, Any]) -> Dict[str, Any]:
    public = without_password(user)
    return {"token": generate_token(public), "user": public}


class UserService(BaseService):
    def _find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        query = self.client.table(USERS_TABLE).select("*").eq("email", email).limit(1)
        return first_row(run_rows(query, "Failed to fetch user"))

    def _insert_user(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _ADMIN_FIELDS))
        payload.setdefault("provider", "email")
        payload.setdefault("type", "user")
        if body.get("password"):
            payload["password"] = hash_password(body["password"])
        return self.create(USERS_TABLE, payload)

    # ---------- auth ----------

    def register(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create an account and return `{token, user, created}`.

        Registering an email that already exists signs that user in instead:
        email accounts must present the stored password, and OAuth accounts
        only match their own provider.
        """
        existing = self._find_by_email(body["email"])
        if existing is not None:
            log.info("register_existing_user user_id=%s", existing.get("user_id"))
            provider = body.get("provider") or "email"
            if provider == "email":
                return {**self.login(body["email"], body.get("password") or ""), "created": False}
            if existing.get("provider") != provider:
                raise ConflictError("User already exists with this email")
            return {**_session(existing), "created": False}

        user = self._insert_user(body)
        log.info("user_registered user_id=%s provider=%s", user.get("user_id"), user.get("provider"))
        return {**_session(user), "created": True}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self._find_by_email(email)
        if user is None or user.get("provider") != "email" or not check_password(password, user.get("password")):
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")
        return _session(user)

    def authenticate(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the current (password-free) user row."""
        payload = verify_token(token)
        if not payload or not payload.get("user_id"):
            raise AuthenticationError("Invalid or expired token")
        user = self.find_by_id(USERS_TABLE, payload["user_id"], "user_id")
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return without_password(user)

    def update_profile(self, user_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _PROFILE_FIELDS))
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        user = self.update(USERS_TABLE, user_id, payload, "user_id")
        if user is None:
            raise NotFoundError("User not found")
        return _session(user)

    # ---------- admin ----------

    def list_users(self) -> List[Dict[str, Any]]:
        return [without_password(user) for user in self.find_all(USERS_TABLE, order_by="user_id")]

    def get_user(self, user_id: int) -> User:
        user = self.find_by_id(USERS_TABLE, user_id, "user_id")
        if user is None:
            raise NotFoundError("User not found")
        return without_password(user)

    def has_admin(self) -> bool:
        query = self.client.table(USERS_TABLE).select("user_id").eq("type", "admin").limit(1)
        return first_row(run_rows(query, "Failed to fetch users")) is not None

    def create_user(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self._find_by_email(body["email"]) is not None:
            raise ConflictError("User already exists with this email")
        user = self._insert_user(body)
        log.info("user_created user_id=%s type=%s", user.get("user_id"), user.get("type"))
        return without_password(user)

    def update_user(self, user_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _ADMIN_FIELDS))
        if body.get("password"):
            payload["password"] = hash_password(body["password"])
        if "email" in payload:
            other = self._find_by_email(payload["email"])
            if other is not None and other.get("user_id") != user_id:
                raise ConflictError("User already exists with this email")
        if not payload:
            raise ValidationError("No fields to update")
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        user = self.update(USERS_TABLE, user_id, payload, "user_id")
        if user is None:
            raise NotFoundError("User not found")
        return without_password(user)

    def delete_user(self, user_id: int) -> None:
        if not self.delete(USERS_TABLE, user_id, "user_id"):
            raise NotFoundError("User not found")
