import re
from typing import Any, Dict, Iterable, Optional


def generate_slug(text: Optional[str]) -> str:
    """Lowercase, strip punctuation and join words with single hyphens."""
    if not text:
        return ""
    slug = str(text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def generate_league_slug(name: Optional[str], country: Optional[str]) -> str:
    return f"{generate_slug(name)}-{generate_slug(country)}"


def drop_unset(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Remove keys whose value is None so partial updates keep stored values.

    False/0/"" are valid field values and are preserved.
    """
    return {key: value for key, value in payload.items() if value is not None}


def pick(source: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: source.get(key) for key in keys}


def without_password(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {key: value for key, value in user.items() if key != "password"}


def to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
