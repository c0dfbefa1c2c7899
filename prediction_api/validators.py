import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import setup_logger
from .constants import (
    AUTH_PROVIDERS,
    MATCH_STATUSES,
    MATCH_TYPES,
    REACTION_TYPES,
    TEAM_TYPES,
    USER_TYPES,
    VOTE_COUNT_SOURCES,
)
from .domain.contracts import Outcome, VoterClass
from .errors import ValidationError
from .settings import COMMENTS_PAGE_SIZE, COMMENTS_PAGE_SIZE_MAX

logger = setup_logger(__name__)

_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationWarning(str):
    """Lightweight tag for soft validation warnings."""
    pass


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _require_body(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def validate_league_payload(body: Any) -> Dict[str, Any]:
    body = _require_body(body)
    if not _is_non_empty_str(body.get("name")):
        raise ValidationError("League name is required and must be a non-empty string")
    if not _is_non_empty_str(body.get("country")):
        raise ValidationError("League country is required and must be a non-empty string")
    return body


def validate_team_payload(body: Any) -> Dict[str, Any]:
    body = _require_body(body)
    if not _is_non_empty_str(body.get("name")):
        raise ValidationError("Team name is required and must be a non-empty string")
    if not _is_non_empty_str(body.get("short_code")):
        raise ValidationError("Team short code is required and must be a non-empty string")
    if not _is_non_empty_str(body.get("country")):
        raise ValidationError("Team country is required and must be a non-empty string")
    team_type = body.get("team_type")
    if team_type is not None and team_type not in TEAM_TYPES:
        raise ValidationError(f"Team type must be one of: {', '.join(TEAM_TYPES)}")
    return body


def _is_date(value: Any) -> bool:
    if not _is_non_empty_str(value):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def validate_match_payload(body: Any) -> Dict[str, Any]:
    body = _require_body(body)
    if not _is_id(body.get("league_id")):
        raise ValidationError("League ID is required and must be a number")
    if not _is_id(body.get("home_team_id")):
        raise ValidationError("Home team ID is required and must be a number")
    if not _is_id(body.get("away_team_id")):
        raise ValidationError("Away team ID is required and must be a number")
    if body["home_team_id"] == body["away_team_id"]:
        raise ValidationError("Home and away teams must be different")
    if not _is_date(body.get("match_date")):
        raise ValidationError("Match date is required and must be a valid date string")
    match_time = body.get("match_time")
    if not isinstance(match_time, str) or not _TIME_RE.match(match_time):
        raise ValidationError("Match time is required and must be in HH:MM format")
    validate_match_update(body)
    return body


def validate_match_update(body: Any) -> Dict[str, Any]:
    """Checks the optional enum/score fields shared by create and update."""
    body = _require_body(body)
    status = body.get("status")
    if status is not None and status not in MATCH_STATUSES:
        raise ValidationError(f"Match status must be one of: {', '.join(MATCH_STATUSES)}")
    match_type = body.get("match_type")
    if match_type is not None and match_type not in MATCH_TYPES:
        raise ValidationError(f"Match type must be one of: {', '.join(MATCH_TYPES)}")
    for field in ("home_score", "away_score"):
        value = body.get(field)
        if value is not None and not _is_non_negative_int(value):
            raise ValidationError(f"{field} must be a non-negative integer")
    return body


def validate_predicted_winner(value: Any) -> Outcome:
    outcome = Outcome.parse(value)
    if outcome is None:
        raise ValidationError(
            "Invalid predicted_winner value. Must be one of: Home, Away, Draw"
        )
    return outcome


def validate_voter_class(value: Any, default: VoterClass = VoterClass.USER) -> VoterClass:
    if value is None:
        return default
    try:
        return VoterClass(value)
    except ValueError:
        raise ValidationError("Invalid user_type value. Must be one of: user, admin") from None


def validate_prediction_payload(body: Any) -> Tuple[int, Outcome]:
    body = _require_body(body)
    if not _is_id(body.get("match_id")):
        raise ValidationError("Match ID is required and must be a number")
    return body["match_id"], validate_predicted_winner(body.get("predicted_winner"))


def validate_scores(home_score: Any, away_score: Any) -> Tuple[int, int]:
    if not _is_non_negative_int(home_score) or not _is_non_negative_int(away_score):
        raise ValidationError("home_score and away_score are required and must be non-negative integers")
    return home_score, away_score


def validate_score_payload(body: Any) -> Tuple[int, int]:
    body = _require_body(body)
    return validate_scores(body.get("home_score"), body.get("away_score"))


def validate_vote_count(value: Any) -> int:
    if not _is_non_negative_int(value):
        raise ValidationError("vote_count is required and must be a non-negative integer")
    return value


def validate_vote_count_source(value: Any) -> str:
    if value is None:
        return VOTE_COUNT_SOURCES[0]
    if value not in VOTE_COUNT_SOURCES:
        raise ValidationError(f"source must be one of: {', '.join(VOTE_COUNT_SOURCES)}")
    return value


def validate_comment_payload(body: Any, match_id: Optional[int] = None) -> Dict[str, Any]:
    body = _require_body(body)
    if match_id is None and not _is_id(body.get("match_id")):
        raise ValidationError("Match ID is required and must be a number")
    if not _is_non_empty_str(body.get("comment_text")):
        raise ValidationError("Comment text is required and must be a non-empty string")
    parent = body.get("parent_comment_id")
    if parent is not None and not _is_id(parent):
        raise ValidationError("parent_comment_id must be a number")
    return body


def validate_reaction(value: Any) -> str:
    if value not in REACTION_TYPES:
        raise ValidationError(f"reaction_type must be one of: {', '.join(REACTION_TYPES)}")
    return value


def validate_registration(body: Any) -> Dict[str, Any]:
    body = _require_body(body)
    provider = body.get("provider") or "email"
    if provider not in AUTH_PROVIDERS:
        raise ValidationError(f"provider must be one of: {', '.join(AUTH_PROVIDERS)}")
    if not _is_non_empty_str(body.get("name")) or not _is_non_empty_str(body.get("email")):
        raise ValidationError("Name, email, and password are required for email registration")
    if provider == "email" and not _is_non_empty_str(body.get("password")):
        raise ValidationError("Name, email, and password are required for email registration")
    if not _EMAIL_RE.match(body["email"].strip()):
        raise ValidationError("Email address is not valid")
    user_type = body.get("type") or "user"
    if user_type not in USER_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(USER_TYPES)}")
    return {**body, "provider": provider, "type": user_type}


def validate_login(body: Any) -> Tuple[str, str]:
    body = _require_body(body)
    email, password = body.get("email"), body.get("password")
    if not _is_non_empty_str(email) or not _is_non_empty_str(password):
        raise ValidationError("Email and password are required")
    return email.strip(), password


def validate_page(raw: Any, default: int = 1) -> Tuple[int, List[ValidationWarning]]:
    """Coerce to int >= 1. Return (value, warnings)."""
    if raw is None:
        return default, []
    try:
        v = int(raw)
    except (TypeError, ValueError):
        logger.warning("page_invalid: %s", raw)
        return default, [ValidationWarning("page_invalid")]
    if v < 1:
        logger.warning("page_floor: %s -> 1", v)
        return 1, [ValidationWarning("page_floor")]
    return v, []


def validate_limit(
    raw: Any,
    default: int = COMMENTS_PAGE_SIZE,
    min_v: int = 1,
    max_v: int = COMMENTS_PAGE_SIZE_MAX,
) -> Tuple[int, List[ValidationWarning]]:
    """Coerce to int and clamp to [min_v,max_v]. Return (value, warnings)."""
    if raw is None:
        return default, []
    try:
        v = int(raw)
    except (TypeError, ValueError):
        logger.warning("limit_invalid: %s", raw)
        return default, [ValidationWarning("limit_invalid")]
    if v < min_v:
        logger.warning("limit_floor: %s -> %s", v, min_v)
        return min_v, [ValidationWarning("limit_floor")]
    if v > max_v:
        logger.warning("limit_cap: %s -> %s", v, max_v)
        return max_v, [ValidationWarning("limit_cap")]
    return v, []
