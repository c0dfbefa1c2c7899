from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from ..adapters.supabase_client import fetch_one, first_row, run_rows
from ..config import setup_logger
from ..constants import MATCH_DEFAULTS, MATCH_OUTCOMES_TABLE, MATCHES_TABLE
from ..domain.contracts import Match, MatchOutcome
from ..errors import NotFoundError, ValidationError
from ..utils import drop_unset, pick
from .base import BaseService

log = setup_logger(__name__)

_LIST_SELECT = (
    "*, home_team:teams!matches_home_team_id_fkey(name, short_code), "
    "away_team:teams!matches_away_team_id_fkey(name, short_code), "
    "league:leagues!matches_league_id_fkey(name)"
)
_DETAIL_SELECT = (
    "*, home_team:teams!matches_home_team_id_fkey(name, short_code, logo_url), "
    "away_team:teams!matches_away_team_id_fkey(name, short_code, logo_url), "
    "league:leagues!matches_league_id_fkey(name, country)"
)
_MATCH_FIELDS = (
    "league_id",
    "home_team_id",
    "away_team_id",
    "match_date",
    "venue",
    "status",
    "allow_draw",
    "home_score",
    "away_score",
    "big_match",
    "derby",
    "match_type",
    "published",
    "match_timezone",
)
_OUTCOME_FIELDS = ("home_win_prob", "draw_prob", "away_win_prob")


def _combine_date_time(match_date: Optional[str], match_time: Optional[str]) -> Optional[str]:
    if match_date and match_time and "T" not in match_date:
        return f"{match_date}T{match_time}"
    return match_date


class MatchService(BaseService):
    """Fixtures with their teams/league embedded, plus outcome probabilities."""

    def list_matches(
        self,
        league_id: Optional[int] = None,
        on_date: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(MATCHES_TABLE).select(_LIST_SELECT)
        if league_id is not None:
            query = query.eq("league_id", league_id)
        if on_date:
            try:
                day = date.fromisoformat(on_date[:10])
            except ValueError:
                raise ValidationError("date must be in YYYY-MM-DD format") from None
            query = query.gte("match_date", day.isoformat()).lt(
                "match_date", (day + timedelta(days=1)).isoformat()
            )
        if status:
            query = query.eq("status", status)
        return run_rows(query.order("match_date", desc=True), "Failed to fetch matches")

    def get_match(self, match_id: int) -> Match:
        query = self.client.table(MATCHES_TABLE).select(_DETAIL_SELECT).eq("match_id", match_id)
        match = fetch_one(query, "Failed to fetch match")
        if match is None:
            raise NotFoundError("Match not found")
        return match

    def create_match(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**MATCH_DEFAULTS, **drop_unset(pick(body, _MATCH_FIELDS))}
        payload["match_date"] = _combine_date_time(body.get("match_date"), body.get("match_time"))
        log.debug("match_create payload=%s", payload)
        return self.create(MATCHES_TABLE, payload)

    def update_match(self, match_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _MATCH_FIELDS))
        if "match_date" in payload:
            payload["match_date"] = _combine_date_time(payload["match_date"], body.get("match_time"))
        match = self.update(MATCHES_TABLE, match_id, payload, "match_id")
        if match is None:
            raise NotFoundError("matches not found")
        return match

    def delete_match(self, match_id: int) -> None:
        if not self.delete(MATCHES_TABLE, match_id, "match_id"):
            raise NotFoundError("matches not found")

    # ---------- outcome probabilities ----------

    def get_match_outcomes(self, match_id: int) -> MatchOutcome:
        query = self.client.table(MATCH_OUTCOMES_TABLE).select("*").eq("match_id", match_id)
        outcomes = fetch_one(query, "Failed to fetch match outcomes")
        if outcomes is None:
            return {"match_id": match_id, "home_win_prob": 0, "draw_prob": 0, "away_win_prob": 0}
        return outcomes

    def update_match_outcomes(self, match_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        values = pick(body, _OUTCOME_FIELDS)
        for field, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValidationError(f"{field} is required and must be a non-negative number")

        query = self.client.table(MATCH_OUTCOMES_TABLE).select("outcome_id").eq("match_id", match_id)
        if fetch_one(query, "Failed to fetch match outcomes") is not None:
            query = self.client.table(MATCH_OUTCOMES_TABLE).update(values).eq("match_id", match_id)
            return first_row(run_rows(query, "Failed to update match outcomes")) or {"match_id": match_id, **values}
        return self.create(MATCH_OUTCOMES_TABLE, {"match_id": match_id, **values})
