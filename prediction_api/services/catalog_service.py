from __future__ import annotations

from typing import Any, Dict, List

from ..constants import LEAGUES_TABLE, TEAMS_TABLE
from ..domain.contracts import League, Team
from ..errors import NotFoundError
from ..utils import drop_unset, generate_league_slug, pick
from .base import BaseService

_LEAGUE_FIELDS = ("name", "country", "logo_url")
_TEAM_FIELDS = ("name", "short_code", "logo_url", "country", "team_type")


class LeagueService(BaseService):
    def list_leagues(self) -> List[League]:
        return self.find_all(LEAGUES_TABLE, order_by="name")

    def get_league(self, league_id: int) -> League:
        league = self.find_by_id(LEAGUES_TABLE, league_id, "league_id")
        if league is None:
            raise NotFoundError("leagues not found")
        return league

    def create_league(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _LEAGUE_FIELDS))
        payload["slug"] = generate_league_slug(payload["name"], payload["country"])
        return self.create(LEAGUES_TABLE, payload)

    def update_league(self, league_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = drop_unset(pick(body, _LEAGUE_FIELDS))
        if payload.get("name") and payload.get("country"):
            payload["slug"] = generate_league_slug(payload["name"], payload["country"])
        league = self.update(LEAGUES_TABLE, league_id, payload, "league_id")
        if league is None:
            raise NotFoundError("leagues not found")
        return league

    def delete_league(self, league_id: int) -> None:
        if not self.delete(LEAGUES_TABLE, league_id, "league_id"):
            raise NotFoundError("leagues not found")


class TeamService(BaseService):
    def list_teams(self) -> List[Team]:
        return self.find_all(TEAMS_TABLE, order_by="name")

    def get_team(self, team_id: int) -> Team:
        team = self.find_by_id(TEAMS_TABLE, team_id, "team_id")
        if team is None:
            raise NotFoundError("teams not found")
        return team

    def create_team(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.create(TEAMS_TABLE, drop_unset(pick(body, _TEAM_FIELDS)))

    def update_team(self, team_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        team = self.update(TEAMS_TABLE, team_id, drop_unset(pick(body, _TEAM_FIELDS)), "team_id")
        if team is None:
            raise NotFoundError("teams not found")
        return team

    def delete_team(self, team_id: int) -> None:
        if not self.delete(TEAMS_TABLE, team_id, "team_id"):
            raise NotFoundError("teams not found")
