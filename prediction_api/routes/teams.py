from flask import Blueprint, request

from ..app_utils import make_ok
from ..auth import require_admin
from ..composition.container import services
from ..config import setup_logger
from ..validators import validate_team_payload

bp = Blueprint("teams", __name__, url_prefix="/api/teams")
log = setup_logger(__name__)


@bp.get("")
def list_teams():
    return make_ok(services().teams.list_teams())


@bp.get("/<int:team_id>")
def get_team(team_id: int):
    return make_ok(services().teams.get_team(team_id))


@bp.post("")
@require_admin
def create_team():
    body = validate_team_payload(request.get_json(silent=True))
    team = services().teams.create_team(body)
    log.info("team_created id=%s short_code=%s", team.get("team_id"), team.get("short_code"))
    return make_ok(team, "Team created successfully", status_code=201)


@bp.put("/<int:team_id>")
@require_admin
def update_team(team_id: int):
    team = services().teams.update_team(team_id, request.get_json(silent=True) or {})
    return make_ok(team, "Team updated successfully")


@bp.delete("/<int:team_id>")
@require_admin
def delete_team(team_id: int):
    services().teams.delete_team(team_id)
    return make_ok(message="Team deleted successfully")
