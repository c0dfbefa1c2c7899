from flask import Blueprint, request

from ..app_utils import make_ok
from ..auth import require_admin
from ..composition.container import services
from ..config import setup_logger
from ..validators import validate_league_payload

bp = Blueprint("leagues", __name__, url_prefix="/api/leagues")
log = setup_logger(__name__)


@bp.get("")
def list_leagues():
    return make_ok(services().leagues.list_leagues())


@bp.get("/<int:league_id>")
def get_league(league_id: int):
    return make_ok(services().leagues.get_league(league_id))


@bp.post("")
@require_admin
def create_league():
    body = validate_league_payload(request.get_json(silent=True))
    league = services().leagues.create_league(body)
    log.info("league_created id=%s slug=%s", league.get("league_id"), league.get("slug"))
    return make_ok(league, "League created successfully", status_code=201)


@bp.put("/<int:league_id>")
@require_admin
def update_league(league_id: int):
    league = services().leagues.update_league(league_id, request.get_json(silent=True) or {})
    return make_ok(league, "League updated successfully")


@bp.delete("/<int:league_id>")
@require_admin
def delete_league(league_id: int):
    services().leagues.delete_league(league_id)
    return make_ok(message="League deleted successfully")
