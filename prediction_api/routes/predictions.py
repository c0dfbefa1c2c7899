from flask import Blueprint, g, request

from ..app_utils import make_ok
from ..auth import is_admin, require_admin, require_auth
from ..composition.container import services
from ..config import setup_logger
from ..domain.contracts import VoterClass
from ..errors import PermissionDeniedError
from ..utils import to_int
from ..validators import validate_prediction_payload, validate_voter_class

bp = Blueprint("predictions", __name__, url_prefix="/api/predictions")
log = setup_logger(__name__)


@bp.get("")
def list_predictions():
    raw_class = request.args.get("voter_class")
    predictions = services().predictions.list_predictions(
        match_id=to_int(request.args.get("match_id")),
        user_id=to_int(request.args.get("user_id")),
        voter_class=validate_voter_class(raw_class) if raw_class else None,
    )
    return make_ok(predictions)


@bp.get("/<int:prediction_id>")
def get_prediction(prediction_id: int):
    return make_ok(services().predictions.get_prediction(prediction_id))


def _cast_outcome_vote(voter_class: VoterClass):
    match_id, outcome = validate_prediction_payload(request.get_json(silent=True))
    svc = services()
    svc.matches.get_match(match_id)
    row, created = svc.votes.vote_outcome(match_id, g.current_user["user_id"], voter_class, outcome.value)
    log.info(
        "outcome_vote match_id=%s class=%s created=%s",
        match_id,
        voter_class.value,
        created,
    )
    if created:
        return make_ok(row, "Prediction created successfully", status_code=201)
    return make_ok(row, "Prediction updated successfully")


@bp.post("")
@require_auth
def create_prediction():
    body = request.get_json(silent=True) or {}
    voter_class = validate_voter_class(body.get("user_type") or body.get("voter_class"))
    if voter_class is VoterClass.ADMIN and not is_admin(g.current_user):
        raise PermissionDeniedError("Admin access required")
    return _cast_outcome_vote(voter_class)


@bp.put("/<int:prediction_id>")
@require_auth
def update_prediction(prediction_id: int):
    svc = services()
    existing = svc.predictions.get_prediction(prediction_id)
    if existing.get("user_id") != g.current_user["user_id"] and not is_admin(g.current_user):
        raise PermissionDeniedError("You can only change your own predictions")
    body = request.get_json(silent=True) or {}
    row = svc.predictions.update_prediction(prediction_id, body.get("predicted_winner"))
    return make_ok(row, "Prediction updated successfully")


@bp.delete("/<int:prediction_id>")
@require_auth
def delete_prediction(prediction_id: int):
    svc = services()
    existing = svc.predictions.get_prediction(prediction_id)
    if existing.get("user_id") != g.current_user["user_id"] and not is_admin(g.current_user):
        raise PermissionDeniedError("You can only delete your own predictions")
    svc.predictions.delete_prediction(prediction_id)
    return make_ok(message="Prediction deleted successfully")


@bp.get("/admin-votes")
def list_admin_votes():
    return make_ok(services().predictions.list_admin_votes(to_int(request.args.get("match_id"))))


@bp.post("/admin-vote")
@require_admin
def cast_admin_vote():
    return _cast_outcome_vote(VoterClass.ADMIN)


@bp.post("/remove-all-votes")
@require_admin
def remove_all_votes():
    removed = services().votes.remove_all_votes()
    log.warning("remove_all_votes by=%s", g.current_user.get("user_id"))
    return make_ok(removed, "All votes removed successfully")
