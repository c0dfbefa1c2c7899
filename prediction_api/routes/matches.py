from flask import Blueprint, g, request

from ..app_utils import make_ok
from ..auth import require_admin, require_auth
from ..composition.container import services
from ..config import setup_logger
from ..domain.contracts import VoterClass
from ..utils import to_int
from ..validators import (
    validate_comment_payload,
    validate_limit,
    validate_match_payload,
    validate_match_update,
    validate_page,
    validate_score_payload,
    validate_vote_count,
    validate_vote_count_source,
    validate_voter_class,
)

bp = Blueprint("matches", __name__, url_prefix="/api/matches")
log = setup_logger(__name__)


@bp.get("")
def list_matches():
    matches = services().matches.list_matches(
        league_id=to_int(request.args.get("league_id")),
        on_date=request.args.get("date"),
        status=request.args.get("status"),
    )
    return make_ok(matches)


@bp.get("/<int:match_id>")
def get_match(match_id: int):
    return make_ok(services().matches.get_match(match_id))


@bp.post("")
@require_admin
def create_match():
    body = validate_match_payload(request.get_json(silent=True))
    match = services().matches.create_match(body)
    log.info("match_created id=%s", match.get("match_id"))
    return make_ok(match, "Match created successfully", status_code=201)


@bp.put("/<int:match_id>")
@require_admin
def update_match(match_id: int):
    body = validate_match_update(request.get_json(silent=True))
    return make_ok(services().matches.update_match(match_id, body), "Match updated successfully")


@bp.delete("/<int:match_id>")
@require_admin
def delete_match(match_id: int):
    services().matches.delete_match(match_id)
    return make_ok(message="Match deleted successfully")


# ---------- outcome probabilities ----------

@bp.get("/<int:match_id>/outcomes")
def get_match_outcomes(match_id: int):
    return make_ok(services().matches.get_match_outcomes(match_id))


@bp.post("/<int:match_id>/outcomes")
@require_admin
def update_match_outcomes(match_id: int):
    outcomes = services().matches.update_match_outcomes(match_id, request.get_json(silent=True) or {})
    return make_ok(outcomes, "Match outcomes updated successfully")


# ---------- vote counts ----------

@bp.get("/<int:match_id>/vote-counts")
def get_vote_counts(match_id: int):
    return make_ok(services().votes.get_combined_vote_counts(match_id))


@bp.post("/<int:match_id>/vote-counts")
@require_admin
def recompute_vote_counts(match_id: int):
    """Rebuild the cached tallies from `?source=outcomes` (default) or `?source=scores`.

    Both ledgers share one cached row per voter class, so the rebuild replaces
    whatever the other source last wrote.
    """
    source = validate_vote_count_source(request.args.get("source"))
    svc = services()
    svc.matches.get_match(match_id)
    if source == "scores":
        svc.votes.recompute_score_prediction_counts(match_id)
    else:
        svc.votes.recompute_outcome_counts(match_id)
    log.info(
        "vote_counts_recompute_requested match_id=%s source=%s by=%s",
        match_id,
        source,
        g.current_user.get("user_id"),
    )
    return make_ok(svc.votes.get_combined_vote_counts(match_id), "Vote counts updated successfully")


# ---------- score predictions ----------

@bp.get("/<int:match_id>/predictions")
def list_score_predictions(match_id: int):
    voter_class = validate_voter_class(request.args.get("voter_class"))
    return make_ok(services().votes.list_score_predictions(match_id, voter_class))


@bp.post("/<int:match_id>/predictions")
@require_auth
def vote_score(match_id: int):
    home_score, away_score = validate_score_payload(request.get_json(silent=True))
    svc = services()
    svc.matches.get_match(match_id)
    result = svc.votes.vote_score(match_id, g.current_user["user_id"], home_score, away_score)
    message = "Score prediction recorded successfully" if result["changed"] else "Score prediction unchanged"
    return make_ok(result, message, status_code=201 if result["changed"] else 200)


@bp.post("/<int:match_id>/predictions/vote-count")
@require_admin
def set_score_prediction_count(match_id: int):
    body = request.get_json(silent=True)
    home_score, away_score = validate_score_payload(body)
    vote_count = validate_vote_count(body.get("vote_count"))
    svc = services()
    svc.matches.get_match(match_id)
    row = svc.votes.set_score_prediction_count(
        match_id,
        home_score,
        away_score,
        vote_count,
        voter_class=validate_voter_class(body.get("voter_class"), default=VoterClass.ADMIN),
        score_pred_id=to_int(body.get("score_pred_id")),
    )
    return make_ok(row, "Score prediction vote count updated successfully")


# ---------- comments ----------

@bp.get("/<int:match_id>/comments")
def list_match_comments(match_id: int):
    page, page_warnings = validate_page(request.args.get("page"))
    limit, limit_warnings = validate_limit(request.args.get("limit"))
    result = services().comments.list_match_comments(match_id, page, limit)
    warnings = page_warnings + limit_warnings
    if warnings:
        result["warnings"] = [str(w) for w in warnings]
    return make_ok(result)


@bp.post("/<int:match_id>/comments")
@require_auth
def create_match_comment(match_id: int):
    body = validate_comment_payload(request.get_json(silent=True), match_id=match_id)
    svc = services()
    svc.matches.get_match(match_id)
    comment = svc.comments.create_comment(
        match_id,
        g.current_user["user_id"],
        body["comment_text"],
        parent_comment_id=body.get("parent_comment_id"),
    )
    return make_ok(comment, "Comment created successfully", status_code=201)
