from flask import Blueprint, g, request

from ..app_utils import make_ok
from ..auth import require_auth
from ..composition.container import services
from ..utils import to_int
from ..validators import validate_comment_payload, validate_limit, validate_page

bp = Blueprint("comments", __name__, url_prefix="/api/comments")


@bp.get("")
def list_comments():
    comments = services().comments.list_comments(
        match_id=to_int(request.args.get("match_id")),
        user_id=to_int(request.args.get("user_id")),
    )
    return make_ok(comments)


@bp.get("/<int:comment_id>")
def get_comment(comment_id: int):
    return make_ok(services().comments.get_comment(comment_id))


@bp.post("")
@require_auth
def create_comment():
    body = validate_comment_payload(request.get_json(silent=True))
    svc = services()
    svc.matches.get_match(body["match_id"])
    comment = svc.comments.create_comment(
        body["match_id"],
        g.current_user["user_id"],
        body["comment_text"],
        parent_comment_id=body.get("parent_comment_id"),
    )
    return make_ok(comment, "Comment created successfully", status_code=201)


@bp.put("/<int:comment_id>")
@require_auth
def update_comment(comment_id: int):
    body = request.get_json(silent=True) or {}
    comment = services().comments.update_comment(comment_id, body.get("comment_text"), actor=g.current_user)
    return make_ok(comment, "Comment updated successfully")


@bp.delete("/<int:comment_id>")
@require_auth
def delete_comment(comment_id: int):
    services().comments.delete_comment(comment_id, actor=g.current_user)
    return make_ok(message="Comment deleted successfully")


@bp.get("/<int:comment_id>/replies")
def list_replies(comment_id: int):
    page, page_warnings = validate_page(request.args.get("page"))
    limit, limit_warnings = validate_limit(request.args.get("limit"), default=5)
    result = services().comments.list_replies(comment_id, page, limit)
    warnings = page_warnings + limit_warnings
    if warnings:
        result["warnings"] = [str(w) for w in warnings]
    return make_ok(result)


@bp.post("/<int:comment_id>/reactions")
@require_auth
def add_reaction(comment_id: int):
    body = request.get_json(silent=True) or {}
    result = services().comments.add_reaction(comment_id, g.current_user["user_id"], body.get("reaction_type"))
    return make_ok(result, f"Reaction {result['action']} successfully")
