from flask import Blueprint, g, request

from ..app_utils import make_ok
from ..auth import is_admin, load_current_user, require_admin, require_auth
from ..composition.container import services
from ..config import setup_logger
from ..errors import PermissionDeniedError
from ..validators import validate_login, validate_registration

bp = Blueprint("users", __name__, url_prefix="/api/users")
log = setup_logger(__name__)


@bp.post("/register")
def register():
    body = validate_registration(request.get_json(silent=True))
    result = services().users.register(body)
    created = result.pop("created")
    if created:
        return make_ok(result, "User registered successfully", status_code=201)
    return make_ok(result, "User already exists")


@bp.post("/login")
def login():
    email, password = validate_login(request.get_json(silent=True))
    return make_ok(services().users.login(email, password), "Login successful")


@bp.get("/profile")
@require_auth
def get_profile():
    return make_ok(g.current_user, "User profile retrieved successfully")


@bp.put("/profile")
@require_auth
def update_profile():
    result = services().users.update_profile(g.current_user["user_id"], request.get_json(silent=True) or {})
    return make_ok(result, "Profile updated successfully")


@bp.post("/admin/create")
def bootstrap_user():
    """Open until the first admin exists; admin-only afterwards."""
    svc = services()
    if svc.users.has_admin() and not is_admin(load_current_user()):
        raise PermissionDeniedError("Admin access required")
    body = validate_registration(request.get_json(silent=True))
    user = svc.users.create_user(body)
    log.info("bootstrap_user_created user_id=%s type=%s", user.get("user_id"), user.get("type"))
    return make_ok(user, "User created successfully", status_code=201)


@bp.get("")
@require_admin
def list_users():
    return make_ok(services().users.list_users())


@bp.get("/<int:user_id>")
@require_admin
def get_user(user_id: int):
    return make_ok(services().users.get_user(user_id))


@bp.post("")
@require_admin
def create_user():
    body = validate_registration(request.get_json(silent=True))
    return make_ok(services().users.create_user(body), "User created successfully", status_code=201)


@bp.put("/<int:user_id>")
@require_admin
def update_user(user_id: int):
    user = services().users.update_user(user_id, request.get_json(silent=True) or {})
    return make_ok(user, "User updated successfully")


@bp.delete("/<int:user_id>")
@require_admin
def delete_user(user_id: int):
    services().users.delete_user(user_id)
    return make_ok(message="User deleted successfully")
