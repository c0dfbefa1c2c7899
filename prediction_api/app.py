from datetime import datetime, timezone
from typing import Optional

from flask import Flask
from flask_cors import CORS
from postgrest.exceptions import APIError as PostgrestError
from werkzeug.exceptions import HTTPException

from .adapters.supabase_client import build_client
from .app_utils import make_error, make_ok
from .composition.container import EXTENSION_KEY, ServiceContainer, build_container
from .config import setup_logger
from .errors import APIError
from .ports.storage import StorageClient
from .routes.comments import bp as comments_bp
from .routes.leagues import bp as leagues_bp
from .routes.matches import bp as matches_bp
from .routes.predictions import bp as predictions_bp
from .routes.teams import bp as teams_bp
from .routes.users import bp as users_bp
from .settings import API_DEBUG, API_HOST, API_PORT, CORS_ORIGINS

logger = setup_logger(__name__)

BLUEPRINTS = (leagues_bp, teams_bp, matches_bp, predictions_bp, comments_bp, users_bp)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        if err.status_code >= 500:
            logger.error("api_error status=%s message=%s details=%s", err.status_code, err.message, err.details)
        else:
            logger.info("api_error status=%s message=%s", err.status_code, err.message)
        return make_error(err)

    @app.errorhandler(PostgrestError)
    def handle_storage_error(err: PostgrestError):
        logger.error("storage_error code=%s message=%s", getattr(err, "code", None), getattr(err, "message", err))
        return make_error(
            error=getattr(err, "message", None) or str(err),
            message="Database error",
            status_code=500,
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        message = "Route not found" if err.code == 404 else err.name
        return make_error(error=err.description, message=message, status_code=err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("unhandled_error: %s", err)
        return make_error(
            error="Unexpected server error. Please try again later.",
            message="Internal server error",
            status_code=500,
        )


def create_app(
    client: Optional[StorageClient] = None,
    container: Optional[ServiceContainer] = None,
) -> Flask:
    """Build the API. Pass a client (or a whole container) to skip supabase setup."""
    app = Flask(__name__)
    app.json.sort_keys = False

    if container is None:
        container = build_container(client if client is not None else build_client())
    app.extensions[EXTENSION_KEY] = container

    CORS(app, origins=CORS_ORIGINS)
    for bp in BLUEPRINTS:
        app.register_blueprint(bp)
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return make_ok(
            {"ok": True, "ts": datetime.now(timezone.utc).isoformat()},
            "OK",
            status_code=200,
        )

    logger.info("app_created blueprints=%s", [bp.name for bp in BLUEPRINTS])
    return app


if __name__ == "__main__":
    create_app().run(debug=API_DEBUG, host=API_HOST, port=API_PORT)
