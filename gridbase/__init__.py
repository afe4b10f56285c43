from __future__ import annotations

import logging
import os
import time
import uuid

from flask import Flask, g, jsonify, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from .config import DevConfig, ProdConfig
from .errors import AppError
from .extensions import csrf, db, login_manager, migrate
from .models.core import User


api_logger = logging.getLogger("gridbase.api")


def create_app(test_config: dict | object | None = None) -> Flask:
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    app = Flask(__name__, instance_path=os.path.join(project_root, "instance"))

    env = os.environ.get("FLASK_ENV", "development").lower()
    app.config.from_object(DevConfig if env != "production" else ProdConfig)
    if isinstance(test_config, dict):
        app.config.update(test_config)
    elif test_config is not None:
        app.config.from_object(test_config)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "Unauthorized"}), 401

    _register_error_handlers(app)
    _register_request_logging(app)

    # Blueprints
    from .blueprints.auth import bp as auth_bp
    from .blueprints.workspaces import bp as workspaces_bp
    from .blueprints.tables import bp as tables_bp
    from .blueprints.billing import bp as billing_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(workspaces_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(billing_bp)

    from .commands.workspace_cli import workspace

    app.cli.add_command(workspace)

    # DEV: ensure tables exist (use `flask db upgrade` in production)
    if app.config.get("AUTO_CREATE_DB", False):
        with app.app_context():
            db.create_all()

    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _app_error(e: AppError):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        db.session.rollback()
        api_logger.exception(
            "event=api.request.error request_id=%s path=%s err=%s",
            getattr(g, "request_id", None),
            request.path,
            str(e),
        )
        return jsonify({"error": "Internal server error"}), 500


def _request_context() -> dict:
    return {
        "request_id": getattr(g, "request_id", None),
        "user_id": getattr(current_user, "id", None) if getattr(current_user, "is_authenticated", False) else None,
        "endpoint": request.endpoint,
        "method": request.method,
        "path": request.path,
    }


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def _log_request_start() -> None:
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex[:12]
        ctx = _request_context()
        api_logger.info(
            "event=api.request.start request_id=%s user_id=%s endpoint=%s method=%s path=%s",
            ctx["request_id"],
            ctx["user_id"],
            ctx["endpoint"],
            ctx["method"],
            ctx["path"],
        )

    @app.after_request
    def _log_request_end(response):
        started = getattr(g, "request_started", None)
        duration_ms = ((time.perf_counter() - started) * 1000.0) if started is not None else 0.0
        ctx = _request_context()
        msg = (
            "event=api.request.end request_id=%s user_id=%s endpoint=%s method=%s "
            "path=%s status=%s duration_ms=%.2f"
        )
        args = (
            ctx["request_id"],
            ctx["user_id"],
            ctx["endpoint"],
            ctx["method"],
            ctx["path"],
            response.status_code,
            duration_ms,
        )
        if response.status_code >= 500:
            api_logger.error(msg, *args)
        elif response.status_code >= 400:
            api_logger.warning(msg, *args)
        else:
            api_logger.info(msg, *args)
        response.headers.setdefault("X-Request-Id", ctx["request_id"] or "")
        return response

    @app.teardown_request
    def _log_request_exception(exc) -> None:
        if exc is None:
            return
        ctx = _request_context()
        api_logger.exception(
            "event=api.request.exception request_id=%s user_id=%s endpoint=%s method=%s path=%s err=%s",
            ctx["request_id"],
            ctx["user_id"],
            ctx["endpoint"],
            ctx["method"],
            ctx["path"],
            str(exc),
        )
