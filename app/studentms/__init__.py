import logging
import os
import time
import uuid
from datetime import timedelta

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv

from app.studentms.config import load_config
from app.studentms.models import Base  # noqa: F401  (registers all tables before blueprints import models)
from app.studentms.db import init_db, teardown_db_session
from app.studentms.routes import bp as routes_bp
from app.studentms.modules.students.routes import bp as students_bp

_QUIET_PATHS = ("/static/", "/health", "/healthz")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config["LOG_LEVEL"])

    from app.studentms.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_globals() -> dict:
        return {"csrf_token": ensure_csrf_token(), "app_title": app.config["APP_TITLE"]}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d %H:%M") -> str:
        if value is None:
            return "—"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.template_filter("gpaformat")
    def _gpaformat_filter(value) -> str:
        if value is None:
            return "—"
        return f"{value:.2f}"

    @app.before_request
    def _start_request():
        # Correlates log lines for one request.
        g.request_id = uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_QUIET_PATHS):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if not validate_csrf(request):
                app.logger.warning("CSRF check failed path=%s request_id=%s", request.path, g.request_id)
                return render_template("errors/400.html", title="Bad request", message="CSRF token missing or invalid."), 400

    @app.after_request
    def _log_request(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        if not request.path.startswith(_QUIET_PATHS):
            started = getattr(g, "request_started", None)
            elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
            app.logger.info(
                "%s %s -> %s (%.1fms request_id=%s)",
                request.method,
                request.full_path.rstrip("?"),
                response.status_code,
                elapsed_ms,
                rid,
            )
        return response

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(students_bp, url_prefix="/students")

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html", title="404 Not Found", message="Page not found."), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html", title="Error"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
