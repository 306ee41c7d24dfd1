"""
Stakeholder Mapping & Reporting API
Flask Application Factory.

Usage:
    from stakemap import create_app
    app = create_app()           # defaults to APP_ENV, else "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from stakemap.config import config
from stakemap.models import db
from stakemap.middleware.logging_config import configure_logging
from stakemap.middleware.timing import init_request_timing
from stakemap.middleware.rate_limiter import init_rate_limits
from stakemap.middleware.jwt_auth import init_jwt_middleware

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per-blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),  # Redis in production, memory for dev
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiate so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # Default SQLite dev database lives in instance/
    os.makedirs(app.instance_path, exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "")
    CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT identity middleware (audit actor) ────────────────────────────
    init_jwt_middleware(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.get_data(cache=True) and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from stakemap.models import geography as _geography_models        # noqa: F401
    from stakemap.models import kpi as _kpi_models                    # noqa: F401
    from stakemap.models import financial_year as _financial_year_models  # noqa: F401
    from stakemap.models import stakeholder as _stakeholder_models    # noqa: F401
    from stakemap.models import action_plan as _action_plan_models    # noqa: F401
    from stakemap.models import report as _report_models              # noqa: F401
    from stakemap.models import comment as _comment_models            # noqa: F401
    from stakemap.models import option_set as _option_set_models      # noqa: F401
    from stakemap.models import audit as _audit_models                # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        db.create_all()
        app.logger.debug("db.create_all() completed")

    # ── Blueprints ───────────────────────────────────────────────────────
    from stakemap.blueprints.action_plan_bp import action_plan_bp
    from stakemap.blueprints.audit_bp import audit_bp
    from stakemap.blueprints.financial_year_bp import financial_year_bp
    from stakemap.blueprints.geography_bp import geography_bp
    from stakemap.blueprints.health_bp import health_bp
    from stakemap.blueprints.kpi_bp import kpi_bp
    from stakemap.blueprints.option_set_bp import option_set_bp
    from stakemap.blueprints.report_bp import report_bp
    from stakemap.blueprints.stakeholder_bp import stakeholder_bp

    app.register_blueprint(action_plan_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(financial_year_bp)
    app.register_blueprint(geography_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(kpi_bp)
    app.register_blueprint(option_set_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(stakeholder_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "code": "ERR_NOT_FOUND", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return {"error": e.description}, 413

    @app.errorhandler(415)
    def unsupported_media_type(e):
        return {"error": e.description}, 415

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error", "code": "ERR_INTERNAL"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    logger.debug("Application created", extra={"event_type": "startup"})
    return app


def shutdown_app(app):
    """Release pooled data-store connections on process exit."""
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    logger.info("Database engine disposed", extra={"event_type": "shutdown"})
