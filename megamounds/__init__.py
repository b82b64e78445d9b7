"""
Megamounds Construction Dashboard API.

    from megamounds import create_app
    app = create_app("testing")

Without an argument the environment comes from ``APP_ENV`` (default
"development").
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from megamounds.config import config
from megamounds.middleware.jwt_auth import init_jwt_middleware
from megamounds.middleware.logging_config import configure_logging
from megamounds.middleware.rate_limiter import init_rate_limits
from megamounds.middleware.timing import init_request_timing
from megamounds.models import db

logger = logging.getLogger(__name__)

migrate = Migrate()
# Limits are attached per blueprint in init_rate_limits
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    # Task/resource/risk rows cascade with their project
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _init_cors(app):
    origins = app.config.get("CORS_ORIGINS")
    if origins == "*":
        CORS(app)
    elif origins:
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])


def _init_schema(app):
    # Registers every table on db.metadata for create_all and Alembic
    from megamounds.models import auth, project, resource, risk, task  # noqa: F401

    with app.app_context():
        url = db.engine.url
        if url.drivername.startswith("sqlite") and url.database not in (None, "", ":memory:"):
            os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
        db.create_all()


def _register_blueprints(app):
    from megamounds.blueprints import register_error_handlers
    from megamounds.blueprints.admin_bp import admin_bp
    from megamounds.blueprints.auth_bp import auth_bp
    from megamounds.blueprints.health_bp import health_bp
    from megamounds.blueprints.project_bp import project_bp
    from megamounds.blueprints.resource_bp import resource_bp
    from megamounds.blueprints.risk_bp import risk_bp
    from megamounds.blueprints.task_bp import task_bp
    from megamounds.blueprints.team_bp import team_bp

    for bp in (auth_bp, admin_bp, project_bp, task_bp, resource_bp, risk_bp, team_bp, health_bp):
        app.register_blueprint(bp)
    register_error_handlers(app)

    @app.route("/api/v1/health")
    def health():
        return {"status": "ok", "service": "megamounds"}


def _register_http_errors(app):
    """JSON bodies for errors raised by Flask/Werkzeug outside our views."""

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Upload exceeds the size limit"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("Unhandled server error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500


def _register_cli(app):
    @app.cli.command("seed-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    @click.option("--full-name", default="")
    def seed_admin_cmd(email, password, full_name):
        """Create the first Admin profile."""
        from megamounds.services.auth_service import create_admin

        profile = create_admin(email, password, full_name)
        db.session.commit()
        logger.info("Seeded Admin profile %s (%s)", profile.id, profile.email)


def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=True)
    # Instantiated so ProductionConfig can reject missing settings
    app.config.from_object(config[config_name or os.getenv("APP_ENV", "development")]())

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    _init_cors(app)

    init_request_timing(app)
    init_jwt_middleware(app)

    _init_schema(app)
    _register_blueprints(app)
    _register_http_errors(app)
    _register_cli(app)

    # Needs the blueprints registered first
    init_rate_limits(app, limiter)

    app.logger.info("Megamounds API ready (%s)", config_name or os.getenv("APP_ENV", "development"))
    return app
