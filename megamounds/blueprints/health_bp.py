"""
Health probes for the dashboard API.

    GET /api/v1/health/ready   process is up (no dependency calls)
    GET /api/v1/health/live    round trip to the project database
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from megamounds.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


def _probe_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Database probe failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    database = _probe_database()
    healthy = database["status"] == "ok"
    body = {
        "status": "healthy" if healthy else "degraded",
        "checks": {
            "database": database,
            "service": {
                "name": "Megamounds Construction Dashboard",
                "environment": "testing" if current_app.testing else ("debug" if current_app.debug else "production"),
            },
        },
    }
    return jsonify(body), 200 if healthy else 503
