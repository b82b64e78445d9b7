"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in megamounds/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from megamounds.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

AUTH_LIMIT = "10/minute"
IMPORT_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"

# Endpoints that parse a whole CSV file per call
IMPORT_ENDPOINTS = (
    "task_bp.import_tasks",
    "task_bp.validate_task_import",
    "resource_bp.import_resources",
    "resource_bp.validate_resource_import",
)


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:   10/minute  (password guessing)
        - CSV import:       10/minute  (whole-file parse + bulk insert)
        - Write blueprints: 60/minute
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("auth_bp")
    if bp:
        limiter.limit(AUTH_LIMIT)(bp)

    for endpoint in IMPORT_ENDPOINTS:
        view = app.view_functions.get(endpoint)
        if view:
            app.view_functions[endpoint] = limiter.limit(IMPORT_LIMIT)(view)

    for bp_name in ("project_bp", "task_bp", "resource_bp", "risk_bp", "team_bp", "admin_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PUT", "PATCH", "DELETE"])(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — auth: %s, import: %s, write: %s",
        AUTH_LIMIT, IMPORT_LIMIT, WRITE_LIMIT,
    )
