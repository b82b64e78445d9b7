"""
Megamounds Construction Dashboard
Blueprint registry: pagination helper and the shared JSON error handlers.
"""

import logging

from flask import g, request

from megamounds.core.exceptions import (
    AuthError,
    NotFoundError,
    PermissionDenied,
    StoreError,
    ValidationError,
)
from megamounds.services.csv_import_service import BulkImportError
from megamounds.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def paginate_query(query, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = query.count()
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    items = query.limit(limit).offset(offset).all()
    return items, total


def extract_file_content() -> str | None:
    """Extract CSV content from multipart upload, JSON body or raw body."""
    if request.files:
        file = request.files.get("file")
        if file:
            return file.read().decode("utf-8-sig")

    data = request.get_json(silent=True)
    if data and "csv_content" in data:
        return data["csv_content"]

    if request.data:
        return request.data.decode("utf-8-sig")

    return None


def import_status_code(result: dict) -> int:
    """200 when everything landed, 207 for a partial import, 400 otherwise."""
    if result["status"] == "completed":
        return 200
    if result["status"] == "partial":
        return 207
    return 400


def current_role():
    return getattr(g, "current_role", None)


def current_profile_id():
    return getattr(g, "current_profile_id", None)


def register_error_handlers(app):
    """Map service exceptions onto the standard JSON error body."""

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ValidationError)
    def _validation(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details)

    @app.errorhandler(PermissionDenied)
    def _forbidden(e):
        logger.info("Permission denied: role=%s action=%s", e.role, e.action)
        return api_error(E.FORBIDDEN, str(e))

    @app.errorhandler(AuthError)
    def _auth(e):
        return api_error(E.AUTH, e.message, status=e.status_code)

    @app.errorhandler(BulkImportError)
    def _bulk_import(e):
        return api_error(E.VALIDATION_INVALID, e.message, status=e.status_code)

    @app.errorhandler(StoreError)
    def _store(e):
        logger.error("Store failure: %s (%s)", e, e.detail)
        return api_error(
            E.STORE, str(e),
            details={"operation": e.operation, "resource": e.resource, "resource_id": e.resource_id},
        )
