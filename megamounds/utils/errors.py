"""JSON error bodies shared by every blueprint.

Every failed request answers with::

    {"error": "<message shown in the dashboard>", "code": "ERR_...", "details": {...}}

``details`` is only present when there is something structured to report,
e.g. the per-field messages of a rejected task form.
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Error codes the dashboard front end switches on."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"   # 400
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"     # 422
    NOT_FOUND = "ERR_NOT_FOUND"                       # 404
    AUTH = "ERR_AUTH"                                 # 401
    FORBIDDEN = "ERR_FORBIDDEN"                       # 403
    STORE = "ERR_STORE"                               # 500, database write failed


_STATUS_FOR_CODE = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 422,
    E.NOT_FOUND: 404,
    E.AUTH: 401,
    E.FORBIDDEN: 403,
    E.STORE: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for a view to return.

    ``status`` overrides the code's usual HTTP status; unknown codes fall
    back to 400.
    """
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _STATUS_FOR_CODE.get(code, 400)
