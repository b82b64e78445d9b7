"""
Per-request timing and access logging.

Every response carries ``X-Request-ID`` (echoed from the caller when sent)
and ``X-Request-Duration-Ms``. API requests are logged with the caller's
profile and role and the project being viewed, at WARNING when slow, at
ERROR on a 5xx and at DEBUG otherwise.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_THRESHOLD_MS = 1000
_UNLOGGED_PREFIX = "/api/v1/health"


def _viewed_project_id():
    project_id = (request.view_args or {}).get("project_id")
    if project_id is None:
        project_id = request.args.get("project_id", type=int)
    return project_id


def _log_level(status: int, duration_ms: float) -> int:
    if duration_ms > SLOW_THRESHOLD_MS:
        return logging.WARNING
    if status >= 500:
        return logging.ERROR
    return logging.DEBUG


def init_request_timing(app: Flask):
    @app.before_request
    def _start_clock():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _stamp_and_log(response):
        started = g.get("request_start")
        if started is None:
            return response

        elapsed = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed:.1f}"

        path = request.path
        if path.startswith("/api/") and not path.startswith(_UNLOGGED_PREFIX):
            logger.log(
                _log_level(response.status_code, elapsed),
                "%s %s -> %d in %.0fms", request.method, path, response.status_code, elapsed,
                extra={
                    "request_id": g.request_id,
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": elapsed,
                    "remote_addr": request.remote_addr,
                    "profile_id": g.get("current_profile_id"),
                    "role": g.get("current_role"),
                    "project_id": _viewed_project_id(),
                },
            )
        return response
