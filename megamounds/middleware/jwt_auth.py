"""
JWT Auth Middleware — parses the Bearer token and sets the request identity.

After the hook runs:
  g.current_profile_id  → signed-in profile id, or None
  g.current_role        → that profile's role (read from the database, so a
                          role change applies without re-login), or None

Routes that need a signed-in caller use ``@login_required``; everything
role-specific is decided by the service layer from the role passed to it.
"""

import functools
import logging

import jwt as pyjwt
from flask import g, request

from megamounds.models import db
from megamounds.models.auth import Profile
from megamounds.services.jwt_service import decode_access_token
from megamounds.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_profile_id = None
        g.current_role = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.debug("Invalid access token on %s", path)
            return

        try:
            profile_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            return
        profile = db.session.get(Profile, profile_id)
        if profile is None or profile.status != "active":
            return

        g.current_profile_id = profile.id
        g.current_role = profile.role


def login_required(fn):
    """Reject the request with 401 unless a valid Bearer token was sent."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "current_profile_id", None) is None:
            return api_error(E.AUTH, "Authentication required")
        return fn(*args, **kwargs)

    return wrapper
