"""
Auth Blueprint — JWT authentication endpoints.

  POST /api/v1/auth/login       — Email + password → JWT pair
  POST /api/v1/auth/register    — Accept invite → set password → JWT pair
  POST /api/v1/auth/logout      — Revoke refresh token (or all sessions)
  GET  /api/v1/auth/me          — Current profile and its capabilities
"""

from flask import Blueprint, jsonify, request

from megamounds.blueprints import current_profile_id, current_role
from megamounds.middleware.jwt_auth import login_required
from megamounds.services import auth_service
from megamounds.services.permission import capabilities
from megamounds.utils.errors import E, api_error
from megamounds.utils.helpers import commit_or_raise

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password, return JWT pair.

    Body: { "email": "...", "password": "..." }
    """
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    result = auth_service.sign_in(
        email, password,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent", ""),
    )
    commit_or_raise("insert", "Session")
    return jsonify(result), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/register
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Accept an invite: set password (and optionally name), then sign in.

    Body: { "invite_token": "...", "password": "...", "full_name": "..." }
    """
    data = request.get_json(silent=True) or {}
    token = data.get("invite_token") or ""
    password = data.get("password") or ""
    if not token or not password:
        return api_error(E.VALIDATION_REQUIRED, "invite_token and password are required")

    profile = auth_service.accept_invite(token, password, data.get("full_name"))
    commit_or_raise("update", "Profile", profile.id)

    result = auth_service.sign_in(
        profile.email, password,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent", ""),
    )
    commit_or_raise("insert", "Session")
    return jsonify(result), 201


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """Body (optional): { "refresh_token": "..." } — omit to end every session."""
    data = request.get_json(silent=True) or {}
    auth_service.sign_out(current_profile_id(), data.get("refresh_token"))
    commit_or_raise("update", "Session")
    return jsonify({"message": "Signed out"}), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    profile = auth_service.current_session(current_profile_id())
    return jsonify({"profile": profile, "permissions": capabilities(current_role())}), 200
