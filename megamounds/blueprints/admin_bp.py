"""
Admin Blueprint — profile administration (Admin role only).

  GET   /api/v1/admin/users              — List profiles (?status=)
  POST  /api/v1/admin/users/invite       — Invite by email with a role
  PATCH /api/v1/admin/users/<id>/role    — Change a profile's role
"""

import logging

from flask import Blueprint, jsonify, request

from megamounds.blueprints import current_profile_id, current_role
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.enums import Role
from megamounds.services import auth_service
from megamounds.utils.errors import E, api_error
from megamounds.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin_bp", __name__, url_prefix="/api/v1/admin")


@admin_bp.route("/users", methods=["GET"])
@login_required
def list_users():
    profiles = auth_service.list_profiles(current_role(), status=request.args.get("status"))
    return jsonify({"items": [p.to_dict() for p in profiles], "total": len(profiles)}), 200


@admin_bp.route("/users/invite", methods=["POST"])
@login_required
def invite_user():
    """
    Body: { "email": "...", "role": "Site Engineer", "full_name": "..." }

    The response carries the invite token so the caller can deliver the link.
    """
    data = request.get_json(silent=True) or {}
    if not data.get("email"):
        return api_error(E.VALIDATION_REQUIRED, "email is required")

    profile = auth_service.invite_user(
        data["email"],
        data.get("role") or Role.default().value,
        current_role(),
        invited_by=current_profile_id(),
        full_name=data.get("full_name", ""),
    )
    commit_or_raise("insert", "Profile", profile.id)
    return jsonify({
        "profile": profile.to_dict(),
        "invite_token": profile.invite_token,
        "invite_expires_at": profile.invite_expires_at.isoformat() if profile.invite_expires_at else None,
    }), 201


@admin_bp.route("/users/<int:profile_id>/role", methods=["PATCH"])
@login_required
def update_role(profile_id):
    data = request.get_json(silent=True) or {}
    if not data.get("role"):
        return api_error(E.VALIDATION_REQUIRED, "role is required")

    profile = auth_service.update_member_role(profile_id, data["role"], current_role())
    commit_or_raise("update", "Profile", profile.id)
    return jsonify(profile.to_dict()), 200
