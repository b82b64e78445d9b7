"""
Megamounds Construction Dashboard
Project team blueprint.

Endpoints summary:
    TEAM     /api/v1/projects/<pid>/team      GET, POST {"profile_id": ...} | {"email": ...}
"""

from flask import Blueprint, jsonify, request

from megamounds.blueprints import current_profile_id, current_role
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.project import Project
from megamounds.services import team_service
from megamounds.services.permission import check_permission
from megamounds.utils.helpers import commit_or_raise, get_or_404

team_bp = Blueprint("team_bp", __name__, url_prefix="/api/v1")


@team_bp.route("/projects/<int:project_id>/team", methods=["GET"])
@login_required
def list_team(project_id):
    check_permission(current_role(), "project_view")
    get_or_404(Project, project_id)
    members = team_service.list_members(project_id)
    return jsonify({"items": [m.to_dict() for m in members], "total": len(members)}), 200


@team_bp.route("/projects/<int:project_id>/team", methods=["POST"])
@login_required
def add_member(project_id):
    get_or_404(Project, project_id)
    data = request.get_json(silent=True) or {}
    member = team_service.add_member(project_id, data, current_role(), added_by=current_profile_id())
    commit_or_raise("insert", "ProjectMember", member.id)
    return jsonify(member.to_dict()), 201
