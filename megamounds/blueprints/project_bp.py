"""
Megamounds Construction Dashboard
Project blueprint — dashboard listing, project page snapshot and forecast.

Endpoints summary:
    PROJECT  /api/v1/projects                       GET (?search=&rag_status=), POST
             /api/v1/projects/<id>                  GET, PATCH
             /api/v1/projects/<id>/snapshot         GET (?week=)
             /api/v1/projects/<id>/forecast         GET
"""

import logging

from flask import Blueprint, jsonify, request

from megamounds.blueprints import current_profile_id, current_role
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.project import Project
from megamounds.services import project_service, view_service
from megamounds.services.permission import check_permission
from megamounds.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1")


@project_bp.route("/projects", methods=["GET"])
@login_required
def list_projects():
    check_permission(current_role(), "project_view")
    result = project_service.list_projects(
        search=request.args.get("search"),
        rag_status=request.args.get("rag_status"),
    )
    return jsonify(result), 200


@project_bp.route("/projects", methods=["POST"])
@login_required
def create_project():
    data = request.get_json(silent=True) or {}
    project = project_service.create_project(data, current_role(), created_by=current_profile_id())
    commit_or_raise("insert", "Project", project.id)
    return jsonify(project.to_dict()), 201


@project_bp.route("/projects/<int:project_id>", methods=["GET"])
@login_required
def get_project(project_id):
    check_permission(current_role(), "project_view")
    return jsonify(get_or_404(Project, project_id).to_dict()), 200


@project_bp.route("/projects/<int:project_id>", methods=["PATCH"])
@login_required
def update_project(project_id):
    project = get_or_404(Project, project_id)
    data = request.get_json(silent=True) or {}
    project_service.update_project(project, data, current_role())
    commit_or_raise("update", "Project", project.id)
    return jsonify(project.to_dict()), 200


@project_bp.route("/projects/<int:project_id>/snapshot", methods=["GET"])
@login_required
def project_snapshot(project_id):
    snapshot = view_service.project_snapshot(project_id, current_role(), week=request.args.get("week"))
    return jsonify(snapshot), 200


@project_bp.route("/projects/<int:project_id>/forecast", methods=["GET"])
@login_required
def project_forecast(project_id):
    return jsonify(view_service.project_forecast(project_id, current_role())), 200
