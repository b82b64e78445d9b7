"""
Megamounds Construction Dashboard
Resource blueprint — resource list, summary, status updates and CSV import.

Endpoints summary:
    RESOURCE /api/v1/projects/<pid>/resources                  GET (?milestone=&status=), POST
             /api/v1/projects/<pid>/resources/summary          GET
             /api/v1/resources/<id>/status                     PATCH

    IMPORT   /api/v1/resources/import/template                 GET
             /api/v1/projects/<pid>/resources/import/validate  POST (dry run)
             /api/v1/projects/<pid>/resources/import           POST
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from megamounds.blueprints import (
    current_role,
    extract_file_content,
    import_status_code,
    paginate_query,
)
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.project import Project
from megamounds.models.resource import Resource
from megamounds.services import csv_import_service, resource_service
from megamounds.services.permission import can_view_financials, check_permission
from megamounds.utils.errors import E, api_error
from megamounds.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

resource_bp = Blueprint("resource_bp", __name__, url_prefix="/api/v1")

_COST_FIELDS = ("cost_per_unit", "line_cost")


def _resource_dict(resource, role):
    d = resource.to_dict()
    if not can_view_financials(role):
        for key in _COST_FIELDS:
            d.pop(key, None)
    return d


# ═══════════════════════════════════════════════════════════════════════════
#  RESOURCES
# ═══════════════════════════════════════════════════════════════════════════

@resource_bp.route("/projects/<int:project_id>/resources", methods=["GET"])
@login_required
def list_resources(project_id):
    role = current_role()
    check_permission(role, "project_view")
    get_or_404(Project, project_id)

    q = Resource.query.filter_by(project_id=project_id)
    milestone = request.args.get("milestone")
    if milestone:
        q = q.filter_by(milestone=milestone)
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)

    resources, total = paginate_query(q.order_by(Resource.milestone_date, Resource.id))
    return jsonify({"items": [_resource_dict(r, role) for r in resources], "total": total}), 200


@resource_bp.route("/projects/<int:project_id>/resources", methods=["POST"])
@login_required
def create_resource(project_id):
    get_or_404(Project, project_id)
    data = request.get_json(silent=True) or {}
    resource = resource_service.create_resource(project_id, data, current_role())
    commit_or_raise("insert", "Resource", resource.id)
    return jsonify(resource.to_dict()), 201


@resource_bp.route("/projects/<int:project_id>/resources/summary", methods=["GET"])
@login_required
def resource_summary(project_id):
    role = current_role()
    check_permission(role, "project_view")
    get_or_404(Project, project_id)
    resources = resource_service.list_resources(project_id)
    return jsonify(resource_service.resource_summary(resources, role)), 200


@resource_bp.route("/resources/<int:resource_id>/status", methods=["PATCH"])
@login_required
def update_status(resource_id):
    resource = get_or_404(Resource, resource_id)
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    resource_service.update_resource_status(resource, data["status"], current_role())
    commit_or_raise("update", "Resource", resource.id)
    return jsonify(resource.to_dict()), 200


# ═══════════════════════════════════════════════════════════════════════════
#  CSV IMPORT
# ═══════════════════════════════════════════════════════════════════════════

@resource_bp.route("/resources/import/template", methods=["GET"])
def download_resource_template():
    """Download the CSV template for bulk resource import."""
    return Response(
        csv_import_service.generate_resource_template(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=resource_import_template.csv"},
    )


@resource_bp.route("/projects/<int:project_id>/resources/import/validate", methods=["POST"])
@login_required
def validate_resource_import(project_id):
    """Validate a resource CSV without importing — dry run."""
    check_permission(current_role(), "resource_import")
    get_or_404(Project, project_id)
    content = extract_file_content()
    if not content:
        return api_error(E.VALIDATION_REQUIRED, "CSV file is required (file upload or raw body)")
    return jsonify(csv_import_service.validate_csv("resources", content).to_dict()), 200


@resource_bp.route("/projects/<int:project_id>/resources/import", methods=["POST"])
@login_required
def import_resources(project_id):
    """Upload and import a resource CSV. 207 when some rows or chunks failed."""
    check_permission(current_role(), "resource_import")
    get_or_404(Project, project_id)
    content = extract_file_content()
    if not content:
        return api_error(E.VALIDATION_REQUIRED, "CSV file is required (file upload or raw body)")
    result = csv_import_service.import_csv(
        "resources", project_id, content, current_app.config.get("IMPORT_CHUNK_SIZE"),
    )
    return jsonify(result), import_status_code(result)
