"""
Megamounds Construction Dashboard
Risk register blueprint.

Endpoints summary:
    RISK     /api/v1/projects/<pid>/risks     GET (?status=), POST
             /api/v1/risks/<id>               PATCH  {"field": ..., "value": ...}
"""

import logging

from flask import Blueprint, jsonify, request

from megamounds.blueprints import current_role, paginate_query
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.project import Project
from megamounds.models.risk import Risk
from megamounds.services import risk_service
from megamounds.services.permission import check_permission
from megamounds.utils.errors import E, api_error
from megamounds.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

risk_bp = Blueprint("risk_bp", __name__, url_prefix="/api/v1")


@risk_bp.route("/projects/<int:project_id>/risks", methods=["GET"])
@login_required
def list_risks(project_id):
    check_permission(current_role(), "project_view")
    get_or_404(Project, project_id)

    q = Risk.query.filter_by(project_id=project_id)
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)

    risks, total = paginate_query(q.order_by(Risk.created_at.desc(), Risk.id.desc()))
    return jsonify({"items": [r.to_dict() for r in risks], "total": total}), 200


@risk_bp.route("/projects/<int:project_id>/risks", methods=["POST"])
@login_required
def create_risk(project_id):
    get_or_404(Project, project_id)
    data = request.get_json(silent=True) or {}
    risk = risk_service.create_risk(project_id, data, current_role())
    commit_or_raise("insert", "Risk", risk.id)
    return jsonify(risk.to_dict()), 201


@risk_bp.route("/risks/<int:risk_id>", methods=["PATCH"])
@login_required
def update_risk(risk_id):
    risk = get_or_404(Risk, risk_id)
    data = request.get_json(silent=True) or {}
    if not data.get("field"):
        return api_error(E.VALIDATION_REQUIRED, "field is required")
    risk_service.update_risk_field(risk, data["field"], data.get("value"), current_role())
    commit_or_raise("update", "Risk", risk.id)
    return jsonify(risk.to_dict()), 200
