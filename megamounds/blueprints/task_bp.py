"""
Megamounds Construction Dashboard
Task blueprint — task list, status/note updates, photos and CSV import.

Endpoints summary:
    TASK     /api/v1/projects/<pid>/tasks                  GET (?week=&status=), POST
             /api/v1/projects/<pid>/tasks/critical         GET
             /api/v1/tasks/<id>/status                     PATCH
             /api/v1/tasks/<id>/status/next                POST
             /api/v1/tasks/<id>/notes                      PATCH
             /api/v1/tasks/<id>/photos                     GET, POST (multipart "file")

    IMPORT   /api/v1/tasks/import/template                 GET
             /api/v1/projects/<pid>/tasks/import/validate  POST (dry run)
             /api/v1/projects/<pid>/tasks/import           POST
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from megamounds.blueprints import (
    current_profile_id,
    current_role,
    extract_file_content,
    import_status_code,
    paginate_query,
)
from megamounds.middleware.jwt_auth import login_required
from megamounds.models.project import Project
from megamounds.models.task import Task
from megamounds.services import csv_import_service, photo_service, task_service
from megamounds.services.permission import check_permission
from megamounds.utils.errors import E, api_error
from megamounds.utils.helpers import commit_or_raise, get_or_404

logger = logging.getLogger(__name__)

task_bp = Blueprint("task_bp", __name__, url_prefix="/api/v1")


# ═══════════════════════════════════════════════════════════════════════════
#  TASKS
# ═══════════════════════════════════════════════════════════════════════════

@task_bp.route("/projects/<int:project_id>/tasks", methods=["GET"])
@login_required
def list_tasks(project_id):
    check_permission(current_role(), "project_view")
    get_or_404(Project, project_id)

    q = Task.query.filter_by(project_id=project_id)
    week = request.args.get("week")
    if week:
        q = q.filter_by(week=week)
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)

    tasks, total = paginate_query(q.order_by(Task.week, Task.section, Task.id))
    return jsonify({"items": [t.to_dict() for t in tasks], "total": total}), 200


@task_bp.route("/projects/<int:project_id>/tasks", methods=["POST"])
@login_required
def create_task(project_id):
    get_or_404(Project, project_id)
    data = request.get_json(silent=True) or {}
    task = task_service.create_task(project_id, data, current_role())
    commit_or_raise("insert", "Task", task.id)
    return jsonify(task.to_dict()), 201


@task_bp.route("/projects/<int:project_id>/tasks/critical", methods=["GET"])
@login_required
def critical_tasks(project_id):
    check_permission(current_role(), "project_view")
    get_or_404(Project, project_id)
    tasks = task_service.list_critical_tasks(project_id)
    return jsonify({"items": [t.to_dict() for t in tasks], "total": len(tasks)}), 200


@task_bp.route("/tasks/<int:task_id>/status", methods=["PATCH"])
@login_required
def update_status(task_id):
    task = get_or_404(Task, task_id)
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    task_service.update_task_status(task, data["status"], current_role())
    commit_or_raise("update", "Task", task.id)
    return jsonify(task.to_dict()), 200


@task_bp.route("/tasks/<int:task_id>/status/next", methods=["POST"])
@login_required
def cycle_status(task_id):
    task = get_or_404(Task, task_id)
    task_service.cycle_task_status(task, current_role())
    commit_or_raise("update", "Task", task.id)
    return jsonify(task.to_dict()), 200


@task_bp.route("/tasks/<int:task_id>/notes", methods=["PATCH"])
@login_required
def update_notes(task_id):
    task = get_or_404(Task, task_id)
    data = request.get_json(silent=True) or {}
    task_service.update_task_note(task, data.get("notes", ""), current_role())
    commit_or_raise("update", "Task", task.id)
    return jsonify(task.to_dict()), 200


# ═══════════════════════════════════════════════════════════════════════════
#  PHOTOS
# ═══════════════════════════════════════════════════════════════════════════

@task_bp.route("/tasks/<int:task_id>/photos", methods=["GET"])
@login_required
def list_photos(task_id):
    check_permission(current_role(), "project_view")
    task = get_or_404(Task, task_id)
    photos = photo_service.list_photos(task)
    return jsonify({"items": [p.to_dict() for p in photos], "total": len(photos)}), 200


@task_bp.route("/tasks/<int:task_id>/photos", methods=["POST"])
@login_required
def upload_photo(task_id):
    task = get_or_404(Task, task_id)
    file = request.files.get("file")
    if not file:
        return api_error(E.VALIDATION_REQUIRED, "Photo file is required (multipart field 'file')")
    photo = photo_service.upload_photo(
        task, file.filename, file.read(), current_role(), uploaded_by=current_profile_id(),
    )
    commit_or_raise("insert", "TaskPhoto", photo.id)
    return jsonify(photo.to_dict()), 201


# ═══════════════════════════════════════════════════════════════════════════
#  CSV IMPORT
# ═══════════════════════════════════════════════════════════════════════════

@task_bp.route("/tasks/import/template", methods=["GET"])
def download_task_template():
    """Download the CSV template for bulk task import."""
    return Response(
        csv_import_service.generate_task_template(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=task_import_template.csv"},
    )


@task_bp.route("/projects/<int:project_id>/tasks/import/validate", methods=["POST"])
@login_required
def validate_task_import(project_id):
    """Validate a task CSV without importing — dry run."""
    check_permission(current_role(), "task_import")
    get_or_404(Project, project_id)
    content = extract_file_content()
    if not content:
        return api_error(E.VALIDATION_REQUIRED, "CSV file is required (file upload or raw body)")
    return jsonify(csv_import_service.validate_csv("tasks", content).to_dict()), 200


@task_bp.route("/projects/<int:project_id>/tasks/import", methods=["POST"])
@login_required
def import_tasks(project_id):
    """Upload and import a task CSV. 207 when some rows or chunks failed."""
    check_permission(current_role(), "task_import")
    get_or_404(Project, project_id)
    content = extract_file_content()
    if not content:
        return api_error(E.VALIDATION_REQUIRED, "CSV file is required (file upload or raw body)")
    result = csv_import_service.import_csv(
        "tasks", project_id, content, current_app.config.get("IMPORT_CHUNK_SIZE"),
    )
    return jsonify(result), import_status_code(result)

