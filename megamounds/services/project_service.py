"""Project service layer — dashboard listing, creation and RAG updates.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for committing.
"""
import logging

from sqlalchemy import func

from megamounds.core.exceptions import ValidationError
from megamounds.models import db
from megamounds.models.enums import RagStatus, TaskStatus
from megamounds.models.project import Project
from megamounds.models.task import Task
from megamounds.services.aggregation import percent_complete
from megamounds.services.permission import check_permission
from megamounds.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "location", "project_type", "description")


def list_projects(search=None, rag_status=None):
    """Projects with per-project task progress, plus dashboard stats.

    ``search`` is a case-insensitive substring of the name; ``rag_status``
    filters on an exact status. Stats are counted before filtering.
    """
    projects = Project.query.order_by(Project.created_at.desc(), Project.id.desc()).all()

    counts = dict(
        db.session.query(Task.project_id, func.count(Task.id))
        .group_by(Task.project_id).all()
    )
    done = dict(
        db.session.query(Task.project_id, func.count(Task.id))
        .filter(Task.status == TaskStatus.COMPLETE.value)
        .group_by(Task.project_id).all()
    )

    stats = {
        "total": len(projects),
        "on_track": sum(1 for p in projects if p.rag_status == RagStatus.ON_TRACK.value),
        "at_risk": sum(1 for p in projects if p.rag_status == RagStatus.AT_RISK.value),
        "delayed": sum(1 for p in projects if p.rag_status == RagStatus.DELAYED.value),
    }

    needle = (search or "").strip().lower()
    items = []
    for p in projects:
        if needle and needle not in (p.name or "").lower():
            continue
        if rag_status and p.rag_status != rag_status:
            continue
        total = counts.get(p.id, 0)
        completed = done.get(p.id, 0)
        d = p.to_dict()
        d.update(
            total_tasks=total,
            done_tasks=completed,
            progress=percent_complete(completed, total),
        )
        items.append(d)

    return {"items": items, "stats": stats}


def create_project(data, role, created_by=None):
    """Create a project. Name and target date are required.

    Returns:
        Project instance (already flushed).
    """
    check_permission(role, "project_create")

    name = (data.get("name") or "").strip()
    target_date = parse_date(data.get("target_date"))
    missing = [f for f, v in (("name", name), ("target_date", target_date)) if not v]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )

    project = Project(
        name=name,
        location=data.get("location", ""),
        project_type=data.get("project_type", ""),
        description=data.get("description", ""),
        target_date=target_date,
        rag_status=RagStatus.coerce(data.get("rag_status")).value,
        created_by=created_by,
    )
    db.session.add(project)
    db.session.flush()
    logger.info("Project %s created by profile %s", project.id, created_by)
    return project


def update_project(project, data, role):
    """Partial update of name/location/type/description/RAG/target date."""
    check_permission(role, "project_update")

    if "rag_status" in data:
        try:
            project.rag_status = RagStatus.parse(data["rag_status"]).value
        except ValueError as e:
            raise ValidationError(str(e), details={"rag_status": "invalid"}) from e

    if "target_date" in data:
        target_date = parse_date(data["target_date"])
        if target_date is None:
            raise ValidationError("target_date must be a date", details={"target_date": "invalid"})
        project.target_date = target_date

    for field in _UPDATABLE_FIELDS:
        if field in data:
            setattr(project, field, data[field])

    if "name" in data and not (project.name or "").strip():
        raise ValidationError("name is required", details={"name": "required"})

    db.session.flush()
    return project
