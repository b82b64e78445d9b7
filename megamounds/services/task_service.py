"""Task service layer — listing, creation and field updates.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for committing.
"""
import logging
from datetime import datetime, timezone

from megamounds.core.exceptions import ValidationError
from megamounds.models import db
from megamounds.models.enums import TaskPriority, TaskStatus
from megamounds.models.task import Task
from megamounds.services.csv_import_service import normalize_week, parse_bool_flag
from megamounds.services.permission import check_permission
from megamounds.utils.helpers import parse_date

logger = logging.getLogger(__name__)


def _critical_flag(raw) -> bool:
    if isinstance(raw, str):
        return parse_bool_flag(raw)
    return bool(raw)


def list_tasks(project_id, week=None, status=None):
    """Tasks of a project ordered by week, section, then creation."""
    q = Task.query.filter_by(project_id=project_id)
    if week:
        q = q.filter(Task.week == week)
    if status:
        q = q.filter(Task.status == status)
    return q.order_by(Task.week, Task.section, Task.id).all()


def list_critical_tasks(project_id):
    """Manually flagged critical tasks, in week order."""
    return (
        Task.query
        .filter_by(project_id=project_id, is_critical=True)
        .order_by(Task.week, Task.id)
        .all()
    )


def create_task(project_id, data, role):
    """Add one task. Only the title is required; week defaults to WEEK 1.

    Returns:
        Task instance (already flushed).
    """
    check_permission(role, "task_create")

    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("title is required", details={"title": "required"})

    week = (data.get("week") or "").strip()
    task = Task(
        project_id=project_id,
        title=title,
        week=normalize_week(week) if week else "WEEK 1",
        section=(data.get("section") or "").strip(),
        status=TaskStatus.coerce(data.get("status")).value,
        priority=TaskPriority.coerce(data.get("priority")).value,
        is_critical=_critical_flag(data.get("is_critical")),
        notes=data.get("notes", ""),
        start_date=parse_date(data.get("start_date")),
        end_date=parse_date(data.get("end_date")),
        assignee_id=data.get("assignee_id"),
    )
    db.session.add(task)
    db.session.flush()
    return task


def update_task_status(task, status, role):
    """Set the task status. Unknown statuses are rejected, not defaulted."""
    check_permission(role, "task_status_update")
    try:
        new_status = TaskStatus.parse(status)
    except ValueError as e:
        raise ValidationError(str(e), details={"status": "invalid"}) from e

    old = task.status
    task.status = new_status.value
    task.updated_at = datetime.now(timezone.utc)
    db.session.flush()
    logger.info("Task %s status %s -> %s", task.id, old, task.status)
    return task


def cycle_task_status(task, role):
    """Advance the status one step: Not Started → In Progress → Complete → Blocked → Not Started."""
    current = TaskStatus.coerce(task.status)
    return update_task_status(task, current.next().value, role)


def update_task_note(task, notes, role):
    check_permission(role, "task_note_update")
    task.notes = notes or ""
    task.updated_at = datetime.now(timezone.utc)
    db.session.flush()
    return task
