"""
Megamounds Construction Dashboard
Task domain models.

Models:
    - Task: a unit of site work grouped by week label and section
    - TaskPhoto: a site photo attached to a task

``is_critical`` is a manual flag, independent of priority. Nothing here
computes a critical path.
"""

from datetime import datetime, timezone

from megamounds.models import db
from megamounds.models.enums import TaskPriority, TaskStatus


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    week = db.Column(db.String(50), nullable=False, default="WEEK 1", comment="Free text, conventionally 'WEEK n'")
    section = db.Column(db.String(200), default="")
    status = db.Column(db.String(20), nullable=False, default=TaskStatus.NOT_STARTED.value, index=True)
    priority = db.Column(db.String(20), nullable=False, default=TaskPriority.NORMAL.value)
    is_critical = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, default="")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    assignee_id = db.Column(
        db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    assignee = db.relationship("Profile", foreign_keys=[assignee_id])
    photos = db.relationship(
        "TaskPhoto", backref="task", lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "week": self.week,
            "section": self.section,
            "status": self.status,
            "priority": self.priority,
            "is_critical": bool(self.is_critical),
            "notes": self.notes or "",
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "assignee_id": self.assignee_id,
            "assignee": (
                {"full_name": self.assignee.full_name, "role": self.assignee.role}
                if self.assignee_id and self.assignee else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Task {self.id}: {self.week} / {self.title[:40]}>"


class TaskPhoto(db.Model):
    __tablename__ = "task_photos"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(
        db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    url = db.Column(db.String(1000), nullable=False)
    filename = db.Column(db.String(300), nullable=False)
    storage_key = db.Column(db.String(500), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "task_id": self.task_id,
            "url": self.url,
            "filename": self.filename,
            "uploaded_by": self.uploaded_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
