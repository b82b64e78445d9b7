"""
Megamounds Construction Dashboard
Project domain models.

Models:
    - Project: a construction project with a target date and RAG status
    - ProjectMember: Profile <-> Project team assignment

Architecture chain: Project -> Task / Resource / Risk / ProjectMember
"""

from datetime import datetime, timezone

from megamounds.models import db
from megamounds.models.enums import RagStatus


class Project(db.Model):
    """A site project tracked on the dashboard."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), default="")
    project_type = db.Column(db.String(100), default="", comment="e.g. Residential, Commercial")
    description = db.Column(db.Text, default="")
    target_date = db.Column(db.Date, nullable=False)
    rag_status = db.Column(
        db.String(20), nullable=False, default=RagStatus.NOT_STARTED.value, index=True,
        comment="Not Started | On Track | At Risk | Delayed | Completed",
    )
    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    tasks = db.relationship("Task", backref="project", lazy="dynamic")
    resources = db.relationship("Resource", backref="project", lazy="dynamic")
    risks = db.relationship("Risk", backref="project", lazy="dynamic")
    members = db.relationship("ProjectMember", backref="project", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "project_type": self.project_type,
            "description": self.description,
            "target_date": self.target_date.isoformat() if self.target_date else None,
            "rag_status": self.rag_status,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name}>"


class ProjectMember(db.Model):
    __tablename__ = "project_members"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    profile_id = db.Column(
        db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    joined_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    added_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("project_id", "profile_id", name="uq_project_member"),
        db.Index("ix_project_members_project", "project_id"),
    )

    profile = db.relationship("Profile", foreign_keys=[profile_id])

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "profile_id": self.profile_id,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
            "profile": self.profile.to_dict() if self.profile else None,
        }
