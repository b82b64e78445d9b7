"""
Megamounds Construction Dashboard
Resource domain model.

A Resource row is one scheduled delivery of labour, material, equipment or
subcontracted work against a milestone. The same logical resource may
appear in several rows (one per milestone); rows are never merged.
"""

from datetime import datetime, timezone

from megamounds.models import db
from megamounds.models.enums import ResourceStatus, ResourceType


class Resource(db.Model):
    __tablename__ = "resources"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name = db.Column(db.String(300), nullable=False)
    type = db.Column(db.String(20), nullable=False, default=ResourceType.MATERIAL.value)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(50), default="")
    cost_per_unit = db.Column(db.Float, nullable=False, default=0.0)
    milestone = db.Column(db.String(100), default="", comment="Conventionally 'WEEK n'; blank = Unscheduled")
    milestone_date = db.Column(db.Date, nullable=True)
    supplier = db.Column(db.String(200), default="")
    status = db.Column(db.String(20), nullable=False, default=ResourceStatus.PLANNED.value, index=True)
    notes = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def line_cost(self) -> float:
        """quantity × cost_per_unit, with missing values counted as 0."""
        return (self.quantity or 0) * (self.cost_per_unit or 0)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "type": self.type,
            "quantity": self.quantity or 0,
            "unit": self.unit or "",
            "cost_per_unit": self.cost_per_unit or 0,
            "line_cost": self.line_cost,
            "milestone": self.milestone or "",
            "milestone_date": self.milestone_date.isoformat() if self.milestone_date else None,
            "supplier": self.supplier or "",
            "status": self.status,
            "notes": self.notes or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Resource {self.id}: {self.name[:40]} ({self.milestone or 'Unscheduled'})>"
