"""
Megamounds Construction Dashboard
Risk register model.

Likelihood and impact are three-level (Low / Medium / High) ratings picked
by the site team; there is no numeric scoring matrix.
"""

from datetime import datetime, timezone

from megamounds.models import db
from megamounds.models.enums import RiskLevel, RiskStatus


# Fields a user may change through the single-field update endpoint.
EDITABLE_RISK_FIELDS = {
    "title": None,
    "likelihood": RiskLevel,
    "impact": RiskLevel,
    "status": RiskStatus,
    "mitigation": None,
    "owner": None,
}


class Risk(db.Model):
    """A risk entry in a project's register."""

    __tablename__ = "risks"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    likelihood = db.Column(db.String(10), nullable=False, default=RiskLevel.HIGH.value)
    impact = db.Column(db.String(10), nullable=False, default=RiskLevel.HIGH.value)
    status = db.Column(db.String(20), nullable=False, default=RiskStatus.ACTIVE.value, index=True)
    mitigation = db.Column(db.Text, default="")
    owner = db.Column(db.String(150), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "likelihood": self.likelihood,
            "impact": self.impact,
            "status": self.status,
            "mitigation": self.mitigation or "",
            "owner": self.owner or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Risk {self.id}: {self.title[:40]}>"
