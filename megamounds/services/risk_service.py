"""Risk register service.

Transaction policy: methods use flush(), never commit().
"""
import logging

from megamounds.core.exceptions import ValidationError
from megamounds.models import db
from megamounds.models.enums import RiskLevel, RiskStatus
from megamounds.models.risk import EDITABLE_RISK_FIELDS, Risk
from megamounds.services.permission import check_permission

logger = logging.getLogger(__name__)


def list_risks(project_id, status=None):
    q = Risk.query.filter_by(project_id=project_id)
    if status:
        q = q.filter(Risk.status == status)
    return q.order_by(Risk.created_at.desc(), Risk.id.desc()).all()


def create_risk(project_id, data, role):
    """Create a risk; likelihood and impact default to High, status to Active.

    Returns:
        Risk instance (already flushed).
    """
    check_permission(role, "risk_create")

    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("title is required", details={"title": "required"})

    risk = Risk(
        project_id=project_id,
        title=title,
        likelihood=RiskLevel.coerce(data.get("likelihood")).value,
        impact=RiskLevel.coerce(data.get("impact")).value,
        status=RiskStatus.coerce(data.get("status")).value,
        mitigation=data.get("mitigation", ""),
        owner=data.get("owner", ""),
    )
    db.session.add(risk)
    db.session.flush()
    return risk


def update_risk_field(risk, field, value, role):
    """Change one whitelisted field. Enum fields must carry a valid value."""
    check_permission(role, "risk_update")

    if field not in EDITABLE_RISK_FIELDS:
        raise ValidationError(
            f"Field '{field}' cannot be updated. Allowed: {', '.join(EDITABLE_RISK_FIELDS)}",
            details={"field": "invalid"},
        )

    enum_type = EDITABLE_RISK_FIELDS[field]
    if enum_type is not None:
        try:
            value = enum_type.parse(value).value
        except ValueError as e:
            raise ValidationError(str(e), details={field: "invalid"}) from e
    elif field == "title":
        value = (value or "").strip()
        if not value:
            raise ValidationError("title is required", details={"title": "required"})
    else:
        value = value or ""

    setattr(risk, field, value)
    db.session.flush()
    return risk


def risk_counts(risks):
    """Active/high counts shown in the risk register header."""
    risks = list(risks)
    return {
        "total": len(risks),
        "active": sum(1 for r in risks if r.status == RiskStatus.ACTIVE.value),
        "high_impact_active": sum(
            1 for r in risks
            if r.status == RiskStatus.ACTIVE.value and r.impact == RiskLevel.HIGH.value
        ),
    }
