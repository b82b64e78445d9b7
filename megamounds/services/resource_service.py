"""Resource service layer — listing, creation, status updates and the
financial summary shown on the resources tab.

Transaction policy: methods use flush(), never commit().
"""
import logging

from megamounds.core.exceptions import ValidationError
from megamounds.models import db
from megamounds.models.enums import ResourceStatus, ResourceType
from megamounds.models.resource import Resource
from megamounds.services import aggregation as agg
from megamounds.services.csv_import_service import parse_non_negative_number
from megamounds.services.permission import can_view_financials, check_permission
from megamounds.utils.helpers import parse_date

logger = logging.getLogger(__name__)


def list_resources(project_id, milestone=None, status=None):
    q = Resource.query.filter_by(project_id=project_id)
    if milestone:
        q = q.filter(Resource.milestone == milestone)
    if status:
        q = q.filter(Resource.status == status)
    return q.order_by(Resource.milestone_date, Resource.id).all()


def create_resource(project_id, data, role):
    """Add one resource row. Only the name is required.

    Returns:
        Resource instance (already flushed).
    """
    check_permission(role, "resource_create")

    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required", details={"name": "required"})

    resource = Resource(
        project_id=project_id,
        name=name,
        type=ResourceType.coerce(data.get("type")).value,
        quantity=parse_non_negative_number(data.get("quantity")),
        unit=data.get("unit", ""),
        cost_per_unit=parse_non_negative_number(data.get("cost_per_unit")),
        milestone=(data.get("milestone") or "").strip(),
        milestone_date=parse_date(data.get("milestone_date")),
        supplier=data.get("supplier", ""),
        status=ResourceStatus.coerce(data.get("status")).value,
        notes=data.get("notes", ""),
    )
    db.session.add(resource)
    db.session.flush()
    return resource


def update_resource_status(resource, status, role):
    check_permission(role, "resource_status_update")
    try:
        resource.status = ResourceStatus.parse(status).value
    except ValueError as e:
        raise ValidationError(str(e), details={"status": "invalid"}) from e
    db.session.flush()
    logger.info("Resource %s status -> %s", resource.id, resource.status)
    return resource


def resource_summary(resources, role):
    """Milestone groups, type tracker and cost roll-ups for one project.

    Cost figures are dropped for roles without financial visibility.
    """
    resources = list(resources)
    milestones = []
    for group in agg.resources_by_milestone(resources):
        group["items"] = [r.to_dict() if hasattr(r, "to_dict") else r for r in group["items"]]
        if group["milestone_date"] is not None and hasattr(group["milestone_date"], "isoformat"):
            group["milestone_date"] = group["milestone_date"].isoformat()
        milestones.append(group)

    summary = {
        "total": len(resources),
        "deployed": sum(1 for r in resources if agg.is_resource_deployed(r)),
        "milestones": milestones,
        "by_type": agg.resources_by_type(resources),
    }
    summary["deployed_pct"] = agg.percent_complete(summary["deployed"], summary["total"])

    if can_view_financials(role):
        summary["cost"] = agg.cost_overview(resources)
        summary["cost_by_status"] = agg.cost_by_status(resources)
    else:
        _strip_costs(summary)
    return summary


def _strip_costs(summary):
    for group in summary["milestones"]:
        group.pop("total_cost", None)
        for item in group["items"]:
            item.pop("cost_per_unit", None)
            item.pop("line_cost", None)
    for row in summary["by_type"]:
        row.pop("total_cost", None)
