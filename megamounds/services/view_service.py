"""
Project View Service — per-project snapshot for the dashboard.

Loads the four independent collections of a project (tasks, resources,
risks, team) into one bundle, then derives every figure the project page
shows from that bundle:
  - overall and per-week task progress, section progress for one week
  - weekly status chart rows and the critical task list
  - forecast probability with its band
  - resource milestone groups, type tracker and cost roll-ups
  - risk register and team list

The current role is passed in; cost figures are withheld from roles
without financial visibility.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from megamounds.models.project import Project
from megamounds.services import aggregation as agg
from megamounds.services import forecast
from megamounds.services.permission import capabilities, check_permission
from megamounds.services.resource_service import list_resources, resource_summary
from megamounds.services.risk_service import list_risks, risk_counts
from megamounds.services.task_service import list_tasks
from megamounds.services.team_service import list_members
from megamounds.utils.helpers import get_or_404

logger = logging.getLogger(__name__)


@dataclass
class ProjectBundle:
    """Everything read from the store for one project view."""
    project: Project
    tasks: list = field(default_factory=list)
    resources: list = field(default_factory=list)
    risks: list = field(default_factory=list)
    members: list = field(default_factory=list)


def load_project_bundle(project_id) -> ProjectBundle:
    """Read the project and its four collections in one session."""
    project = get_or_404(Project, project_id, "Project")
    return ProjectBundle(
        project=project,
        tasks=list_tasks(project_id),
        resources=list_resources(project_id),
        risks=list_risks(project_id),
        members=list_members(project_id),
    )


def task_overview(tasks, week: str | None = None) -> dict:
    """Task roll-ups; ``week`` selects the section breakdown (default: first week)."""
    tasks = list(tasks)
    weeks = agg.week_labels(tasks)
    selected = week if week in weeks else (weeks[0] if weeks else None)
    done = sum(1 for t in tasks if agg.is_task_done(t))

    week_tasks = [t for t in tasks if agg.week_key(t) == selected]
    sections = [
        {
            **row,
            "tasks": [t.to_dict() for t in week_tasks if agg.section_key(t) == row["section"]],
        }
        for row in agg.section_progress(week_tasks, selected)
    ] if selected is not None else []

    return {
        "total": len(tasks),
        "done": done,
        "percent_complete": agg.percent_complete(done, len(tasks)),
        "status_breakdown": agg.task_status_breakdown(tasks),
        "weeks": weeks,
        "selected_week": selected,
        "by_week": agg.progress_by_week(tasks),
        "sections": sections,
        "chart": agg.weekly_status_chart(tasks),
        "critical": [t.to_dict() for t in tasks if t.is_critical],
    }


def build_snapshot(bundle: ProjectBundle, role, week: str | None = None, now: datetime | None = None) -> dict:
    """Combine aggregation and forecast outputs for one project page."""
    check_permission(role, "project_view")
    snapshot = {
        "project": bundle.project.to_dict(),
        "permissions": capabilities(role),
        "forecast": forecast.build_forecast(bundle.project, bundle.tasks, now),
        "tasks": task_overview(bundle.tasks, week),
        "resources": resource_summary(bundle.resources, role),
        "risks": {
            "items": [r.to_dict() for r in bundle.risks],
            **risk_counts(bundle.risks),
        },
        "team": [m.to_dict() for m in bundle.members],
    }
    logger.debug(
        "Snapshot for project %s: %d tasks, %d resources, %d risks",
        bundle.project.id, len(bundle.tasks), len(bundle.resources), len(bundle.risks),
    )
    return snapshot


def project_snapshot(project_id, role, week: str | None = None, now: datetime | None = None) -> dict:
    return build_snapshot(load_project_bundle(project_id), role, week, now)


def project_forecast(project_id, role, now: datetime | None = None) -> dict:
    check_permission(role, "project_view")
    project = get_or_404(Project, project_id, "Project")
    result = forecast.build_forecast(project, list_tasks(project_id), now)
    result["project_id"] = project.id
    result["target_date"] = project.target_date.isoformat()
    return result
