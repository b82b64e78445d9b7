"""
Aggregation Engine — progress and cost roll-ups for the dashboard views.

Pure functions over collections of tasks and resources. Items may be model
instances or plain dicts (as produced by ``to_dict`` or the CSV validator);
nothing here touches the database or reads the current user.

Usage:
    from megamounds.services import aggregation as agg

    agg.percent_complete(3, 4)                      # 75
    agg.summarize(tasks, agg.is_task_done)          # GroupSummary
    agg.resources_by_milestone(resources)           # ordered, "Unscheduled" last
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from megamounds.models.enums import ResourceStatus, ResourceType, TaskStatus

UNSCHEDULED = "Unscheduled"

_DIGITS = re.compile(r"\d")


# ═════════════════════════════════════════════════════════════════════════════
# Primitives
# ═════════════════════════════════════════════════════════════════════════════

def _get(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def round_half_up(value: float) -> int:
    """Round .5 upwards, the way dashboard percentages have always been shown."""
    return int(math.floor(value + 0.5))


def percent_complete(done: int, total: int) -> int:
    """Share of ``done`` in ``total`` as a whole percentage; 0 when total is 0."""
    if not total:
        return 0
    return round_half_up(100 * done / total)


def line_cost(resource) -> float:
    """quantity × cost_per_unit, with missing values counted as 0."""
    return float(_get(resource, "quantity") or 0) * float(_get(resource, "cost_per_unit") or 0)


def is_task_done(task) -> bool:
    return _get(task, "status") == TaskStatus.COMPLETE.value


def is_resource_deployed(resource) -> bool:
    return _get(resource, "status") in (ResourceStatus.ON_SITE.value, ResourceStatus.USED.value)


# ═════════════════════════════════════════════════════════════════════════════
# Grouping
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class GroupSummary:
    """Roll-up of one group of tasks or resources."""
    count: int = 0
    done: int = 0
    total_cost: float | None = None

    @property
    def percent_complete(self) -> int:
        return percent_complete(self.done, self.count)

    def to_dict(self) -> dict:
        d = {
            "count": self.count,
            "done": self.done,
            "percent_complete": self.percent_complete,
        }
        if self.total_cost is not None:
            d["total_cost"] = self.total_cost
        return d


def group_items(items: Iterable, key: Callable[[Any], str]) -> dict[str, list]:
    """Bucket items by ``key(item)``; buckets keep first-seen key order."""
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def summarize(items: Iterable, done: Callable[[Any], bool], with_cost: bool = False) -> GroupSummary:
    items = list(items)
    summary = GroupSummary(
        count=len(items),
        done=sum(1 for i in items if done(i)),
    )
    if with_cost:
        summary.total_cost = sum(line_cost(i) for i in items)
    return summary


def summarize_groups(
    items: Iterable,
    key: Callable[[Any], str],
    done: Callable[[Any], bool],
    with_cost: bool = False,
) -> dict[str, GroupSummary]:
    """Map each group key to its ``GroupSummary``."""
    return {
        k: summarize(members, done, with_cost)
        for k, members in group_items(items, key).items()
    }


# ── Key functions ────────────────────────────────────────────────────────────

def week_key(task) -> str:
    return _get(task, "week") or ""


def section_key(task) -> str:
    return _get(task, "section") or ""


def milestone_key(resource) -> str:
    label = (_get(resource, "milestone") or "").strip()
    return label or UNSCHEDULED


def type_key(resource) -> str:
    return _get(resource, "type") or ResourceType.default().value


def status_key(item) -> str:
    return _get(item, "status") or ""


# ═════════════════════════════════════════════════════════════════════════════
# Ordering
# ═════════════════════════════════════════════════════════════════════════════

def milestone_sort_key(label: str) -> tuple:
    """Numeric order on the digits in the label.

    "WEEK 3" -> 3. Labels without digits follow the numbered ones and
    "Unscheduled" follows everything. Use with a stable sort so equal keys
    keep insertion order.
    """
    if label == UNSCHEDULED:
        return (2, 0)
    digits = "".join(_DIGITS.findall(label or ""))
    if not digits:
        return (1, 0)
    return (0, int(digits))


def sort_milestones(labels: Iterable[str]) -> list[str]:
    return sorted(labels, key=milestone_sort_key)


def week_labels(tasks: Iterable) -> list[str]:
    """Distinct week labels in plain string order ("WEEK 10" before "WEEK 2")."""
    return sorted({week_key(t) for t in tasks})


def sections_for(tasks: Iterable, week: str) -> list[str]:
    """Non-empty sections of ``week`` in first-seen order."""
    seen: list[str] = []
    for t in tasks:
        if week_key(t) != week:
            continue
        section = section_key(t)
        if section and section not in seen:
            seen.append(section)
    return seen


# ═════════════════════════════════════════════════════════════════════════════
# Task roll-ups
# ═════════════════════════════════════════════════════════════════════════════

def task_status_breakdown(tasks: Iterable) -> dict[str, int]:
    """Count of tasks per status, every status present (zero-filled)."""
    counts = {s.value: 0 for s in TaskStatus}
    for t in tasks:
        status = TaskStatus.coerce(_get(t, "status")).value
        counts[status] += 1
    return counts


def progress_by_week(tasks: Iterable) -> list[dict]:
    """One row per week label (string order) with count / done / percent."""
    tasks = list(tasks)
    groups = summarize_groups(tasks, week_key, is_task_done)
    return [
        {"week": week, **groups[week].to_dict()}
        for week in week_labels(tasks)
    ]


def section_progress(tasks: Iterable, week: str) -> list[dict]:
    """Per-section progress for one week, sections in first-seen order."""
    in_week = [t for t in tasks if week_key(t) == week]
    groups = summarize_groups(in_week, section_key, is_task_done)
    return [
        {"section": section, **groups[section].to_dict()}
        for section in sections_for(in_week, week)
    ]


def weekly_status_chart(tasks: Iterable) -> list[dict]:
    """Chart rows: week shortened to "Wn" plus a count per status."""
    tasks = list(tasks)
    rows = []
    for week, members in ((w, [t for t in tasks if week_key(t) == w]) for w in week_labels(tasks)):
        counts = task_status_breakdown(members)
        rows.append({
            "week": week.replace("WEEK ", "W"),
            "total": len(members),
            "complete": counts[TaskStatus.COMPLETE.value],
            "in_progress": counts[TaskStatus.IN_PROGRESS.value],
            "blocked": counts[TaskStatus.BLOCKED.value],
            "not_started": counts[TaskStatus.NOT_STARTED.value],
        })
    return rows


# ═════════════════════════════════════════════════════════════════════════════
# Resource roll-ups
# ═════════════════════════════════════════════════════════════════════════════

def resources_by_milestone(resources: Iterable) -> list[dict]:
    """Milestone groups in milestone order, each with its items and roll-up.

    ``milestone_date`` is taken from the first item of the group.
    """
    groups = group_items(resources, milestone_key)
    out = []
    for label in sort_milestones(groups):
        items = groups[label]
        out.append({
            "milestone": label,
            "milestone_date": _get(items[0], "milestone_date"),
            **summarize(items, is_resource_deployed, with_cost=True).to_dict(),
            "items": items,
        })
    return out


def resources_by_type(resources: Iterable) -> list[dict]:
    """Roll-up per resource type, types in enum order, empty types omitted."""
    groups = summarize_groups(resources, type_key, is_resource_deployed, with_cost=True)
    return [
        {"type": t.value, **groups[t.value].to_dict()}
        for t in ResourceType
        if t.value in groups
    ]


def cost_by_status(resources: Iterable) -> dict[str, dict]:
    """Count and cost for every resource status (zero-filled)."""
    out = {s.value: {"count": 0, "total_cost": 0.0} for s in ResourceStatus}
    for r in resources:
        bucket = out[ResourceStatus.coerce(status_key(r)).value]
        bucket["count"] += 1
        bucket["total_cost"] += line_cost(r)
    return out


def cost_overview(resources: Iterable) -> dict:
    """Total planned cost against the cost already deployed on site."""
    resources = list(resources)
    total = sum(line_cost(r) for r in resources)
    deployed = sum(line_cost(r) for r in resources if is_resource_deployed(r))
    return {
        "total_cost": total,
        "deployed_cost": deployed,
        "deployed_pct": round_half_up(deployed / total * 100) if total else 0,
    }
