"""
Forecast Estimator — on-time completion probability.

A linear heuristic on average velocity since the project started:

    velocity    = completed / days_elapsed
    days_needed = remaining / velocity

On pace the probability sits in [90, 99]; behind pace it scales down with
days_left / days_needed and never drops under 5. A project with no tasks has
no forecast and reports 0.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone

from megamounds.services.aggregation import is_task_done, round_half_up

logger = logging.getLogger(__name__)

NO_VELOCITY_DAYS = 9999
FLOOR = 5
CEILING = 99

BAND_ON_TRACK = "on_track"
BAND_AT_RISK = "at_risk"
BAND_HIGH_RISK = "high_risk"
BAND_NO_DATA = "no_data"

_BAND_COLOURS = {
    BAND_ON_TRACK: "green",
    BAND_AT_RISK: "amber",
    BAND_HIGH_RISK: "red",
    BAND_NO_DATA: "grey",
}

_SECONDS_PER_DAY = 86400


def _field(obj, name):
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_utc(value) -> datetime:
    """Dates become UTC midnight; naive datetimes are read as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise ValueError(f"Expected a date or datetime, got {value!r}")


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)


def build_forecast(project, tasks, now: datetime | None = None) -> dict:
    """All forecast inputs and the resulting probability for one project."""
    tasks = list(tasks)
    now = _as_utc(now or datetime.now(timezone.utc))
    created = _as_utc(_field(project, "created_at"))
    target = _as_utc(_field(project, "target_date"))

    total = len(tasks)
    completed = sum(1 for t in tasks if is_task_done(t))

    days_elapsed = max(1, _days_between(created, now))
    days_total = _days_between(created, target)
    days_to_target = _days_between(now, target)
    days_left = max(0, days_to_target)

    velocity = completed / days_elapsed
    remaining = total - completed
    days_needed = remaining / velocity if velocity > 0 else NO_VELOCITY_DAYS

    if total == 0:
        probability = 0
    elif days_needed <= days_left:
        if days_left == 0:
            probability = CEILING
        else:
            probability = min(CEILING, round_half_up(90 + 10 * (days_left - days_needed) / days_left))
    else:
        probability = max(FLOOR, round_half_up(90 * days_left / days_needed))

    band = probability_band(probability, has_tasks=total > 0)
    return {
        "probability": probability,
        "band": band,
        "colour": _BAND_COLOURS[band],
        "total_tasks": total,
        "completed_tasks": completed,
        "days_elapsed": days_elapsed,
        "days_total": days_total,
        "days_left": days_left,
        "days_to_target": days_to_target,
        "velocity": velocity,
        "days_needed": days_needed,
    }


def estimate_completion_probability(project, tasks, now: datetime | None = None) -> int:
    """Integer probability in [5, 99], or 0 when the project has no tasks."""
    return build_forecast(project, tasks, now)["probability"]


def probability_band(probability: int, has_tasks: bool = True) -> str:
    """>= 70 on track, 40..69 at risk, below 40 high risk."""
    if not has_tasks:
        return BAND_NO_DATA
    if probability >= 70:
        return BAND_ON_TRACK
    if probability >= 40:
        return BAND_AT_RISK
    return BAND_HIGH_RISK


def days_to_target(project, now: datetime | None = None) -> int:
    """Signed whole days until the target date; negative once overdue."""
    now = _as_utc(now or datetime.now(timezone.utc))
    return _days_between(now, _as_utc(_field(project, "target_date")))
