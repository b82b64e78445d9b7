"""
Closed value sets for every enumerated entity field.

Each enum carries its own default member and a ``coerce`` classmethod that
maps raw input onto a member. Matching is exact and case-sensitive; anything
else (blank, misspelled, wrong case) falls back to the default. This is the
behaviour bulk import and the add forms rely on, so it is not an error.

Usage:
    from megamounds.models.enums import TaskStatus

    TaskStatus.coerce("Complete")     # TaskStatus.COMPLETE
    TaskStatus.coerce("complete")     # TaskStatus.NOT_STARTED
    TaskStatus.parse("Complete")      # TaskStatus.COMPLETE
    TaskStatus.parse("bogus")         # raises ValueError
"""

from __future__ import annotations

from enum import Enum


class _FieldEnum(str, Enum):
    """Base for string-valued field enums with default-on-invalid coercion."""

    @classmethod
    def default(cls):
        return next(iter(cls))

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]

    @classmethod
    def coerce(cls, raw):
        """Return the member whose value equals ``raw``, else the default."""
        if isinstance(raw, cls):
            return raw
        for member in cls:
            if member.value == raw:
                return member
        return cls.default()

    @classmethod
    def parse(cls, raw):
        """Strict variant of ``coerce`` for user-facing mutations."""
        if isinstance(raw, cls):
            return raw
        for member in cls:
            if member.value == raw:
                return member
        raise ValueError(
            f"'{raw}' is not a valid {cls.__name__}. Allowed: {', '.join(cls.values())}"
        )


class RagStatus(_FieldEnum):
    NOT_STARTED = "Not Started"
    ON_TRACK = "On Track"
    AT_RISK = "At Risk"
    DELAYED = "Delayed"
    COMPLETED = "Completed"


class TaskStatus(_FieldEnum):
    # Declaration order is the status cycle order used by the task row toggle.
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    BLOCKED = "Blocked"

    def next(self) -> "TaskStatus":
        members = list(TaskStatus)
        return members[(members.index(self) + 1) % len(members)]


class TaskPriority(_FieldEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"

    @classmethod
    def default(cls):
        return cls.NORMAL


class ResourceType(_FieldEnum):
    LABOUR = "Labour"
    MATERIAL = "Material"
    EQUIPMENT = "Equipment"
    SUBCONTRACTOR = "Subcontractor"

    @classmethod
    def default(cls):
        return cls.MATERIAL


class ResourceStatus(_FieldEnum):
    PLANNED = "Planned"
    ORDERED = "Ordered"
    ON_SITE = "On Site"
    USED = "Used"

    @property
    def is_deployed(self) -> bool:
        return self in (ResourceStatus.ON_SITE, ResourceStatus.USED)


class RiskLevel(_FieldEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RiskStatus(_FieldEnum):
    ACTIVE = "Active"
    MITIGATED = "Mitigated"
    RESOLVED = "Resolved"


class Role(_FieldEnum):
    ADMIN = "Admin"
    PROJECT_MANAGER = "Project Manager"
    SITE_SUPERVISOR = "Site Supervisor"
    SITE_ENGINEER = "Site Engineer"
    SUBCONTRACTOR = "Subcontractor / Trade"

    @classmethod
    def default(cls):
        return cls.SITE_SUPERVISOR
