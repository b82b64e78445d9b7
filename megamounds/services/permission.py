"""
Role-Based Access Control for dashboard actions.

The current role is always passed in explicitly; nothing here reads the
request or the session.

Usage:
    from megamounds.services.permission import check_permission, has_permission

    # Raises PermissionDenied if not allowed
    check_permission(role, "task_status_update")

    # Boolean check
    if has_permission(role, "view_financials"):
        ...
"""

from megamounds.core.exceptions import PermissionDenied
from megamounds.models.enums import Role

_EDITORS = {Role.ADMIN, Role.PROJECT_MANAGER, Role.SITE_SUPERVISOR, Role.SITE_ENGINEER}
_MANAGERS = {Role.ADMIN, Role.PROJECT_MANAGER}
_ADMINS = {Role.ADMIN}
_EVERYONE = set(Role)

PERMISSION_MATRIX: dict[str, set[Role]] = {
    # read
    "project_view": _EVERYONE,
    # edit rights
    "task_status_update": _EDITORS,
    "task_note_update": _EDITORS,
    "task_photo_upload": _EDITORS,
    # manage rights
    "project_create": _MANAGERS,
    "project_update": _MANAGERS,
    "task_create": _MANAGERS,
    "task_import": _MANAGERS,
    "resource_create": _MANAGERS,
    "resource_import": _MANAGERS,
    "resource_status_update": _MANAGERS,
    "risk_create": _MANAGERS,
    "risk_update": _MANAGERS,
    "team_member_add": _MANAGERS,
    # admin panel
    "user_invite": _ADMINS,
    "user_list": _ADMINS,
    "member_role_update": _ADMINS,
    # financial roll-ups are withheld from trade users
    "view_financials": _EVERYONE - {Role.SUBCONTRACTOR},
}


def _as_role(role) -> Role | None:
    if isinstance(role, Role):
        return role
    for member in Role:
        if member.value == role:
            return member
    return None


def has_permission(role, action: str) -> bool:
    """True if ``role`` may perform ``action``. Unknown roles get nothing."""
    member = _as_role(role)
    if member is None:
        return False
    return member in PERMISSION_MATRIX.get(action, set())


def check_permission(role, action: str) -> None:
    """Raise PermissionDenied unless ``role`` may perform ``action``."""
    if not has_permission(role, action):
        raise PermissionDenied(role, action)


def can_edit(role) -> bool:
    return _as_role(role) in _EDITORS


def can_manage(role) -> bool:
    return _as_role(role) in _MANAGERS


def is_admin(role) -> bool:
    return _as_role(role) in _ADMINS


def can_view_financials(role) -> bool:
    return has_permission(role, "view_financials")


def capabilities(role) -> dict:
    """Flags the UI uses to show or hide edit controls."""
    return {
        "role": role,
        "can_edit": can_edit(role),
        "can_manage": can_manage(role),
        "is_admin": is_admin(role),
        "can_view_financials": can_view_financials(role),
    }
