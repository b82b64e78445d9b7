"""
Dashboard-wide exception hierarchy.

Services raise these; blueprints register one handler per type and get a
consistent JSON error body and HTTP status everywhere.

Usage:
    from megamounds.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Task", resource_id=42)
    raise ValidationError("title is required", details={"title": "required"})

Row-level import problems are NOT raised: the CSV validator collects them
into its error list and keeps the valid rows.
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Task").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when mutation input is well-formed but not acceptable.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class StoreError(Exception):
    """Raised when a read or write against the database fails.

    Carries the operation and record identity so the caller can report
    which write was lost. Nothing retries automatically.

    Args:
        operation: Verb of the failed call, e.g. "update", "insert".
        resource: Entity name.
        resource_id: PK of the record, if one was involved.
        detail: Underlying driver message (logged, not sent to clients).
    """

    def __init__(
        self,
        operation: str,
        resource: str,
        resource_id: int | str | None = None,
        detail: str | None = None,
    ) -> None:
        self.operation = operation
        self.resource = resource
        self.resource_id = resource_id
        self.detail = detail
        msg = f"Failed to {operation} {resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        super().__init__(msg)


class AuthError(Exception):
    """Sign-in, session or invite failure. The message is shown verbatim."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PermissionDenied(Exception):
    """Raised when the current role lacks the capability for an action."""

    def __init__(self, role: str | None, action: str) -> None:
        self.role = role
        self.action = action
        super().__init__(f"Role '{role or 'anonymous'}' is not allowed to {action}")
