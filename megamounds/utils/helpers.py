"""Shared utility functions used by services and blueprints.

get_or_404:        fetch-by-PK, raising NotFoundError
parse_date:        lenient date parsing (returns None on bad input)
commit_or_raise:   commit the session, turning driver failures into StoreError
"""
import logging
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from megamounds.core.exceptions import NotFoundError, StoreError
from megamounds.models import db

logger = logging.getLogger(__name__)


def get_or_404(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError."""
    label = label or model.__name__
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (-> .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise(operation, resource, resource_id=None):
    """Commit the current session or roll back and raise StoreError.

    Usage::

        task.status = "Complete"
        commit_or_raise("update", "Task", task.id)
    """
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Store %s failed for %s id=%s", operation, resource, resource_id)
        raise StoreError(operation, resource, resource_id, detail=str(exc)) from exc
