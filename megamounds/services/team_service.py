"""Project team service — membership listing and additions.

Transaction policy: methods use flush(), never commit().
"""
import logging

from megamounds.core.exceptions import NotFoundError, ValidationError
from megamounds.models import db
from megamounds.models.auth import Profile
from megamounds.models.project import ProjectMember
from megamounds.services.permission import check_permission

logger = logging.getLogger(__name__)


def list_members(project_id):
    return (
        ProjectMember.query
        .filter_by(project_id=project_id)
        .join(Profile, ProjectMember.profile_id == Profile.id)
        .order_by(Profile.full_name, Profile.email)
        .all()
    )


def add_member(project_id, data, role, added_by=None):
    """Attach an existing profile to the project, by id or email."""
    check_permission(role, "team_member_add")

    profile = None
    if data.get("profile_id"):
        profile = db.session.get(Profile, data["profile_id"])
    elif data.get("email"):
        profile = Profile.query.filter(
            db.func.lower(Profile.email) == data["email"].strip().lower()
        ).first()
    else:
        raise ValidationError("profile_id or email is required", details={"profile_id": "required"})

    if profile is None:
        raise NotFoundError("Profile", data.get("profile_id") or data.get("email"))

    existing = ProjectMember.query.filter_by(project_id=project_id, profile_id=profile.id).first()
    if existing:
        raise ValidationError("Profile is already on this project's team", details={"profile_id": "duplicate"})

    member = ProjectMember(project_id=project_id, profile_id=profile.id, added_by=added_by)
    db.session.add(member)
    db.session.flush()
    logger.info("Profile %s added to project %s", profile.id, project_id)
    return member
