"""
Auth Service — sign-in, sign-out, invites and profile roles.

Every failure is raised as AuthError with a message that is shown to the
user verbatim; callers do not classify it further.
"""

import logging
from datetime import datetime, timedelta, timezone

from email_validator import EmailNotValidError, validate_email
from flask import current_app

from megamounds.core.exceptions import AuthError, NotFoundError, ValidationError
from megamounds.models import db
from megamounds.models.auth import Profile
from megamounds.models.enums import Role
from megamounds.services import jwt_service
from megamounds.services.permission import check_permission
from megamounds.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

DEFAULT_INVITE_DAYS = 7
MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> str:
    try:
        return validate_email((email or "").strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise AuthError(f"Invalid email: {e}", 400) from e


def _parse_role(role: str) -> Role:
    try:
        return Role.parse(role)
    except ValueError as e:
        raise ValidationError(str(e), details={"role": "invalid"}) from e


def get_profile_by_email(email: str) -> Profile | None:
    return Profile.query.filter(db.func.lower(Profile.email) == (email or "").strip().lower()).first()


# ═══════════════════════════════════════════════════════════════
# Sign-in / Sign-out
# ═══════════════════════════════════════════════════════════════
def sign_in(email: str, password: str, ip_address=None, user_agent=None) -> dict:
    """Authenticate with email + password and open a refresh session.

    Returns {"profile": ..., "access_token": ..., "refresh_token": ..., ...}.
    """
    profile = get_profile_by_email(email)
    if not profile or not verify_password(password or "", profile.password_hash):
        raise AuthError("Invalid email or password", 401)

    if profile.status != "active":
        raise AuthError(f"Account is {profile.status}", 403)

    tokens = jwt_service.generate_token_pair(profile.id, profile.role)
    jwt_service.create_session(
        profile.id, tokens["token_hash"], ip_address, user_agent, tokens["expires_at"],
    )
    profile.last_login_at = datetime.now(timezone.utc)
    db.session.flush()
    logger.info("Profile %s signed in", profile.id)

    return {
        "profile": profile.to_dict(),
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
        "token_type": tokens["token_type"],
        "expires_in": tokens["expires_in"],
    }


def sign_out(profile_id: int, refresh_token: str | None = None) -> None:
    """Revoke one refresh session, or all of them when no token is given."""
    if refresh_token:
        jwt_service.revoke_session_by_token(jwt_service.hash_token(refresh_token))
    else:
        jwt_service.revoke_all_profile_sessions(profile_id)
    logger.info("Profile %s signed out", profile_id)


def current_session(profile_id: int) -> dict:
    """The signed-in profile, for the UI's session bootstrap."""
    profile = db.session.get(Profile, profile_id)
    if not profile or profile.status != "active":
        raise AuthError("Session is no longer valid", 401)
    return profile.to_dict()


# ═══════════════════════════════════════════════════════════════
# Invite Flow
# ═══════════════════════════════════════════════════════════════
def invite_user(email: str, role: str, actor_role, invited_by: int | None = None, full_name: str = "") -> Profile:
    """Invite a new profile by email with a role (Admin only).

    Re-inviting a still-pending address refreshes its token.
    """
    check_permission(actor_role, "user_invite")
    email = _normalize_email(email)
    new_role = _parse_role(role)
    days = current_app.config.get("INVITE_EXPIRES_DAYS", DEFAULT_INVITE_DAYS)
    expires_at = datetime.now(timezone.utc) + timedelta(days=days)

    existing = get_profile_by_email(email)
    if existing:
        if existing.status != "invited":
            raise AuthError("A user with this email already exists", 409)
        existing.invite_token = jwt_service.generate_invite_token()
        existing.invite_expires_at = expires_at
        existing.role = new_role.value
        db.session.flush()
        return existing

    profile = Profile(
        email=email,
        full_name=full_name or "",
        role=new_role.value,
        status="invited",
        invite_token=jwt_service.generate_invite_token(),
        invite_expires_at=expires_at,
        invited_by=invited_by,
    )
    db.session.add(profile)
    db.session.flush()
    logger.info("Profile %s invited as %s by %s", profile.id, profile.role, invited_by)
    return profile


def accept_invite(invite_token: str, password: str, full_name: str | None = None) -> Profile:
    """Accept an invitation — set password, activate profile."""
    profile = Profile.query.filter_by(invite_token=invite_token, status="invited").first()
    if not invite_token or not profile:
        raise AuthError("Invalid or expired invite token", 404)

    if profile.invite_expires_at and datetime.now(timezone.utc) > profile.invite_expires_at.replace(tzinfo=timezone.utc):
        raise AuthError("Invite token has expired", 400)

    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", 400)

    profile.password_hash = hash_password(password)
    profile.status = "active"
    profile.invite_token = None
    profile.invite_expires_at = None
    if full_name:
        profile.full_name = full_name
    db.session.flush()
    return profile


# ═══════════════════════════════════════════════════════════════
# Profile administration
# ═══════════════════════════════════════════════════════════════
def list_profiles(actor_role, status: str | None = None):
    check_permission(actor_role, "user_list")
    q = Profile.query
    if status:
        q = q.filter(Profile.status == status)
    return q.order_by(Profile.full_name, Profile.email).all()


def update_member_role(profile_id: int, role: str, actor_role) -> Profile:
    """Change a profile's role (Admin only)."""
    check_permission(actor_role, "member_role_update")
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile", profile_id)
    old = profile.role
    profile.role = _parse_role(role).value
    db.session.flush()
    logger.info("Profile %s role %s -> %s", profile.id, old, profile.role)
    return profile


def create_admin(email: str, password: str, full_name: str = "") -> Profile:
    """Create an active Admin profile (first-run bootstrap)."""
    email = _normalize_email(email)
    if get_profile_by_email(email):
        raise AuthError("A user with this email already exists", 409)
    profile = Profile(
        email=email,
        full_name=full_name or "",
        role=Role.ADMIN.value,
        status="active",
        password_hash=hash_password(password),
    )
    db.session.add(profile)
    db.session.flush()
    return profile
