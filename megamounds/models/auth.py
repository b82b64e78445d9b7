"""
Auth Models — profiles and refresh-token sessions.

A Profile is both the login identity and the team-facing person record
(full name, role, email). Invited profiles have no password until the
invite is accepted.
"""

import uuid
from datetime import datetime, timezone

from megamounds.models import db
from megamounds.models.enums import Role


PROFILE_STATUSES = {"active", "invited", "inactive"}


# ═══════════════════════════════════════════════════════════════
# 1. PROFILES
# ═══════════════════════════════════════════════════════════════
class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    password_hash = db.Column(db.String(256))  # NULL while invited
    full_name = db.Column(db.String(200), default="")
    role = db.Column(db.String(40), nullable=False, default=Role.SITE_SUPERVISOR.value)
    status = db.Column(db.String(20), default="active")  # active, invited, inactive
    invite_token = db.Column(db.String(256))
    invite_expires_at = db.Column(db.DateTime)
    invited_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sessions = db.relationship("Session", back_populates="profile", lazy="dynamic", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "status": self.status,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Profile {self.id}: {self.email} ({self.role})>"


# ═══════════════════════════════════════════════════════════════
# 2. SESSIONS (refresh tokens)
# ═══════════════════════════════════════════════════════════════
class Session(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = db.Column(
        db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    token_hash = db.Column(db.String(256), nullable=False)  # SHA-256 of refresh token
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime, nullable=False)

    profile = db.relationship("Profile", back_populates="sessions")

