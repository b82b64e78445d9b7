"""
Token service — signed access tokens for dashboard users and the refresh
sessions that back them.

Access tokens carry the profile id (``sub``) and the role the profile had
when the token was issued. The role in the token is informational only:
``jwt_auth`` reloads the profile on every request so a role change made by
an Admin applies immediately.

Refresh tokens are never stored raw. A ``Session`` row keeps their SHA-256
digest so logout can revoke one device or all of them.
"""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from megamounds.models import db
from megamounds.models.auth import Session

ALGORITHM = "HS256"
ACCESS_TTL_SECONDS = 15 * 60
REFRESH_TTL_SECONDS = 7 * 24 * 60 * 60


def _signing_key() -> str:
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def _ttl(kind: str) -> int:
    if kind == "access":
        return current_app.config.get("JWT_ACCESS_EXPIRES", ACCESS_TTL_SECONDS)
    return current_app.config.get("JWT_REFRESH_EXPIRES", REFRESH_TTL_SECONDS)


def _encode(profile_id: int, kind: str, **claims) -> tuple[str, datetime]:
    issued = datetime.now(timezone.utc)
    expires = issued + timedelta(seconds=_ttl(kind))
    body = {
        "sub": str(profile_id),
        "type": kind,
        "iat": issued,
        "exp": expires,
        "jti": uuid.uuid4().hex,
        **claims,
    }
    return jwt.encode(body, _signing_key(), algorithm=ALGORITHM), expires


def generate_access_token(profile_id: int, role: str) -> str:
    token, _ = _encode(profile_id, "access", role=role)
    return token


def generate_token_pair(profile_id: int, role: str) -> dict:
    """Issue the access/refresh pair returned by the login endpoint.

    ``token_hash`` and ``expires_at`` are for ``create_session``; the
    blueprint strips them before responding.
    """
    refresh, refresh_expires = _encode(profile_id, "refresh")
    return {
        "access_token": generate_access_token(profile_id, role),
        "refresh_token": refresh,
        "token_hash": hash_token(refresh),
        "expires_at": refresh_expires,
        "token_type": "Bearer",
        "expires_in": _ttl("access"),
    }


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry; reject refresh tokens presented as access.

    Raises ``jwt.InvalidTokenError`` (or a subclass) on any failure.
    """
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM])
    if claims.get("type") != "access":
        raise jwt.InvalidTokenError("not an access token")
    return claims


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_invite_token() -> str:
    """URL-safe one-time token sent to invited site staff."""
    return secrets.token_urlsafe(32)


# ── Refresh sessions ────────────────────────────────────────────────────────

def create_session(profile_id, token_hash, ip_address, user_agent, expires_at) -> Session:
    row = Session(
        profile_id=profile_id,
        token_hash=token_hash,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500],
        expires_at=expires_at,
    )
    db.session.add(row)
    db.session.flush()
    return row


def revoke_session_by_token(token_hash: str) -> bool:
    """Deactivate the session for one refresh token. False if none was active."""
    row = Session.query.filter_by(token_hash=token_hash, is_active=True).first()
    if row is None:
        return False
    row.is_active = False
    db.session.flush()
    return True


def revoke_all_profile_sessions(profile_id: int) -> None:
    Session.query.filter_by(profile_id=profile_id, is_active=True).update({"is_active": False})
    db.session.flush()
