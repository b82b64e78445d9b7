"""
Shared pytest fixtures for the Megamounds dashboard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_profile / auth_headers: profile + bearer token helpers
    - admin_headers, pm_headers, supervisor_headers, engineer_headers,
      subcontractor_headers: one signed-in profile per role
    - project: Pre-created Project entity
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from megamounds import create_app
from megamounds.models import db as _db
from megamounds.models.auth import Profile
from megamounds.models.enums import Role
from megamounds.models.project import Project
from megamounds.services.jwt_service import generate_access_token
from megamounds.utils.crypto import hash_password

TEST_PASSWORD = "site-pass-2026"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Profiles & tokens ────────────────────────────────────────────────────


def _create_profile(role=Role.SITE_SUPERVISOR, email=None, status="active", full_name=None):
    role = Role.coerce(role)
    slug = role.name.lower()
    profile = Profile(
        email=email or f"{slug}@example.com",
        full_name=full_name or role.value,
        role=role.value,
        status=status,
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
    )
    _db.session.add(profile)
    _db.session.commit()
    return profile


def _headers_for(profile):
    token = generate_access_token(profile.id, profile.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_profile():
    """Factory: make_profile(Role.ADMIN, email=...) -> committed Profile."""
    return _create_profile


@pytest.fixture()
def auth_headers():
    """Factory: auth_headers(profile) -> {"Authorization": "Bearer ..."}."""
    return _headers_for


@pytest.fixture()
def admin():
    return _create_profile(Role.ADMIN)


@pytest.fixture()
def admin_headers(admin):
    return _headers_for(admin)


@pytest.fixture()
def pm_headers():
    return _headers_for(_create_profile(Role.PROJECT_MANAGER))


@pytest.fixture()
def supervisor_headers():
    return _headers_for(_create_profile(Role.SITE_SUPERVISOR))


@pytest.fixture()
def engineer_headers():
    return _headers_for(_create_profile(Role.SITE_ENGINEER))


@pytest.fixture()
def subcontractor_headers():
    return _headers_for(_create_profile(Role.SUBCONTRACTOR))


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def project():
    """A project started 10 days ago, due in 20 days."""
    now = datetime.now(timezone.utc)
    proj = Project(
        name="Lekki Tower Block B",
        location="Lekki, Lagos",
        project_type="Residential",
        target_date=(now + timedelta(days=20)).date(),
        created_at=now - timedelta(days=10),
    )
    _db.session.add(proj)
    _db.session.commit()
    return proj


@pytest.fixture()
def other_project():
    proj = Project(name="Ikoyi Mall Fit-out", target_date=date(2027, 1, 31))
    _db.session.add(proj)
    _db.session.commit()
    return proj
