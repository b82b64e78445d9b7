"""
Settings for the Megamounds dashboard, one class per environment.

``create_app`` picks the class from ``APP_ENV`` and instantiates it, so
``ProductionConfig`` can refuse to boot with a missing database or key.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
instance_dir = os.path.join(basedir, "instance")


def _db_url(raw):
    # Hosted Postgres providers still hand out postgres:// URLs
    return raw.replace("postgres://", "postgresql://", 1) if raw else None


def _int_env(name, default):
    return int(os.getenv(name, str(default)))


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL")

    # Token lifetimes in seconds
    JWT_ACCESS_EXPIRES = _int_env("JWT_ACCESS_EXPIRES", 900)
    JWT_REFRESH_EXPIRES = _int_env("JWT_REFRESH_EXPIRES", 604800)
    INVITE_EXPIRES_DAYS = _int_env("INVITE_EXPIRES_DAYS", 7)

    # Rows committed per chunk by the CSV importer
    IMPORT_CHUNK_SIZE = _int_env("IMPORT_CHUNK_SIZE", 20)

    # Task photos
    STORAGE_ROOT = os.getenv("STORAGE_ROOT", os.path.join(instance_dir, "uploads"))
    PUBLIC_STORAGE_URL = os.getenv("PUBLIC_STORAGE_URL", "/uploads")
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = (
        _db_url(os.getenv("DATABASE_URL", ""))
        or f"sqlite:///{os.path.join(instance_dir, 'megamounds_dev.db')}"
    )


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "megamounds-test-signing-key-0123456789abcdef"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _db_url(os.getenv("DATABASE_URL", ""))
    # Browser origins of the dashboard; empty means same-origin only
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 20,
    }

    def __init__(self):
        missing = [name for name, value in (
            ("DATABASE_URL", self.SQLALCHEMY_DATABASE_URI),
            ("SECRET_KEY", os.getenv("SECRET_KEY")),
        ) if not value]
        if missing:
            raise RuntimeError(f"Production settings missing: {', '.join(missing)}")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
