# config.py
import os
from datetime import datetime, timezone


def _env_int(name, default):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
        return value if value > 0 else default
    except ValueError:
        return default


def utc_now():
    return datetime.now(timezone.utc)


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "secret123")
    JWT_SECRET = os.getenv("JWT_SECRET", "jwt_secret_please_change")
    JWT_ALGO = "HS256"
    JWT_EXPIRY_MINUTES = _env_int("JWT_EXPIRY_MINUTES", 60)

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///portal.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # minutes before start_time during which a session may already be joined
    JOIN_WINDOW_MINUTES = _env_int("JOIN_WINDOW_MINUTES", 10)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip()

    CLOCK = staticmethod(utc_now)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
