from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.types import DateTime, TypeDecorator

from utils.session_window import as_utc

db = SQLAlchemy()


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC. Offset-aware input is converted first."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)
