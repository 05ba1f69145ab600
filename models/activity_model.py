from models import UTCDateTime, db
from datetime import datetime, timezone


class ActivityLog(db.Model):
    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)
    action = db.Column(db.String(100), nullable=False)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=False, default="unknown")
    created_at = db.Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
