# utils/activity_logger.py
import logging

from flask import has_request_context, request

from models import db
from models.activity_model import ActivityLog

logger = logging.getLogger(__name__)


def client_ip():
    if not has_request_context():
        return "unknown"
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.remote_addr or "unknown"


def log_activity(user_id, action, details=None):
    try:
        db.session.add(ActivityLog(user_id=user_id, action=action, details=details, ip_address=client_ip()))
        db.session.commit()
        return {"success": True}
    except Exception as e:
        db.session.rollback()
        logger.exception("Error logging activity %s for user %s", action, user_id)
        return {"success": False, "error": str(e)}
