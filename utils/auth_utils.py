# utils/auth_utils.py
import logging
from dataclasses import dataclass

import jwt
from flask import request, session

from models import db
from models.session_model import Course, Enrollment, TeachingAssignment
from models.user_model import Role
from utils.jwt_utils import verify_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: Role


def current_principal():
    """Bearer token first, then the Flask session. None when not logged in."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        try:
            payload = verify_access_token(auth[len("Bearer "):].strip())
            return Principal(int(payload["sub"]), Role.parse(payload["role"]))
        except (jwt.InvalidTokenError, KeyError, ValueError) as e:
            logger.info("Rejected bearer token: %s", e)
            return None

    if "user_id" in session and "role" in session:
        try:
            return Principal(int(session["user_id"]), Role.parse(session["role"]))
        except ValueError:
            return None
    return None


def visible_course_ids(principal):
    if principal.role is Role.STUDENT:
        rows = db.session.query(Enrollment.course_id).filter_by(user_id=principal.user_id)
    elif principal.role is Role.FACULTY:
        rows = db.session.query(TeachingAssignment.course_id).filter_by(user_id=principal.user_id)
    elif principal.role is Role.ADMIN:
        rows = db.session.query(Course.id)
    else:
        raise ValueError(f"unhandled role {principal.role!r}")
    return [r[0] for r in rows.all()]
