from flask import Blueprint, jsonify

from models import db
from models.session_model import AttendanceRecord, ClassSession, Course
from models.user_model import Role
from utils.auth_utils import current_principal
from utils.session_window import as_utc

student_bp = Blueprint("student", __name__)


def _iso(ts):
    return as_utc(ts).isoformat() if ts is not None else None


def attendance_stats(records):
    total = len(records)
    present = sum(1 for r in records if r["is_present"])
    return {
        "total": total,
        "present": present,
        "absent": total - present,
        "percentage": int(present * 100 / total + 0.5) if total else 0,
    }


@student_bp.route("/attendance")
def attendance():
    principal = current_principal()
    if principal is None:
        return jsonify({"msg": "Not logged in"}), 401
    if principal.role is not Role.STUDENT:
        return "Unauthorized", 403

    rows = (db.session.query(AttendanceRecord, ClassSession, Course)
            .outerjoin(ClassSession, AttendanceRecord.session_id == ClassSession.id)
            .outerjoin(Course, ClassSession.course_id == Course.id)
            .filter(AttendanceRecord.user_id == principal.user_id)
            .order_by(AttendanceRecord.created_at.desc(), AttendanceRecord.id.desc())
            .all())

    records = []
    for rec, cls, course in rows:
        records.append({
            "id": rec.id,
            "session_id": rec.session_id,
            "session_title": cls.title if cls else "Unknown Session",
            "course_code": course.code if course else "Unknown",
            "course_title": course.title if course else "Unknown",
            "start_time": _iso(cls.start_time) if cls else None,
            "end_time": _iso(cls.end_time) if cls else None,
            "join_time": _iso(rec.join_time),
            "leave_time": _iso(rec.leave_time),
            "duration_minutes": rec.duration_minutes,
            "is_present": rec.is_present,
        })

    return jsonify({"records": records, "stats": attendance_stats(records)})
