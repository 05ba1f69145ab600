import csv
import io
import logging

from flask import Blueprint, Response, jsonify, request

from models import db
from models.session_model import AttendanceRecord, ClassSession, Enrollment, TeachingAssignment
from models.user_model import Role, User
from routes.classes_routes import make_store
from routes.student_routes import attendance_stats
from utils.activity_logger import log_activity
from utils.auth_utils import current_principal
from utils.session_window import as_utc

logger = logging.getLogger(__name__)

faculty_bp = Blueprint("faculty", __name__)


def can_view_attendance(principal, cls):
    if principal.role is Role.ADMIN:
        return True
    if principal.role is Role.FACULTY:
        return TeachingAssignment.query.filter_by(
            user_id=principal.user_id, course_id=cls.course_id
        ).first() is not None
    if principal.role is Role.STUDENT:
        return False
    raise ValueError(f"unhandled role {principal.role!r}")


def _load_session():
    principal = current_principal()
    if principal is None:
        return None, None, (jsonify({"msg": "Not logged in"}), 401)

    cls = db.session.get(ClassSession, request.view_args["session_id"])
    if cls is None:
        return None, None, (jsonify({"msg": "Class session not found"}), 404)
    if not can_view_attendance(principal, cls):
        return None, None, ("Unauthorized", 403)
    return principal, cls, None


def _row(user_id, user, rec):
    return {
        "student_id": user_id,
        "student_name": user.name if user else "Unknown",
        "roll_no": user.roll_no if user else None,
        "join_time": as_utc(rec.join_time).isoformat() if rec and rec.join_time else None,
        "is_present": rec.is_present if rec else False,
        "recorded": rec is not None,
    }


def session_roster(cls):
    """Every enrolled student, absent unless a present record exists, plus records from non-enrolled users."""
    enrolled = (db.session.query(User, AttendanceRecord)
                .join(Enrollment, Enrollment.user_id == User.id)
                .outerjoin(AttendanceRecord, (AttendanceRecord.user_id == User.id)
                           & (AttendanceRecord.session_id == cls.id))
                .filter(Enrollment.course_id == cls.course_id)
                .order_by(User.name.asc())
                .all())
    roster = [_row(user.id, user, rec) for user, rec in enrolled]

    seen = {r["student_id"] for r in roster}
    extra = (db.session.query(AttendanceRecord, User)
             .outerjoin(User, AttendanceRecord.user_id == User.id)
             .filter(AttendanceRecord.session_id == cls.id)
             .order_by(AttendanceRecord.join_time.asc())
             .all())
    roster.extend(_row(rec.user_id, user, rec) for rec, user in extra if rec.user_id not in seen)
    return roster


@faculty_bp.route("/sessions/<int:session_id>/attendance")
def attendance_list(session_id):
    _, cls, error = _load_session()
    if error:
        return error
    roster = session_roster(cls)
    return jsonify({
        "session_id": cls.id,
        "title": cls.title,
        "attendance": roster,
        "stats": attendance_stats(roster),
    })


@faculty_bp.route("/sessions/<int:session_id>/attendance/<int:user_id>", methods=["POST"])
def mark_attendance(session_id, user_id):
    principal, cls, error = _load_session()
    if error:
        return error

    enrolled = Enrollment.query.filter_by(user_id=user_id, course_id=cls.course_id).first()
    if enrolled is None:
        return jsonify({"msg": "Student is not enrolled in this course"}), 404

    store = make_store()
    key = {"user_id": user_id, "session_id": session_id}
    existing = store.find_one("attendance", key)

    data = request.get_json(silent=True) or {}
    if "is_present" in data:
        is_present = bool(data["is_present"])
    else:
        is_present = not (existing["is_present"] if existing else False)

    if existing is None:
        row = store.insert("attendance", dict(key, is_present=is_present))
    else:
        row = store.update("attendance", key, {"is_present": is_present})

    logger.info("User %s marked student %s %s for session %s", principal.user_id, user_id,
                "present" if is_present else "absent", session_id)
    log_activity(principal.user_id, "mark_attendance",
                 {"session_id": session_id, "student_id": user_id, "is_present": is_present})
    return jsonify({"student_id": user_id, "session_id": session_id, "is_present": row["is_present"]})


@faculty_bp.route("/sessions/<int:session_id>/attendance.csv")
def export_csv(session_id):
    _, cls, error = _load_session()
    if error:
        return error
    roster = session_roster(cls)

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Student ID", "Student Name", "Roll No", "Join Time", "Present"])
    for r in roster:
        writer.writerow([r["student_id"], r["student_name"], r["roll_no"] or "", r["join_time"] or "", r["is_present"]])

    filename = f"attendance_session_{cls.id}.csv"
    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
