import logging
from datetime import timedelta

from flask import Blueprint, current_app, jsonify

from models import db
from models.row_store import SQLAlchemyRowStore
from models.session_model import AttendanceRecord, ClassSession
from models.user_model import Role
from utils.activity_logger import log_activity
from utils.attendance_recorder import AttendanceRecorder
from utils.auth_utils import current_principal, visible_course_ids
from utils.session_window import SessionState, SessionWindowEvaluator, as_utc, has_meeting_link

logger = logging.getLogger(__name__)

classes_bp = Blueprint("classes", __name__)


def get_evaluator():
    cfg = current_app.config
    return SessionWindowEvaluator(cfg["CLOCK"], timedelta(minutes=cfg["JOIN_WINDOW_MINUTES"]))


def make_store():
    return SQLAlchemyRowStore(db.session, {
        "class_sessions": ClassSession,
        "attendance": AttendanceRecord,
    })


def has_join_control(role):
    if role is Role.STUDENT or role is Role.FACULTY:
        return True
    if role is Role.ADMIN:
        return False
    raise ValueError(f"unhandled role {role!r}")


def _course_name(course):
    return course.display_name if course is not None else "Unknown Course"


def _session_json(cls, view):
    data = {
        "id": cls.id,
        "course_id": cls.course_id,
        "course_name": _course_name(cls.course),
        "title": cls.title,
        "description": cls.description,
        "start_time": as_utc(cls.start_time).isoformat(),
        "end_time": as_utc(cls.end_time).isoformat(),
        "meeting_link": cls.meeting_link,
    }
    data.update(view.to_dict())
    return data


@classes_bp.route("/")
def list_classes():
    principal = current_principal()
    if principal is None:
        return jsonify({"msg": "Not logged in"}), 401

    evaluator = get_evaluator()
    now = evaluator.now()
    course_ids = visible_course_ids(principal)

    sessions = []
    if course_ids:
        rows = (ClassSession.query
                .filter(ClassSession.course_id.in_(course_ids))
                .filter(ClassSession.end_time >= now)
                .order_by(ClassSession.start_time.asc())
                .all())
        for cls in rows:
            view = evaluator.evaluate(cls.start_time, cls.end_time, cls.meeting_link, now=now)
            if view.state is SessionState.ENDED:
                continue
            sessions.append(_session_json(cls, view))

    changes = [s["seconds_until_change"] for s in sessions if s["seconds_until_change"] is not None]
    return jsonify({
        "now": now.isoformat(),
        "join_control": has_join_control(principal.role),
        "sessions": sessions,
        "refresh_in": min(changes) if changes else None,
    })


@classes_bp.route("/<int:session_id>/join", methods=["POST"])
def join_class(session_id):
    principal = current_principal()
    if principal is None:
        return jsonify({"msg": "Not logged in"}), 401

    cls = db.session.get(ClassSession, session_id)
    if cls is None or cls.course_id not in visible_course_ids(principal):
        return jsonify({"msg": "Class session not found"}), 404

    if not has_join_control(principal.role):
        return jsonify({"msg": "Your role cannot join class sessions"}), 403

    evaluator = get_evaluator()
    view = evaluator.evaluate(cls.start_time, cls.end_time, cls.meeting_link)
    if not view.can_join:
        if not has_meeting_link(cls.meeting_link):
            msg = "No meeting link for this session"
        elif view.state is SessionState.ENDED:
            msg = "Class session has ended"
        else:
            msg = f"Join opens {current_app.config['JOIN_WINDOW_MINUTES']} minutes before class starts"
        return jsonify({"msg": msg, "state": view.state.value, "label": view.label}), 409

    # read before the recorder commits or rolls back the session
    cls_id, meeting_link = cls.id, cls.meeting_link

    recorder = AttendanceRecorder(make_store(), current_app.config["CLOCK"])
    outcome = recorder.record_for(principal.role, principal.user_id, cls_id)
    if not outcome.ok:
        logger.warning("Join for user %s session %s proceeds without attendance", principal.user_id, cls_id)

    log_activity(principal.user_id, "join_class", {"session_id": cls_id, "attendance": outcome.status.value})
    return jsonify({
        "redirect": meeting_link,
        "state": view.state.value,
        "attendance": outcome.to_dict(),
    })
