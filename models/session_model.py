from models import UTCDateTime, db
from datetime import datetime, timezone

from sqlalchemy.orm import validates

from utils.session_window import SessionWindow, as_utc, check_window


def _utcnow():
    return datetime.now(timezone.utc)


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)

    @property
    def display_name(self):
        return f"{self.code} - {self.title}"


class Enrollment(db.Model):
    __tablename__ = "enrollments"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_enrollment"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)


class TeachingAssignment(db.Model):
    __tablename__ = "teaching_assignments"
    __table_args__ = (db.UniqueConstraint("user_id", "course_id", name="uq_teaching_assignment"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)


class ClassSession(db.Model):
    __tablename__ = "class_sessions"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_time = db.Column(UTCDateTime, nullable=False)
    end_time = db.Column(UTCDateTime, nullable=False)
    meeting_link = db.Column(db.String(500), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_at = db.Column(UTCDateTime, default=_utcnow)

    course = db.relationship("Course")

    def __init__(self, **kwargs):
        check_window(kwargs.get("start_time"), kwargs.get("end_time"))
        super().__init__(**kwargs)

    @validates("start_time", "end_time")
    def _to_utc(self, key, value):
        return as_utc(value) if value is not None else None

    @property
    def window(self):
        return SessionWindow(self.start_time, self.end_time)


class AttendanceRecord(db.Model):
    __tablename__ = "attendance"
    __table_args__ = (db.UniqueConstraint("user_id", "session_id", name="uq_attendance_user_session"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey("class_sessions.id"), nullable=False)
    join_time = db.Column(UTCDateTime, nullable=True)
    leave_time = db.Column(UTCDateTime, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    is_present = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(UTCDateTime, default=_utcnow)
    updated_at = db.Column(UTCDateTime, default=_utcnow, onupdate=_utcnow)

    @validates("join_time", "leave_time")
    def _to_utc(self, key, value):
        return as_utc(value) if value is not None else None
