# utils/attendance_recorder.py
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from models.row_store import DuplicateRow
from models.user_model import Role
from utils.session_window import as_utc

logger = logging.getLogger(__name__)

ATTENDANCE_TABLE = "attendance"


class OutcomeStatus(str, enum.Enum):
    CREATED = "created"
    REFRESHED = "refreshed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class AttendanceOutcome:
    status: OutcomeStatus
    record: Optional[dict] = None
    error: Optional[Exception] = None

    @property
    def ok(self):
        return self.status is not OutcomeStatus.FAILED

    def to_dict(self):
        data = {"status": self.status.value}
        if self.error is not None:
            data["error"] = str(self.error)
        return data


def records_attendance(role) -> bool:
    role = Role.parse(role)
    if role is Role.STUDENT:
        return True
    if role is Role.FACULTY or role is Role.ADMIN:
        return False
    raise ValueError(f"unhandled role {role!r}")


class AttendanceRecorder:
    """
    Marks a learner present when they join a session.

    One row per (user_id, session_id): the first join inserts it, later joins
    only move join_time forward. Store errors are logged and reported in the
    returned outcome; record_join never raises for them.
    """

    def __init__(self, store, clock):
        self.store = store
        self.clock = clock

    def record_join(self, user_id, session_id) -> AttendanceOutcome:
        join_time = as_utc(self.clock())
        key = {"user_id": user_id, "session_id": session_id}
        try:
            existing = self.store.find_one(ATTENDANCE_TABLE, key)
            if existing is not None:
                return self._refresh(key, join_time)
            try:
                row = self.store.insert(ATTENDANCE_TABLE, dict(key, join_time=join_time, is_present=True))
            except DuplicateRow:
                # another join for the same pair landed between our read and write
                logger.info("Attendance row for user %s session %s appeared concurrently", user_id, session_id)
                return self._refresh(key, join_time)
            logger.info("Attendance recorded for user %s session %s", user_id, session_id)
            return AttendanceOutcome(OutcomeStatus.CREATED, record=row)
        except Exception as e:
            logger.exception("Failed to record attendance for user %s session %s", user_id, session_id)
            return AttendanceOutcome(OutcomeStatus.FAILED, error=e)

    def _refresh(self, key, join_time):
        row = self.store.update(ATTENDANCE_TABLE, key, {"join_time": join_time})
        return AttendanceOutcome(OutcomeStatus.REFRESHED, record=row)

    def record_for(self, role, user_id, session_id) -> AttendanceOutcome:
        if not records_attendance(role):
            return AttendanceOutcome(OutcomeStatus.SKIPPED)
        return self.record_join(user_id, session_id)
