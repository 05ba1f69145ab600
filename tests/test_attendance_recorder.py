"""
Attendance side effect of a join: one row per learner and session, best-effort.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.row_store import DuplicateRow
from models.user_model import Role
from tests.conftest import MemoryRowStore
from utils.attendance_recorder import AttendanceRecorder, OutcomeStatus, records_attendance

T0 = datetime(2025, 1, 1, 9, 55, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    return MemoryRowStore(unique={"attendance": ("user_id", "session_id")})


@pytest.fixture
def clock():
    return Clock(T0)


@pytest.fixture
def recorder(store, clock):
    return AttendanceRecorder(store, clock)


class BrokenStore:
    def find_one(self, table, filter):
        raise ConnectionError("store unreachable")


class RacingStore(MemoryRowStore):
    """Misses the row on read, as if a concurrent join inserted it in between."""

    def find_one(self, table, filter):
        return None


class TestRecordJoin:
    def test_first_join_creates_present_record(self, recorder, store):
        outcome = recorder.record_join(7, 42)

        assert outcome.status is OutcomeStatus.CREATED
        assert outcome.ok
        rows = store.find_all("attendance", {"user_id": 7, "session_id": 42})
        assert len(rows) == 1
        assert rows[0]["is_present"] is True
        assert rows[0]["join_time"] == T0

    def test_second_join_only_refreshes_join_time(self, recorder, store, clock):
        recorder.record_join(7, 42)
        clock.now = T0 + timedelta(minutes=20)

        outcome = recorder.record_join(7, 42)

        assert outcome.status is OutcomeStatus.REFRESHED
        rows = store.find_all("attendance", {"user_id": 7, "session_id": 42})
        assert len(rows) == 1
        assert rows[0]["is_present"] is True
        assert rows[0]["join_time"] == T0 + timedelta(minutes=20)

    def test_pairs_are_independent(self, recorder, store):
        recorder.record_join(7, 42)
        recorder.record_join(7, 43)
        recorder.record_join(8, 42)
        assert len(store.find_all("attendance", {})) == 3

    def test_store_failure_is_reported_not_raised(self, clock, caplog):
        outcome = AttendanceRecorder(BrokenStore(), clock).record_join(7, 42)

        assert outcome.status is OutcomeStatus.FAILED
        assert not outcome.ok
        assert isinstance(outcome.error, ConnectionError)
        assert outcome.to_dict() == {"status": "failed", "error": "store unreachable"}
        assert "Failed to record attendance" in caplog.text

    def test_lost_insert_race_falls_back_to_update(self, clock):
        store = RacingStore(unique={"attendance": ("user_id", "session_id")})
        store.insert("attendance", {"user_id": 7, "session_id": 42, "join_time": T0, "is_present": True})
        clock.now = T0 + timedelta(seconds=1)

        outcome = AttendanceRecorder(store, clock).record_join(7, 42)

        assert outcome.status is OutcomeStatus.REFRESHED
        assert len(store.tables["attendance"]) == 1
        assert store.tables["attendance"][0]["join_time"] == T0 + timedelta(seconds=1)


class TestRoleGate:
    def test_only_students_record(self):
        assert records_attendance(Role.STUDENT) is True
        assert records_attendance(Role.FACULTY) is False
        assert records_attendance("admin") is False

    def test_unknown_role_is_rejected(self):
        with pytest.raises(ValueError):
            records_attendance("guest")

    def test_faculty_join_is_skipped(self, recorder, store):
        outcome = recorder.record_for(Role.FACULTY, 3, 42)
        assert outcome.status is OutcomeStatus.SKIPPED
        assert store.find_all("attendance", {}) == []

    def test_student_join_is_recorded(self, recorder, store):
        assert recorder.record_for(Role.STUDENT, 7, 42).status is OutcomeStatus.CREATED


class TestMemoryRowStore:
    def test_unique_columns_reject_duplicates(self, store):
        store.insert("attendance", {"user_id": 1, "session_id": 1})
        with pytest.raises(DuplicateRow):
            store.insert("attendance", {"user_id": 1, "session_id": 1})

    def test_find_one_returns_copies(self, store):
        store.insert("attendance", {"user_id": 1, "session_id": 1, "is_present": True})
        row = store.find_one("attendance", {"user_id": 1})
        row["is_present"] = False
        assert store.find_one("attendance", {"user_id": 1})["is_present"] is True
