"""
Portal test fixtures: an app on in-memory SQLite with a settable clock.
"""
from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestConfig
from models import db
from models.row_store import DuplicateRow, RowNotFound
from models.session_model import ClassSession, Course, Enrollment, TeachingAssignment
from models.user_model import Role, User

START = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
END = datetime(2025, 1, 1, 11, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def set(self, now):
        self.now = now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(START - timedelta(minutes=5))


@pytest.fixture
def app(clock):
    overrides = {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}
    overrides["CLOCK"] = clock
    app = create_app(overrides)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(username, role, name=None):
    user = User(
        username=username,
        password=generate_password_hash("password123"),
        name=name or username.title(),
        role=role,
        roll_no="CT23-001" if role is Role.STUDENT else None,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(app):
    return _user


@pytest.fixture
def student(app):
    return _user("asha", Role.STUDENT, "Asha Student")


@pytest.fixture
def faculty(app):
    return _user("prof", Role.FACULTY, "Prof Faculty")


@pytest.fixture
def admin(app):
    return _user("root", Role.ADMIN, "Root Admin")


@pytest.fixture
def course(app, student, faculty):
    course = Course(code="CSE471", title="System Analysis and Design")
    db.session.add(course)
    db.session.commit()
    db.session.add(Enrollment(user_id=student.id, course_id=course.id))
    db.session.add(TeachingAssignment(user_id=faculty.id, course_id=course.id))
    db.session.commit()
    return course


@pytest.fixture
def class_session(course, faculty):
    cls = ClassSession(
        course_id=course.id,
        title="Introduction to System Analysis",
        start_time=START,
        end_time=END,
        meeting_link="https://meet.example.com/cse471",
        created_by=faculty.id,
    )
    db.session.add(cls)
    db.session.commit()
    return cls


@pytest.fixture
def login(client):
    def _login(username):
        resp = client.post("/login", json={"username": username, "password": "password123"})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}
    return _login


class MemoryRowStore:
    """In-memory stand-in for SQLAlchemyRowStore. `unique` maps a table to the columns that must be unique together."""

    def __init__(self, unique=None):
        self.tables = {}
        self.unique = dict(unique or {})
        self._next_id = 1

    @staticmethod
    def _matches(row, filter):
        return all(row.get(k) == v for k, v in filter.items())

    def _first(self, table, filter):
        for r in self.tables.get(table, []):
            if self._matches(r, filter):
                return r
        return None

    def find_one(self, table, filter):
        r = self._first(table, filter)
        return dict(r) if r is not None else None

    def find_all(self, table, filter):
        return [dict(r) for r in self.tables.get(table, []) if self._matches(r, filter)]

    def insert(self, table, row):
        keys = self.unique.get(table)
        if keys and self._first(table, {k: row.get(k) for k in keys}) is not None:
            raise DuplicateRow(f"{table}: duplicate {tuple(row.get(k) for k in keys)}")
        stored = dict(row)
        stored.setdefault("id", self._next_id)
        self._next_id += 1
        self.tables.setdefault(table, []).append(stored)
        return dict(stored)

    def update(self, table, filter, patch):
        r = self._first(table, filter)
        if r is None:
            raise RowNotFound(f"{table}: no row matching {filter!r}")
        r.update(patch)
        return dict(r)
