"""
Row-oriented access to the tables the attendance logic touches.

Rows go in and come out as plain dicts so the recorder does not care whether
it is talking to the database or to the in-memory store used in tests.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class RowStoreError(Exception):
    pass


class DuplicateRow(RowStoreError):
    pass


class RowNotFound(RowStoreError):
    pass


class SQLAlchemyRowStore:
    def __init__(self, session, tables):
        self.session = session
        self.tables = dict(tables)

    def _model(self, table):
        try:
            return self.tables[table]
        except KeyError:
            raise RowStoreError(f"unknown table {table!r}") from None

    @staticmethod
    def _as_row(obj):
        return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}

    def find_one(self, table, filter):
        obj = self.session.query(self._model(table)).filter_by(**filter).first()
        return self._as_row(obj) if obj is not None else None

    def find_all(self, table, filter):
        return [self._as_row(o) for o in self.session.query(self._model(table)).filter_by(**filter).all()]

    def insert(self, table, row):
        obj = self._model(table)(**row)
        self.session.add(obj)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateRow(f"{table}: {e.orig}") from e
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return self._as_row(obj)

    def update(self, table, filter, patch):
        obj = self.session.query(self._model(table)).filter_by(**filter).first()
        if obj is None:
            raise RowNotFound(f"{table}: no row matching {filter!r}")
        for key, value in patch.items():
            setattr(obj, key, value)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return self._as_row(obj)
