"""Business logic services used by HTTP controllers and scripts.

This module holds small service classes that coordinate repositories,
parsers and the credit/payload folds. Services translate database
driver failures into the typed errors in `errors`, so callers can tell
"store unreachable" apart from "not found" and "nothing to insert".
"""

import json
import logging
import re
from contextlib import contextmanager
from typing import List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlmodel import Session

from . import models, repositories
from .errors import (
    CourseNotFoundError,
    DataStoreError,
    EmptyPayloadError,
    InvalidIdentifierError,
    InvalidPayloadError,
    StoreUnavailableError,
    StudentNotFoundError,
)
from .schemas import StudentIn
from .utils.accumulate import course_credits
from .utils.parsers import parse_file_to_students
from .utils.payload import PayloadError, build_insert_payload, split_payload

logger = logging.getLogger("enrollment.services")

STUDENT_TABLE = models.Student.__tablename__
STUDENT_COLUMNS = ("first_name", "last_name", "enrollment_date")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@contextmanager
def store_errors(action: str):
    """Map SQLAlchemy driver errors raised inside the block to app errors."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.error("store_unavailable %s", json.dumps({"action": action, "error": str(e.orig)}))
        raise StoreUnavailableError(f"database unavailable while trying to {action}") from e
    except DBAPIError as e:
        logger.error("store_error %s", json.dumps({"action": action, "error": str(e.orig)}))
        raise DataStoreError(f"database rejected {action}: {e.orig}") from e


def _check_identifier(name: str) -> str:
    if not name or not _IDENTIFIER.match(name):
        raise InvalidIdentifierError(f"invalid SQL identifier: {name!r}")
    return name


def build_insert_statement(payload: str, table: str = STUDENT_TABLE, columns: Sequence[str] = STUDENT_COLUMNS) -> str:
    """Wrap a VALUES payload into a complete INSERT statement.

    The payload is read back before use: every tuple must hold exactly
    one quoted string, number or NULL per column, so an unbalanced quote
    or an embedded expression raises `InvalidPayloadError`.
    """
    if not payload:
        raise EmptyPayloadError("nothing to insert")
    cols = ", ".join(_check_identifier(c) for c in columns)
    try:
        tuples = split_payload(payload)
    except PayloadError as e:
        raise InvalidPayloadError(f"invalid payload: {e}") from e
    for idx, fields in enumerate(tuples):
        if len(fields) != len(columns):
            raise InvalidPayloadError(f"tuple {idx} has {len(fields)} values, expected {len(columns)}")
    return f"INSERT INTO {_check_identifier(table)} ({cols}) VALUES {payload}"


def _summarize(student: models.Student, include_enrollments: bool = True) -> dict:
    out = {
        'id': student.id,
        'first_name': student.first_name,
        'last_name': student.last_name,
        'full_name': student.full_name,
        'enrollment_date': student.enrollment_date,
        'total_credits': student.total_credits,
    }
    if include_enrollments:
        out['enrollments'] = [
            {
                'id': e.id,
                'course_id': e.course_id,
                'course_title': e.course.title if e.course is not None else None,
                'credits': course_credits(e) if e.course is not None else None,
                'grade': e.grade,
            }
            for e in student.enrollments
        ]
    return out


class StudentService:
    """Read-side projections of students and their credit totals."""
    def __init__(self, session: Session):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)

    def get_summary(self, student_id: int) -> dict:
        """Return a student's projection including `total_credits`.

        Raises `StudentNotFoundError` for an unknown id and
        `StoreUnavailableError` when the database cannot be reached.
        """
        with store_errors("load student"):
            student = self.student_repo.get_with_enrollments(student_id)
            if student is None:
                raise StudentNotFoundError(f"student {student_id} not found")
            return _summarize(student)

    def search(self, term: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[dict]:
        """List students matching `term`, each with its credit total."""
        with store_errors("search students"):
            students = self.student_repo.search(term, limit=limit, offset=offset)
            return [_summarize(s, include_enrollments=False) for s in students]


class CourseService:
    """Course lookups."""
    def __init__(self, session: Session):
        self.session = session
        self.course_repo = repositories.CourseRepository(session)

    def get(self, course_id: int) -> dict:
        with store_errors("load course"):
            course = self.course_repo.get(course_id)
            if course is None:
                raise CourseNotFoundError(f"course {course_id} not found")
            return {
                'id': course.id,
                'title': course.title,
                'credits': course.credits,
                'department': course.department.name if course.department else None,
            }


class BulkInsertService:
    """Turn uploaded student rows into one multi-row INSERT."""
    def __init__(self, session: Session):
        self.session = session
        self.student_repo = repositories.StudentRepository(session)

    def insert_payload(self, payload: str, table: str = STUDENT_TABLE, columns: Sequence[str] = STUDENT_COLUMNS) -> int:
        """Execute a single INSERT for `payload` and return the affected row count.

        An empty payload raises `EmptyPayloadError` without touching the
        database. The statement is not retried.
        """
        sql = build_insert_statement(payload, table, columns)
        with store_errors(f"insert into {table}"):
            try:
                result = self.session.connection().exec_driver_sql(sql)
                rowcount = result.rowcount
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        logger.info("bulk_insert %s", json.dumps({"table": table, "rows": rowcount}))
        return rowcount

    def prepare(self, file_bytes: bytes, filename: str, deduplicate: bool = False) -> dict:
        """Parse and validate an upload and build its payload.

        Returns a dict with `payload`, `rows` (valid rows in the payload),
        `skipped` and per-row `errors`. Raises `ValueError` when the file
        cannot be parsed at all.
        """
        parsed = parse_file_to_students(file_bytes, filename)
        valid: List[StudentIn] = []
        errors = []
        skipped = 0
        for idx, row in enumerate(parsed):
            try:
                student = StudentIn(**row)
            except ValidationError as e:
                errors.append({'index': idx, 'error': _first_error(e), 'item': _jsonable(row)})
                continue
            if deduplicate:
                with store_errors("check existing students"):
                    if self.student_repo.exists(student.first_name, student.last_name, student.enrollment_date):
                        skipped += 1
                        continue
            valid.append(student)
        payload = build_insert_payload(
            ([s.first_name, s.last_name, s.enrollment_date] for s in valid),
            STUDENT_COLUMNS,
        )
        return {'payload': payload, 'rows': len(valid), 'parsed': len(parsed), 'skipped': skipped, 'errors': errors}

    def upload_csv(self, file_bytes: bytes, filename: str, deduplicate: bool = False) -> dict:
        """Parse `filename` contents and insert every valid row in one statement.

        Returns `{inserted, skipped, errors}`. When no valid rows remain no
        statement is issued and `inserted` is 0.
        """
        prepared = self.prepare(file_bytes, filename, deduplicate=deduplicate)
        inserted = 0
        if prepared['payload']:
            inserted = self.insert_payload(prepared['payload'])
        else:
            logger.info("bulk_insert_skipped %s", json.dumps({"file": filename, "reason": "nothing to insert"}))
        return {'inserted': inserted, 'skipped': prepared['skipped'], 'errors': prepared['errors']}


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid row")


def _jsonable(row: dict) -> dict:
    return {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in row.items()}
