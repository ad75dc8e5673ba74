"""
Student records: list query construction, form validation, uniqueness checks
and store-error translation.

Handlers own the transaction: service functions add/flush/delete and the caller
commits (or rolls back) once per request.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.studentms.modules.students.errors import InvalidStudentId, StudentNotFound, UniquenessConflict
from app.studentms.modules.students.models import Student

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "All fields except GPA are required."
GPA_RANGE_MESSAGE = "GPA must be between 0 and 4."
GPA_NUMBER_MESSAGE = "GPA must be a number."
ROLL_NUMBER_MESSAGE = "Roll Number must be a whole number."
ROLL_NUMBER_RANGE_MESSAGE = "Roll Number is out of range."
ROLL_NUMBER_UNIQUE_MESSAGE = "Roll Number must be unique."
EMAIL_UNIQUE_MESSAGE = "Email must be unique."

GPA_MIN = 0.0
GPA_MAX = 4.0

# Signed 32-bit, the range of the roll_number INTEGER column.
ROLL_NUMBER_MIN = -(2**31)
ROLL_NUMBER_MAX = 2**31 - 1

SORT_FIELDS = {"name": Student.name, "gpa": Student.gpa}
DEFAULT_SORT = "name"

# Unique columns, in the order conflicts are reported.
UNIQUE_FIELDS = ("roll_number", "email")


# ---------- List query ----------
@dataclass(frozen=True)
class ListQuery:
    """Raw list-view parameters, echoed back to the template as given."""

    search: str = ""
    department: str = ""
    sort: str = DEFAULT_SORT
    order: str = "asc"

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ListQuery":
        return cls(
            search=(args.get("search") or "").strip(),
            department=(args.get("department") or "").strip(),
            sort=(args.get("sort") or DEFAULT_SORT).strip(),
            order=(args.get("order") or "asc").strip(),
        )

    @property
    def sort_field(self) -> str:
        return self.sort if self.sort in SORT_FIELDS else DEFAULT_SORT

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    def as_dict(self) -> dict[str, str]:
        return {"search": self.search, "department": self.department, "sort": self.sort, "order": self.order}


def build_student_query(s: "Session", lq: ListQuery) -> "Query[Student]":
    q = s.query(Student)

    if lq.search:
        q = q.filter(
            Student.name.icontains(lq.search, autoescape=True)
            | Student.department.icontains(lq.search, autoescape=True)
        )

    if lq.department:
        q = q.filter(Student.department == lq.department)

    # Missing GPAs sort lowest in either direction.
    col = SORT_FIELDS[lq.sort_field]
    ordering = col.desc().nullslast() if lq.descending else col.asc().nullsfirst()
    return q.order_by(ordering)


def list_students(s: "Session", lq: ListQuery) -> list[Student]:
    return build_student_query(s, lq).all()


def list_departments(s: "Session") -> list[str]:
    rows = s.query(Student.department).distinct().all()
    return sorted(r[0] for r in rows if r[0])


# ---------- Validation ----------
@dataclass(frozen=True)
class StudentPayload:
    """Create/update form input exactly as submitted."""

    name: str = ""
    roll_number: str = ""
    email: str = ""
    department: str = ""
    gpa: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "StudentPayload":
        return cls(
            name=form.get("name") or "",
            roll_number=form.get("rollNumber") or "",
            email=form.get("email") or "",
            department=form.get("department") or "",
            gpa=form.get("gpa") or "",
        )

    @classmethod
    def from_student(cls, student: Student) -> "StudentPayload":
        return cls(
            name=student.name,
            roll_number=str(student.roll_number),
            email=student.email,
            department=student.department,
            gpa="" if student.gpa is None else repr(student.gpa),
        )

    def as_form_data(self) -> dict[str, str]:
        """Field names match the HTML form so templates can redisplay input."""
        return {
            "name": self.name,
            "rollNumber": self.roll_number,
            "email": self.email,
            "department": self.department,
            "gpa": self.gpa,
        }


@dataclass(frozen=True)
class StudentInput:
    """Normalized, validated values ready to persist."""

    name: str
    roll_number: int
    email: str
    department: str
    gpa: float | None = None


def _parse_whole_number(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or not value.is_integer():
        return None
    return int(value)


def _parse_number(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def validate_student_payload(payload: StudentPayload) -> tuple[StudentInput | None, list[str]]:
    """Returns (normalized input, []) or (None, errors)."""
    errors: list[str] = []
    name = payload.name.strip()
    roll_raw = payload.roll_number.strip()
    email = payload.email.strip()
    department = payload.department.strip()
    gpa_raw = payload.gpa.strip()

    if not name or not roll_raw or not email or not department:
        errors.append(REQUIRED_FIELDS_MESSAGE)

    roll_number = None
    if roll_raw:
        roll_number = _parse_whole_number(roll_raw)
        if roll_number is None:
            errors.append(ROLL_NUMBER_MESSAGE)
        elif roll_number < ROLL_NUMBER_MIN or roll_number > ROLL_NUMBER_MAX:
            errors.append(ROLL_NUMBER_RANGE_MESSAGE)

    gpa = None
    if gpa_raw:
        gpa = _parse_number(gpa_raw)
        if gpa is None:
            errors.append(GPA_NUMBER_MESSAGE)
        elif gpa < GPA_MIN or gpa > GPA_MAX:
            errors.append(GPA_RANGE_MESSAGE)

    if errors:
        return None, errors
    return (
        StudentInput(name=name, roll_number=roll_number, email=email, department=department, gpa=gpa),
        [],
    )


# ---------- Lookup ----------
def parse_student_id(raw: str) -> str:
    try:
        return uuid.UUID((raw or "").strip()).hex
    except ValueError:
        raise InvalidStudentId(raw) from None


def get_student(s: "Session", raw_id: str) -> Student | None:
    """Raises InvalidStudentId for ids that cannot exist; None when well-formed but absent."""
    return s.get(Student, parse_student_id(raw_id))


# ---------- Uniqueness ----------
def find_conflicts(s: "Session", data: StudentInput, exclude_id: str | None = None) -> list[str]:
    conflicts: list[str] = []
    values = {"roll_number": data.roll_number, "email": data.email}
    for field in UNIQUE_FIELDS:
        q = s.query(Student.id).filter(getattr(Student, field) == values[field])
        if exclude_id is not None:
            q = q.filter(Student.id != exclude_id)
        if q.first() is not None:
            conflicts.append(field)
    return conflicts


def ensure_unique(s: "Session", data: StudentInput, exclude_id: str | None = None) -> None:
    conflicts = find_conflicts(s, data, exclude_id=exclude_id)
    if conflicts:
        logger.warning("student uniqueness conflict fields=%s exclude_id=%s", conflicts, exclude_id)
        raise UniquenessConflict(conflicts)


def unique_fields_from_integrity_error(exc: IntegrityError) -> list[str]:
    """
    Pull the offending unique columns out of a driver error.
    SQLite: "UNIQUE constraint failed: students.email"
    Postgres: 'duplicate key value violates unique constraint "uq_students_email"'
    """
    msg = str(getattr(exc, "orig", None) or exc).lower()
    if "unique" not in msg and "duplicate" not in msg:
        return []
    return [f for f in UNIQUE_FIELDS if f in msg]


def translate_store_error(exc: Exception) -> str:
    """User-facing message for a failed create/update."""
    fields: tuple[str, ...] | list[str] = ()
    if isinstance(exc, UniquenessConflict):
        fields = exc.fields
    elif isinstance(exc, IntegrityError):
        fields = unique_fields_from_integrity_error(exc)

    message = None
    if "roll_number" in fields:
        message = ROLL_NUMBER_UNIQUE_MESSAGE
    # Email wins when both collide.
    if "email" in fields:
        message = EMAIL_UNIQUE_MESSAGE
    if message:
        return message

    if isinstance(exc, SQLAlchemyError) and getattr(exc, "orig", None) is not None:
        return str(exc.orig)
    return str(exc)


# ---------- Writes ----------
def create_student(s: "Session", data: StudentInput) -> Student:
    ensure_unique(s, data)
    student = Student(
        name=data.name,
        roll_number=data.roll_number,
        email=data.email,
        department=data.department,
        gpa=data.gpa,
    )
    s.add(student)
    s.flush()
    logger.info("student.create id=%s roll_number=%s", student.id, student.roll_number)
    return student


def update_student(s: "Session", raw_id: str, data: StudentInput) -> Student:
    """Full replacement of the editable fields; id and created_at stay as they are."""
    student = get_student(s, raw_id)
    if student is None:
        raise StudentNotFound(raw_id)
    ensure_unique(s, data, exclude_id=student.id)

    student.name = data.name
    student.roll_number = data.roll_number
    student.email = data.email
    student.department = data.department
    student.gpa = data.gpa
    s.flush()
    logger.info("student.update id=%s", student.id)
    return student


def delete_student(s: "Session", raw_id: str) -> bool:
    """Returns False when nothing matched; a missing row is not an error."""
    student = get_student(s, raw_id)
    if student is None:
        logger.info("student.delete id=%s (no such row)", raw_id)
        return False
    s.delete(student)
    s.flush()
    logger.info("student.delete id=%s", student.id)
    return True
