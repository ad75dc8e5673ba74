from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.studentms.models import Base


def new_student_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="ck_students_name_not_empty"),
        CheckConstraint("length(trim(department)) > 0", name="ck_students_department_not_empty"),
        CheckConstraint("gpa IS NULL OR (gpa >= 0 AND gpa <= 4)", name="ck_students_gpa_range"),
        UniqueConstraint("roll_number", name="uq_students_roll_number"),
        UniqueConstraint("email", name="uq_students_email"),
        Index("idx_students_name", "name"),
        Index("idx_students_department", "department"),
    )

    # Opaque 32-char hex id; never reassigned.
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_student_id)

    # Required
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    roll_number: Mapped[int] = mapped_column(Integer, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optional, 0..4
    gpa: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Student {self.id} roll={self.roll_number} email={self.email!r}>"
