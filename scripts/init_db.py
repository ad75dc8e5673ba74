"""
Create the schema and/or seed demo students.

Usage:
  python scripts/init_db.py --create-schema
  python scripts/init_db.py --demo

Seeding is idempotent: rows whose roll number already exists are skipped.
Production deployments should run `alembic upgrade head` (scripts/release.py)
instead of --create-schema.
"""

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.studentms.db import create_schema as _create_tables  # noqa: E402
from app.studentms.models import Student  # noqa: E402

DEMO_STUDENTS = [
    {"name": "Ann Lee", "roll_number": 101, "email": "ann.lee@example.edu", "department": "Computer Science", "gpa": 3.9},
    {"name": "Bilal Khan", "roll_number": 102, "email": "bilal.khan@example.edu", "department": "Engineering", "gpa": 3.4},
    {"name": "Chen Wei", "roll_number": 103, "email": "chen.wei@example.edu", "department": "Mathematics", "gpa": 3.7},
    {"name": "Dana Ortiz", "roll_number": 104, "email": "dana.ortiz@example.edu", "department": "Engineering", "gpa": None},
    {"name": "Eng Sok", "roll_number": 105, "email": "eng.sok@example.edu", "department": "Physics", "gpa": 2.8},
]


def _database_url(database_url: str | None = None) -> str:
    return (database_url or os.environ.get("DATABASE_URL") or "sqlite:///students.db").strip()


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


def create_schema(*, database_url: str | None = None) -> None:
    engine = create_engine(_database_url(database_url), future=True)
    try:
        _create_tables(engine)
    finally:
        engine.dispose()


def seed_demo(*, database_url: str | None = None) -> int:
    """Insert demo students that are not present yet. Returns the number inserted."""
    added = 0
    with _session_scope(_database_url(database_url)) as s:
        for row in DEMO_STUDENTS:
            exists = s.query(Student.id).filter(
                (Student.roll_number == row["roll_number"]) | (Student.email == row["email"])
            ).first()
            if exists:
                continue
            s.add(Student(**row))
            added += 1
    return added


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialise the student records database.")
    parser.add_argument("--create-schema", action="store_true", help="create tables directly (bypasses Alembic)")
    parser.add_argument("--demo", action="store_true", help="seed demo students")
    args = parser.parse_args()

    if not args.create_schema and not args.demo:
        parser.error("nothing to do; pass --create-schema and/or --demo")

    if args.create_schema:
        create_schema()
        print("Schema created.")
    if args.demo:
        n = seed_demo()
        print(f"Seeded {n} demo student(s).")


if __name__ == "__main__":
    main()
