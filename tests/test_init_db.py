from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from app.studentms.models import Student
from scripts import init_db


def test_seed_demo_is_idempotent(tmp_path):
    url = f"sqlite:///{tmp_path/'seed.db'}"
    init_db.create_schema(database_url=url)

    assert init_db.seed_demo(database_url=url) == len(init_db.DEMO_STUDENTS)
    assert init_db.seed_demo(database_url=url) == 0

    engine = create_engine(url, future=True)
    with Session(engine) as s:
        rolls = sorted(r for (r,) in s.query(Student.roll_number).all())
    engine.dispose()
    assert rolls == sorted(row["roll_number"] for row in init_db.DEMO_STUDENTS)
