from datetime import date
from pathlib import Path
import os
import pytest

# Point the app at a throwaway SQLite file before anything imports the package.
TEST_DB = Path(__file__).resolve().parents[1] / "test_app.db"
if TEST_DB.exists():
    TEST_DB.unlink()
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["ENV"] = "dev"
for var in ("DB_DRIVER", "DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "DB_CONFIG_STRICT"):
    os.environ.pop(var, None)

from sqlmodel import SQLModel, Session  # noqa: E402
from enrollment_app.database import engine, create_db_and_tables  # noqa: E402
from enrollment_app import models  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Ensure a fresh SQLite database for tests."""
    create_db_and_tables()
    yield
    engine.dispose()
    try:
        TEST_DB.unlink()
    except OSError:
        pass


@pytest.fixture(autouse=True)
def clean_tables():
    """Empty every table after each test so tests don't see each other's rows."""
    yield
    with engine.begin() as conn:
        for table in reversed(SQLModel.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def student_with_courses(session):
    """A student enrolled in three 3-credit courses plus one enrollment with no course."""
    dept = models.Department(name="Engineering")
    session.add(dept)
    session.commit()
    session.refresh(dept)
    courses = [models.Course(title=t, credits=3, department_id=dept.id) for t in ("Chemistry", "Physics", "Biology")]
    for c in courses:
        session.add(c)
    student = models.Student(first_name="Carson", last_name="Alexander", enrollment_date=date(2019, 9, 1))
    session.add(student)
    session.commit()
    for c in courses:
        session.refresh(c)
        session.add(models.Enrollment(student_id=student.id, course_id=c.id, grade="A"))
    session.add(models.Enrollment(student_id=student.id, course_id=None))
    session.commit()
    session.refresh(student)
    return student
