"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (students,
courses, departments, enrollments). Repositories return SQLModel
objects and perform commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from sqlalchemy import or_
from sqlalchemy.orm import selectinload
from . import models


class StudentRepository:
    """Queries and inserts for `Student` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, student: models.Student) -> models.Student:
        """Persist a new student and return the managed instance."""
        self.session.add(student)
        self.session.commit()
        self.session.refresh(student)
        return student

    def get_with_enrollments(self, student_id: int) -> Optional[models.Student]:
        """Fetch a student with enrollments and their courses loaded in one go."""
        stmt = (
            select(models.Student)
            .where(models.Student.id == student_id)
            .options(selectinload(models.Student.enrollments).selectinload(models.Enrollment.course))
        )
        return self.session.exec(stmt).first()

    def search(self, term: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[models.Student]:
        """Return students whose first or last name contains `term`.

        Results are ordered by last name then first name. An empty term
        lists everyone.
        """
        stmt = select(models.Student).options(
            selectinload(models.Student.enrollments).selectinload(models.Enrollment.course)
        )
        if term:
            like = f"%{term}%"
            stmt = stmt.where(or_(models.Student.first_name.ilike(like), models.Student.last_name.ilike(like)))
        stmt = stmt.order_by(models.Student.last_name, models.Student.first_name).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def exists(self, first_name: str, last_name: str, enrollment_date) -> bool:
        """Return True if an identical student row is already stored."""
        stmt = select(models.Student.id).where(
            models.Student.first_name == first_name,
            models.Student.last_name == last_name,
            models.Student.enrollment_date == enrollment_date,
        )
        return self.session.exec(stmt).first() is not None


class CourseRepository:
    """Queries for `Course` records."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, course_id: int) -> Optional[models.Course]:
        """Fetch a course by id."""
        return self.session.get(models.Course, course_id)

    def get_by_title(self, title: str) -> Optional[models.Course]:
        stmt = select(models.Course).where(models.Course.title == title)
        return self.session.exec(stmt).first()

    def create(self, course: models.Course) -> models.Course:
        if not 1 <= course.credits <= 10:
            raise ValueError("credits must be between 1 and 10")
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        return course


class DepartmentRepository:
    """Get-or-create helpers for `Department` rows."""
    def __init__(self, session: Session):
        self.session = session

    def get_or_create(self, name: str, budget: Optional[float] = None) -> models.Department:
        existing = self.session.exec(select(models.Department).where(models.Department.name == name)).first()
        if existing:
            return existing
        dept = models.Department(name=name, budget=budget)
        self.session.add(dept)
        self.session.commit()
        self.session.refresh(dept)
        return dept


class EnrollmentRepository:
    """Persist `Enrollment` join rows."""
    def __init__(self, session: Session):
        self.session = session

    def enroll(self, student_id: int, course_id: Optional[int], grade: Optional[str] = None) -> models.Enrollment:
        """Enroll a student; `course_id` may be `None` for an unassigned enrollment."""
        enrollment = models.Enrollment(student_id=student_id, course_id=course_id, grade=grade)
        self.session.add(enrollment)
        self.session.commit()
        self.session.refresh(enrollment)
        return enrollment

    def exists(self, student_id: int, course_id: Optional[int]) -> bool:
        stmt = select(models.Enrollment.id).where(
            models.Enrollment.student_id == student_id,
            models.Enrollment.course_id == course_id,
        )
        return self.session.exec(stmt).first() is not None
