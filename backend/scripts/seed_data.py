"""Seed a development database with departments, courses, students and enrollments.

Usage: python scripts/seed_data.py

Safe to run repeatedly: existing departments, courses, students and
enrollments are looked up before anything is created.
"""
import sys
import pathlib
from datetime import date
# Ensure `backend/` is on sys.path so package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from enrollment_app.database import engine, create_db_and_tables
from enrollment_app import models, repositories

DEPARTMENTS = [("English", 350000.0), ("Mathematics", 100000.0), ("Engineering", 350000.0), ("Economics", 100000.0)]

COURSES = [
    # title, credits, department
    ("Chemistry", 3, "Engineering"),
    ("Microeconomics", 3, "Economics"),
    ("Macroeconomics", 3, "Economics"),
    ("Calculus", 4, "Mathematics"),
    ("Trigonometry", 4, "Mathematics"),
    ("Composition", 3, "English"),
    ("Literature", 4, "English"),
]

STUDENTS = [
    ("Carson", "Alexander", date(2019, 9, 1)),
    ("Meredith", "Alonso", date(2017, 9, 1)),
    ("Arturo", "Anand", date(2018, 9, 1)),
    ("Gytis", "Barzdukas", date(2017, 9, 1)),
    ("Yan", "Li", date(2017, 9, 1)),
    ("Peggy", "Justice", date(2016, 9, 1)),
    ("Laura", "Norman", date(2018, 9, 1)),
    ("Nino", "Olivetto", date(2019, 9, 1)),
]

ENROLLMENTS = [
    # student last name, course title (None = not yet assigned), grade
    ("Alexander", "Chemistry", "A"),
    ("Alexander", "Microeconomics", "C"),
    ("Alexander", "Macroeconomics", "B"),
    ("Alonso", "Calculus", "B"),
    ("Alonso", "Trigonometry", "B"),
    ("Alonso", "Composition", "B"),
    ("Anand", "Chemistry", None),
    ("Anand", "Microeconomics", "B"),
    ("Barzdukas", "Chemistry", "B"),
    ("Li", "Composition", "B"),
    ("Justice", "Literature", "B"),
    ("Norman", None, None),
]


def main():
    """Create tables if needed and insert the demo data set."""
    create_db_and_tables()
    with Session(engine) as session:
        dept_repo = repositories.DepartmentRepository(session)
        course_repo = repositories.CourseRepository(session)
        student_repo = repositories.StudentRepository(session)
        enroll_repo = repositories.EnrollmentRepository(session)

        depts = {name: dept_repo.get_or_create(name, budget) for name, budget in DEPARTMENTS}
        courses = {}
        for title, credits, dept in COURSES:
            course = course_repo.get_by_title(title)
            if course is None:
                course = course_repo.create(models.Course(title=title, credits=credits, department_id=depts[dept].id))
            courses[title] = course

        students = {}
        for first, last, enrolled in STUDENTS:
            found = student_repo.search(last, limit=10)
            match = next((s for s in found if s.first_name == first and s.last_name == last), None)
            if match is None:
                match = student_repo.create(models.Student(first_name=first, last_name=last, enrollment_date=enrolled))
            students[last] = match

        created = 0
        for last, title, grade in ENROLLMENTS:
            student_id = students[last].id
            course_id = courses[title].id if title else None
            if enroll_repo.exists(student_id, course_id):
                continue
            enroll_repo.enroll(student_id, course_id, grade)
            created += 1
        print(f'Seeded {len(depts)} departments, {len(courses)} courses, {len(students)} students, {created} new enrollments')


if __name__ == '__main__':
    main()
