"""SQLModel data models.

This module defines the enrollment schema using SQLModel: departments
own courses, and students are linked to courses through enrollments.
An enrollment's course link is nullable, so anything reading
`enrollment.course` has to expect `None`.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import date
from typing import List

from .utils.accumulate import total_credits


class Department(SQLModel, table=True):
    """An academic department offering courses."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    budget: Optional[float] = None
    courses: List['Course'] = Relationship(back_populates='department')


class Course(SQLModel, table=True):
    """A course worth `credits` towards a student's total.

    `credits` is a positive credit weight; write paths reject values
    outside 1..10.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    credits: int
    department_id: Optional[int] = Field(default=None, foreign_key='department.id')
    department: Optional[Department] = Relationship(back_populates='courses')
    enrollments: List['Enrollment'] = Relationship(back_populates='course')


class Student(SQLModel, table=True):
    """A student and the enrollments they own.

    Fields:
    - `first_name` / `last_name`: as imported
    - `enrollment_date`: date the student joined
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = Field(index=True)
    enrollment_date: date
    enrollments: List['Enrollment'] = Relationship(back_populates='student')

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def total_credits(self) -> int:
        """Sum of course credits over this student's enrollments."""
        return total_credits(self.enrollments)


class Enrollment(SQLModel, table=True):
    """Join row between a `Student` and a `Course` with an optional grade."""
    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key='student.id', index=True)
    course_id: Optional[int] = Field(default=None, foreign_key='course.id')
    grade: Optional[str] = Field(default=None, max_length=1)
    student: Optional[Student] = Relationship(back_populates='enrollments')
    course: Optional[Course] = Relationship(back_populates='enrollments')
