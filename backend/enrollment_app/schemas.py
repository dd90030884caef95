"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests.
"""

from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class StudentIn(BaseModel):
    """One student row accepted for bulk insertion."""
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    enrollment_date: date

    @field_validator('first_name', 'last_name')
    @classmethod
    def _no_control_chars(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        if any(ord(ch) < 32 for ch in v):
            raise ValueError('must not contain control characters')
        return v


class EnrollmentOut(BaseModel):
    """An enrollment as listed inside a student summary.

    `course_id`, `course_title` and `credits` are `None` when the
    enrollment has no course attached.
    """
    id: int
    course_id: Optional[int] = None
    course_title: Optional[str] = None
    credits: Optional[int] = None
    grade: Optional[str] = None


class StudentSummaryOut(BaseModel):
    """Student projection including derived `total_credits`."""
    id: int
    first_name: str
    last_name: str
    full_name: str
    enrollment_date: date
    total_credits: int
    enrollments: List[EnrollmentOut] = []


class CourseOut(BaseModel):
    id: int
    title: str
    credits: int
    department: Optional[str] = None


class ImportResultOut(BaseModel):
    """Summary returned by the student upload endpoint."""
    inserted: int
    skipped: int
    errors: List[dict] = []
