"""Folding helpers for totals derived from related records.

`fold` is the one place an accumulator is seeded and combined into;
callers supply only the combining step. `course_credits` holds the
rule for enrollments whose course is absent: they count as zero.
"""

from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")
A = TypeVar("A")


def fold(items: Optional[Iterable[T]], initial: A, step: Callable[[A, T], A]) -> A:
    """Combine `items` left to right into `initial` using `step`.

    `items` may be `None`, which behaves like an empty sequence and
    returns `initial` unchanged.
    """
    acc = initial
    if items is None:
        return acc
    for item in items:
        acc = step(acc, item)
    return acc


def course_credits(enrollment) -> int:
    """Credits an enrollment contributes; 0 when its course or credits are missing."""
    course = getattr(enrollment, "course", None)
    if course is None:
        return 0
    credits = getattr(course, "credits", None)
    return credits or 0


def total_credits(enrollments) -> int:
    """Sum `course_credits` over `enrollments` (None or empty gives 0)."""
    return fold(enrollments, 0, lambda acc, e: acc + course_credits(e))
