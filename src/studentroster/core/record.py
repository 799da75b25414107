"""
Student Record Model

The persisted entity and the field cleaning applied before every write.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict

from .errors import ValidationError


class StudentRecord(BaseModel):
    """
    A single row of the roster.

    Records are immutable snapshots: the store hands out fresh instances on
    every read, so two records compare equal when id, name and course match.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    course: str

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match against name or course."""
        needle = term.casefold()
        return needle in self.name.casefold() or needle in self.course.casefold()


def clean_fields(name: str, course: str) -> Tuple[str, str]:
    """
    Trim and validate the editable fields of a record.

    Args:
        name: Student name as typed by the user
        course: Course name as typed by the user

    Returns:
        The trimmed (name, course) pair

    Raises:
        ValidationError: If either field is empty after trimming
    """
    name = (name or "").strip()
    course = (course or "").strip()
    if not name:
        raise ValidationError("name", "Name must not be empty")
    if not course:
        raise ValidationError("course", "Course must not be empty")
    return name, course
