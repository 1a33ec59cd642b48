"""Student group entities"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..value_objects.lesson_type import LessonType
from ..value_objects.time_slot import Shift


_YEAR_PATTERN = re.compile(r'^\d{2}(\d{2})?$')


@dataclass(frozen=True)
class Subgroup:
    """Partition of a group for practical or lab sessions"""

    group_id: int
    number: int
    type: LessonType
    student_count: int = 0

    def __post_init__(self):
        if self.number < 1:
            raise ValueError(f"Subgroup numbers are 1-based: {self.number}")


@dataclass(frozen=True)
class Group:
    """Student group

    The code carries the enrollment year in its second dash-separated part,
    e.g. ``ИС-21-1к`` was enrolled in 2021.
    """

    id: int
    code: str
    student_count: int
    enrollment_year: Optional[int] = None
    shift: Optional[Shift] = None
    lecture_subgroups: int = 1
    practical_subgroups: int = 1
    lab_subgroups: int = 1
    subgroups: List[Subgroup] = field(default_factory=list, compare=False, hash=False)

    def __str__(self) -> str:
        return self.code

    @property
    def resolved_enrollment_year(self) -> Optional[int]:
        """Enrollment year from the record, or decoded from the group code"""
        if self.enrollment_year is not None:
            return self.enrollment_year
        parts = self.code.split('-')
        if len(parts) < 2:
            return None
        year_part = parts[1].strip()
        if not _YEAR_PATTERN.match(year_part):
            return None
        year = int(year_part)
        return 2000 + year if year < 100 else year

    def course_number(self, reference_year: int) -> Optional[int]:
        """Course of study in the academic year starting in ``reference_year``"""
        enrollment_year = self.resolved_enrollment_year
        if enrollment_year is None:
            return None
        return reference_year - enrollment_year + 1

    def required_shift(self, reference_year: int) -> Optional[Shift]:
        """Shift the group must study in, or None when any shift is allowed

        A shift declared on the group wins. Otherwise courses 1 and 3 study in
        the first shift, courses 2 and 4 in the second; other courses
        (master's, doctoral) are unconstrained.
        """
        if self.shift is not None:
            return self.shift
        course = self.course_number(reference_year)
        if course in (1, 3):
            return Shift.MORNING
        if course in (2, 4):
            return Shift.AFTERNOON
        return None

    def subgroup_count(self, lesson_type: LessonType) -> int:
        """Number of subgroups used for the given session kind (at least 1)"""
        if lesson_type == LessonType.PRACTICE:
            count = self.practical_subgroups
        elif lesson_type == LessonType.LAB:
            count = self.lab_subgroups
        else:
            count = self.lecture_subgroups
        return count if count and count > 0 else 1
