"""Semester and user entities"""
import re
from dataclasses import dataclass
from enum import Enum


ACADEMIC_YEAR_PATTERN = re.compile(r"^(\d{4})-(\d{4})$")


class UserRole(Enum):
    ADMIN = "ADMIN"
    DISPATCHER = "DISPATCHER"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


@dataclass(frozen=True)
class Semester:
    """Academic semester, e.g. number 1 of academic year ``2024-2025``"""

    id: int
    number: int
    academic_year: str
    is_active: bool = True

    def __post_init__(self):
        match = ACADEMIC_YEAR_PATTERN.match(str(self.academic_year))
        if match is None or int(match.group(2)) != int(match.group(1)) + 1:
            raise ValueError(
                f"Invalid academic year '{self.academic_year}' of semester {self.id}, expected e.g. 2024-2025"
            )

    @property
    def start_year(self) -> int:
        """Calendar year the academic year starts in"""
        return int(self.academic_year[:4])

    def __str__(self) -> str:
        return f"Semester {self.number} ({self.academic_year})"


@dataclass(frozen=True)
class User:
    id: int
    name: str
    role: UserRole

    @property
    def is_dispatcher(self) -> bool:
        return self.role == UserRole.DISPATCHER
