"""Classroom entities"""
from dataclasses import dataclass

from ..value_objects.lesson_type import ClassroomType


@dataclass(frozen=True)
class Building:
    id: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Classroom:
    """A room of a building (read-only for the engine)"""

    id: int
    building: Building
    number: str
    capacity: int
    type: ClassroomType = ClassroomType.STANDARD

    def __str__(self) -> str:
        return f"{self.building.name}-{self.number}"

    def fits(self, student_count: int) -> bool:
        """Whether the room seats the given number of students"""
        return self.capacity >= student_count
