"""Lesson and classroom kinds"""
from enum import Enum
from typing import Dict, FrozenSet


class LessonType(Enum):
    """Session kind"""
    LECTURE = "LECTURE"
    PRACTICE = "PRACTICE"
    LAB = "LAB"
    PHYSICAL_EDUCATION = "PHYSICAL_EDUCATION"


class ClassroomType(Enum):
    """Room kind"""
    LECTURE_HALL = "LECTURE_HALL"
    COMPUTER_LAB = "COMPUTER_LAB"
    GYM = "GYM"
    STANDARD = "STANDARD"


ALLOWED_ROOM_TYPES: Dict[LessonType, FrozenSet[ClassroomType]] = {
    LessonType.LECTURE: frozenset({ClassroomType.LECTURE_HALL, ClassroomType.STANDARD}),
    LessonType.PRACTICE: frozenset({ClassroomType.COMPUTER_LAB, ClassroomType.STANDARD}),
    LessonType.LAB: frozenset({ClassroomType.COMPUTER_LAB, ClassroomType.STANDARD}),
    LessonType.PHYSICAL_EDUCATION: frozenset({ClassroomType.GYM}),
}


def allowed_room_types(lesson_type: LessonType) -> FrozenSet[ClassroomType]:
    """Room kinds a session of the given kind may use"""
    return ALLOWED_ROOM_TYPES.get(lesson_type, frozenset({ClassroomType.STANDARD}))


def is_room_type_allowed(lesson_type: LessonType, room_type: ClassroomType) -> bool:
    return room_type in allowed_room_types(lesson_type)
