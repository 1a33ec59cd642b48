"""Hard-rule checks of single lesson placements"""
import pytest

from timetable_engine.domain.entities.group import Group
from timetable_engine.domain.entities.teaching_load import TeachingLoad
from timetable_engine.domain.services.conflict_detector import ConflictDetector
from timetable_engine.domain.value_objects.conflict import ConflictType
from timetable_engine.domain.value_objects.lesson_type import ClassroomType, LessonType, is_room_type_allowed
from timetable_engine.domain.value_objects.time_slot import DayOfWeek
from tests.conftest import (
    COMPUTER_LAB,
    FIRST_COURSE_GROUP_ID,
    LECTURE_HALL,
    PETROV,
    PROGRAMMING_LOAD,
    ROOM_101,
    SIDOROVA,
)


MASTERS_GROUP_ID = 3
LARGE_GROUP_ID = 4
PETROV_MASTERS_LOAD = 3
SIDOROVA_FIRST_COURSE_LOAD = 4
LARGE_GROUP_LOAD = 5


@pytest.fixture
def detector(repository):
    repository.add_all([
        # no year in the code, so no shift rule applies
        Group(MASTERS_GROUP_ID, "МАГ-1", 15),
        Group(LARGE_GROUP_ID, "ИС-24-2к", 35),
        TeachingLoad(PETROV_MASTERS_LOAD, 1, 2, PETROV, MASTERS_GROUP_ID, hours_lecture=3),
        TeachingLoad(SIDOROVA_FIRST_COURSE_LOAD, 1, 2, SIDOROVA, FIRST_COURSE_GROUP_ID,
                     hours_practical=3),
        TeachingLoad(LARGE_GROUP_LOAD, 1, 2, SIDOROVA, LARGE_GROUP_ID, hours_lecture=3),
    ])
    return ConflictDetector(repository)


def conflict_types(conflicts):
    return {conflict.type for conflict in conflicts}


class TestDetectConflicts:

    def test_feasible_placement(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(persist=False)
        assert detector.detect_conflicts(candidate, schedule_id) == []
        assert detector.is_feasible(candidate, schedule_id)

    def test_teacher_conflict(self, detector, make_lesson, schedule_id):
        existing = make_lesson(PROGRAMMING_LOAD, classroom_id=LECTURE_HALL)
        candidate = make_lesson(PETROV_MASTERS_LOAD, classroom_id=ROOM_101, persist=False)

        conflicts = detector.detect_conflicts(candidate, schedule_id)

        assert conflict_types(conflicts) == {ConflictType.TEACHER_CONFLICT}
        assert conflicts[0].conflicting_lesson_id == existing.id
        assert conflicts[0].is_critical

    def test_room_conflict(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=LECTURE_HALL)
        candidate = make_lesson(LARGE_GROUP_LOAD, classroom_id=LECTURE_HALL, persist=False)

        assert conflict_types(detector.detect_conflicts(candidate, schedule_id)) == {
            ConflictType.ROOM_CONFLICT
        }

    def test_other_slot_does_not_conflict(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.MONDAY)
        candidate = make_lesson(PETROV_MASTERS_LOAD, day=DayOfWeek.TUESDAY, persist=False)
        assert detector.detect_conflicts(candidate, schedule_id) == []

    def test_capacity_insufficient(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(LARGE_GROUP_LOAD, classroom_id=ROOM_101, persist=False)

        conflicts = detector.detect_conflicts(candidate, schedule_id)

        assert conflict_types(conflicts) == {ConflictType.CAPACITY_INSUFFICIENT}
        assert conflicts[0].details['classroom_capacity'] == 30
        assert conflicts[0].details['required_capacity'] == 35

    def test_wrong_room_type(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(PROGRAMMING_LOAD, classroom_id=COMPUTER_LAB,
                                lesson_type=LessonType.LECTURE, persist=False)

        conflicts = detector.detect_conflicts(candidate, schedule_id)

        assert conflict_types(conflicts) == {ConflictType.WRONG_ROOM_TYPE}
        assert conflicts[0].details['allowed_types'] == ['LECTURE_HALL', 'STANDARD']

    def test_first_course_in_afternoon_violates_shift(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(PROGRAMMING_LOAD, time_slot_id=4, persist=False)

        conflicts = detector.detect_conflicts(candidate, schedule_id)

        assert conflict_types(conflicts) == {ConflictType.SHIFT_VIOLATION}
        assert conflicts[0].details['course'] == 1
        assert conflicts[0].details['expected_shift'] == 'MORNING'
        assert conflicts[0].details['actual_shift'] == 'AFTERNOON'

    def test_group_without_year_has_no_shift_rule(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(PETROV_MASTERS_LOAD, time_slot_id=5, classroom_id=ROOM_101,
                                persist=False)
        assert detector.detect_conflicts(candidate, schedule_id) == []

    def test_all_violations_are_reported(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=4, classroom_id=ROOM_101)
        candidate = make_lesson(PROGRAMMING_LOAD, time_slot_id=4, classroom_id=ROOM_101,
                                lesson_type=LessonType.PHYSICAL_EDUCATION, persist=False)

        assert conflict_types(detector.detect_conflicts(candidate, schedule_id)) == {
            ConflictType.TEACHER_CONFLICT,
            ConflictType.ROOM_CONFLICT,
            ConflictType.GROUP_CONFLICT,
            ConflictType.WRONG_ROOM_TYPE,
            ConflictType.SHIFT_VIOLATION,
        }

    def test_persisted_lesson_does_not_conflict_with_itself(self, detector, make_lesson, schedule_id):
        lesson = make_lesson()
        assert detector.detect_conflicts(lesson, schedule_id) == []


class TestSubgroups:

    def test_distinct_subgroups_share_a_slot(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=ROOM_101,
                    lesson_type=LessonType.PRACTICE, subgroup_number=1)
        candidate = make_lesson(SIDOROVA_FIRST_COURSE_LOAD, classroom_id=COMPUTER_LAB,
                                lesson_type=LessonType.PRACTICE, subgroup_number=2, persist=False)

        assert detector.detect_conflicts(candidate, schedule_id) == []

    def test_same_subgroup_conflicts(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=ROOM_101,
                    lesson_type=LessonType.PRACTICE, subgroup_number=1)
        candidate = make_lesson(SIDOROVA_FIRST_COURSE_LOAD, classroom_id=COMPUTER_LAB,
                                lesson_type=LessonType.PRACTICE, subgroup_number=1, persist=False)

        assert conflict_types(detector.detect_conflicts(candidate, schedule_id)) == {
            ConflictType.GROUP_CONFLICT
        }

    def test_whole_group_conflicts_with_any_subgroup(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=ROOM_101,
                    lesson_type=LessonType.PRACTICE, subgroup_number=2)
        candidate = make_lesson(SIDOROVA_FIRST_COURSE_LOAD, classroom_id=COMPUTER_LAB,
                                lesson_type=LessonType.PRACTICE, persist=False)

        conflicts = detector.detect_conflicts(candidate, schedule_id)

        assert conflict_types(conflicts) == {ConflictType.GROUP_CONFLICT}
        assert conflicts[0].details['subgroup'] == 0
        assert conflicts[0].details['conflicting_subgroup'] == 2


class TestScheduleConflicts:

    def test_get_all_conflicts_reports_both_lessons(self, detector, make_lesson, schedule_id):
        first = make_lesson(PROGRAMMING_LOAD, classroom_id=LECTURE_HALL)
        second = make_lesson(LARGE_GROUP_LOAD, classroom_id=LECTURE_HALL)
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.FRIDAY)

        reports = detector.get_all_conflicts(schedule_id)

        assert {report.lesson.id for report in reports} == {first.id, second.id}
        assert detector.has_critical_conflicts(schedule_id)

    def test_conflict_stats(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=LECTURE_HALL)
        make_lesson(LARGE_GROUP_LOAD, classroom_id=LECTURE_HALL)

        stats = detector.get_conflict_stats(schedule_id)

        assert stats == {
            'total': 2,
            'by_type': {'ROOM_CONFLICT': 2},
            'by_severity': {'CRITICAL': 2, 'WARNING': 0},
        }

    def test_clean_schedule(self, detector, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.MONDAY)
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.TUESDAY)

        assert detector.get_all_conflicts(schedule_id) == []
        assert not detector.has_critical_conflicts(schedule_id)
        assert detector.get_conflict_stats(schedule_id)['total'] == 0

    def test_is_feasible(self, detector, make_lesson, schedule_id):
        candidate = make_lesson(persist=False)
        assert detector.is_feasible(candidate, schedule_id)

        make_lesson()
        assert not detector.is_feasible(make_lesson(classroom_id=ROOM_101, persist=False), schedule_id)


@pytest.mark.parametrize("lesson_type, room_type, allowed", [
    (LessonType.LECTURE, ClassroomType.LECTURE_HALL, True),
    (LessonType.LECTURE, ClassroomType.COMPUTER_LAB, False),
    (LessonType.PRACTICE, ClassroomType.STANDARD, True),
    (LessonType.LAB, ClassroomType.COMPUTER_LAB, True),
    (LessonType.LAB, ClassroomType.LECTURE_HALL, False),
    (LessonType.PHYSICAL_EDUCATION, ClassroomType.GYM, True),
    (LessonType.PHYSICAL_EDUCATION, ClassroomType.STANDARD, False),
])
def test_room_type_table(lesson_type, room_type, allowed):
    assert is_room_type_allowed(lesson_type, room_type) is allowed
