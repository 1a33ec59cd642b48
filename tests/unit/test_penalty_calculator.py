"""Penalty calculation and penalty settings"""
from datetime import datetime

import pytest

from timetable_engine.domain.entities.group import Group
from timetable_engine.domain.entities.schedule import PenaltySettings
from timetable_engine.domain.entities.teaching_load import TeachingLoad
from timetable_engine.domain.exceptions import ConfigurationError
from timetable_engine.domain.services.conflict_detector import ConflictDetector
from timetable_engine.domain.services.penalty_calculator import (
    PenaltyCalculator,
    load_penalty_settings,
)
from timetable_engine.domain.value_objects.lesson_type import LessonType
from timetable_engine.domain.value_objects.penalty_weights import PenaltyWeights
from timetable_engine.domain.value_objects.time_slot import DayOfWeek
from timetable_engine.infrastructure.repositories.in_memory_repository import InMemoryTimetableRepository
from tests.conftest import (
    COMPUTER_LAB,
    LECTURE_HALL,
    PETROV,
    PROGRAMMING_LOAD,
    ROOM_101,
    seed_repository,
)


MASTERS_GROUP_ID = 3
PETROV_MASTERS_LOAD = 3


@pytest.fixture
def calculator(repository):
    repository.add_all([
        Group(MASTERS_GROUP_ID, "МАГ-1", 15),
        TeachingLoad(PETROV_MASTERS_LOAD, 1, 2, PETROV, MASTERS_GROUP_ID, hours_lecture=3),
    ])
    return PenaltyCalculator(repository)


def violations_of(report, violation_type):
    return [
        violation
        for kind in ('hard', 'soft')
        for violation in report.violations[kind]
        if violation.type == violation_type
    ]


class TestHardPenalties:

    def test_empty_schedule_scores_zero(self, calculator, schedule_id):
        report = calculator.calculate_total_penalty(schedule_id)

        assert report.total_penalty == 0
        assert report.breakdown == {'hard': 0, 'soft': 0}
        assert report.lesson_count == 0
        assert report.is_feasible

    def test_teacher_double_booking_costs_one_thousand(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=LECTURE_HALL)
        make_lesson(PETROV_MASTERS_LOAD, classroom_id=ROOM_101)

        report = calculator.calculate_total_penalty(schedule_id)

        assert report.hard_penalty == 1000
        assert report.soft_penalty == 0
        assert report.total_penalty == 1000
        assert [v.type for v in report.violations['hard']] == ['TEACHER_DOUBLE_BOOKING']
        assert report.by_constraint['Teacher double booking'] == 1000
        assert not report.is_feasible

    def test_one_violation_per_clashing_pair(self, calculator, make_lesson, schedule_id):
        for room in (LECTURE_HALL, ROOM_101, COMPUTER_LAB):
            make_lesson(PETROV_MASTERS_LOAD, classroom_id=room)

        report = calculator.calculate_total_penalty(schedule_id)

        assert len(violations_of(report, 'TEACHER_DOUBLE_BOOKING')) == 3
        assert len(violations_of(report, 'GROUP_DOUBLE_BOOKING')) == 3

    def test_shift_violation(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=5)

        report = calculator.calculate_total_penalty(schedule_id)

        assert [v.type for v in report.violations['hard']] == ['SHIFT_VIOLATION']

    def test_hard_weights_come_from_the_weight_table(self, repository, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, classroom_id=COMPUTER_LAB)
        weights = PenaltyWeights(hard={'wrong_specialization': 250.0})

        report = PenaltyCalculator(repository, weights).calculate_total_penalty(schedule_id)

        assert report.hard_penalty == 250

    def test_zero_weight_still_lists_the_violation(self, repository, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=5)
        weights = PenaltyWeights.from_mapping({'shift_violation': 0})

        report = PenaltyCalculator(repository, weights).calculate_total_penalty(schedule_id)

        assert report.hard_penalty == 0
        assert not report.is_feasible


class TestSoftPenalties:

    def test_gap_and_early_lesson(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=1)
        make_lesson(PROGRAMMING_LOAD, time_slot_id=3)

        report = calculator.calculate_total_penalty(schedule_id)

        assert report.hard_penalty == 0
        # student gap 50 + teacher gap 5 + early lesson 10
        assert report.soft_penalty == 65
        assert violations_of(report, 'STUDENT_GAP')[0].context == {'gap': 1}

    def test_gap_across_shift_boundary_uses_daily_ordinals(self, calculator, make_lesson, schedule_id):
        make_lesson(PETROV_MASTERS_LOAD, time_slot_id=3, classroom_id=ROOM_101)
        make_lesson(PETROV_MASTERS_LOAD, time_slot_id=4, classroom_id=ROOM_101)

        report = calculator.calculate_total_penalty(schedule_id)

        # the third morning pair and the first afternoon pair are adjacent
        assert violations_of(report, 'STUDENT_GAP') == []
        # the first afternoon pair is still an early lesson
        assert report.soft_penalty == 10

    def test_lessons_on_different_days_have_no_gap(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.MONDAY, time_slot_id=2)
        make_lesson(PROGRAMMING_LOAD, day=DayOfWeek.TUESDAY, time_slot_id=3)

        assert calculator.calculate_total_penalty(schedule_id).total_penalty == 0

    def test_late_lesson_threshold(self, repository, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=3)
        weights = PenaltyWeights(late_slot_threshold=3)

        report = PenaltyCalculator(repository, weights).calculate_total_penalty(schedule_id)

        assert [v.type for v in report.violations['soft']] == ['LATE_LESSON']
        assert report.soft_penalty == 15

    def test_classroom_change_inside_double_session(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=2, classroom_id=LECTURE_HALL)
        make_lesson(PROGRAMMING_LOAD, time_slot_id=3, classroom_id=ROOM_101)

        report = calculator.calculate_total_penalty(schedule_id)

        assert [v.type for v in report.violations['soft']] == ['CLASSROOM_CHANGE']
        assert report.soft_penalty == 20

    def test_building_change_between_close_lessons(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=2, classroom_id=LECTURE_HALL)
        make_lesson(PROGRAMMING_LOAD, time_slot_id=3, classroom_id=COMPUTER_LAB,
                    lesson_type=LessonType.LAB)

        report = calculator.calculate_total_penalty(schedule_id)

        assert [v.type for v in report.violations['soft']] == ['BUILDING_CHANGE']
        assert report.soft_penalty == 30

    def test_report_serializes(self, calculator, make_lesson, schedule_id):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=1)

        data = calculator.calculate_total_penalty(schedule_id).to_dict()

        assert data['total_penalty'] == 10
        assert data['violations']['soft'][0]['type'] == 'EARLY_LESSON'
        assert data['lesson_count'] == 1


class TestAgreementWithDetector:

    @pytest.mark.parametrize("second_room, second_slot", [
        (ROOM_101, 2),      # teacher clash
        (LECTURE_HALL, 3),  # clean
        (ROOM_101, 5),      # shift violation
    ])
    def test_zero_hard_penalty_iff_no_conflicts(self, repository, calculator, make_lesson,
                                                schedule_id, second_room, second_slot):
        make_lesson(PROGRAMMING_LOAD, time_slot_id=2, classroom_id=LECTURE_HALL)
        make_lesson(PROGRAMMING_LOAD, time_slot_id=second_slot, classroom_id=second_room)

        report = calculator.calculate_total_penalty(schedule_id)
        conflicts = ConflictDetector(repository).get_all_conflicts(schedule_id)

        assert (report.hard_penalty == 0) == (conflicts == [])


class TestPenaltySettings:

    def test_defaults_without_settings(self, repository):
        assert load_penalty_settings(repository, 1) == PenaltyWeights()

    def test_default_settings_are_applied(self, repository):
        repository.add_penalty_settings(PenaltySettings(
            1, 1, "strict",
            {'teacherDoubleBooking': 5000, 'STUDENT_GAP_PENALTY': 1, 'unknownKey': 3},
            is_default=True,
        ))

        weights = load_penalty_settings(repository, 1)

        assert weights.hard_weight('teacher_double_booking') == 5000
        assert weights.hard_weight('room_double_booking') == 1000
        assert weights.student_gap_penalty == 1
        assert weights.teacher_gap_penalty == 5

    def test_latest_default_wins(self, repository):
        repository.add_all([
            PenaltySettings(1, 1, "old", {'early_lesson_penalty': 1}, is_default=True,
                            created_at=datetime(2024, 1, 1)),
            PenaltySettings(2, 1, "new", {'early_lesson_penalty': 2}, is_default=True,
                            created_at=datetime(2024, 6, 1)),
            PenaltySettings(3, 1, "draft", {'early_lesson_penalty': 3}, is_default=False,
                            created_at=datetime(2024, 9, 1)),
            PenaltySettings(4, 2, "other semester", {'early_lesson_penalty': 4}, is_default=True,
                            created_at=datetime(2024, 9, 1)),
        ])

        assert load_penalty_settings(repository, 1).early_lesson_penalty == 2

    @pytest.mark.parametrize("penalties", [
        {'student_gap_penalty': 'lots'},
        {'room_overflow': -1},
        {'late_slot_threshold': 2.5},
        ['not', 'a', 'mapping'],
    ])
    def test_malformed_settings_fall_back_to_defaults(self, repository, penalties):
        repository.add_penalty_settings(PenaltySettings(1, 1, "broken", penalties, is_default=True))
        assert load_penalty_settings(repository, 1) == PenaltyWeights()

    def test_failing_lookup_falls_back_to_defaults(self):
        class BrokenRepository(InMemoryTimetableRepository):
            def get_default_penalty_settings(self, semester_id):
                raise RuntimeError("database is down")

        repository = seed_repository(BrokenRepository())
        assert load_penalty_settings(repository, 1) == PenaltyWeights()

    def test_calculator_for_semester_uses_settings(self, repository, make_lesson, schedule_id):
        repository.add_penalty_settings(PenaltySettings(
            1, 1, "mild", {'early_lesson_penalty': 1}, is_default=True
        ))
        make_lesson(PROGRAMMING_LOAD, time_slot_id=1)

        report = PenaltyCalculator.for_semester(repository, 1).calculate_total_penalty(schedule_id)

        assert report.total_penalty == 1


class TestPenaltyWeights:

    def test_to_dict_lists_every_weight(self):
        data = PenaltyWeights().to_dict()
        assert data['shift_violation'] == 1000
        assert data['student_gap_penalty'] == 50
        assert data['late_slot_threshold'] == 7

    @pytest.mark.parametrize("value", [True, None, "10"])
    def test_non_numeric_values_are_rejected(self, value):
        with pytest.raises(ConfigurationError) as excinfo:
            PenaltyWeights.from_mapping({'early_lesson_penalty': value})
        assert excinfo.value.config_key == 'early_lesson_penalty'
