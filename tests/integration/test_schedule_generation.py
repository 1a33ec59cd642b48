"""End-to-end schedule generation"""
import logging

import pytest

from timetable_engine.application.services import schedule_generator
from timetable_engine.application.services.schedule_generator import (
    GenerationPhase,
    GenerationRun,
)
from timetable_engine.application.use_cases.request_models import GenerationOptions
from timetable_engine.domain.entities.group import Group
from timetable_engine.domain.entities.schedule import Lesson, OptimizationAlgorithm
from timetable_engine.domain.entities.semester import Semester
from timetable_engine.domain.entities.teaching_load import TeachingLoad
from timetable_engine.domain.exceptions import DispatcherRequiredError, SemesterNotFoundError
from timetable_engine.domain.services.conflict_detector import ConflictDetector
from timetable_engine.domain.value_objects.conflict import ConflictType
from timetable_engine.domain.value_objects.lesson_type import LessonType
from timetable_engine.domain.value_objects.time_slot import DayOfWeek, Shift
from timetable_engine.infrastructure.performance.profiler import PerformanceProfiler
from tests.conftest import (
    DISPATCHER_ID,
    LECTURE_HALL,
    PETROV,
    PROGRAMMING_LOAD,
    ROOM_101,
    SIDOROVA,
    TEACHER_USER_ID,
)


def generate(service, **options):
    return service.generate_schedule(1, DISPATCHER_ID, GenerationOptions(**options))


class TestGeneration:

    def test_places_every_task(self, service, repository):
        result = generate(service)

        assert result.total_tasks == 8
        assert result.placed_count == 8
        assert result.success_rate == 100.0
        assert result.unplaced_tasks == []
        assert result.evaluation.hard_penalty == 0
        assert ConflictDetector(repository).get_all_conflicts(result.schedule_id) == []
        assert len(repository.find_lessons(result.schedule_id)) == 8

    def test_creates_a_draft_schedule(self, service, repository):
        result = generate(service)

        schedule = repository.get_schedule(result.schedule_id)
        assert schedule.name == "Schedule - Semester 1"
        assert schedule.academic_year == "2024-2025"
        assert schedule.created_by == DISPATCHER_ID
        assert not schedule.is_published
        assert not schedule.is_active
        assert schedule.optimization_score == result.evaluation.total_penalty

    def test_groups_keep_their_shift(self, service, repository):
        result = generate(service)

        for lesson in repository.find_lessons(result.schedule_id):
            load = repository.get_teaching_load(lesson.teaching_load_id)
            expected = {1, 2, 3} if load.group_id == 1 else {4, 5, 6}
            assert lesson.time_slot_id in expected

    def test_history_entry(self, service, repository):
        result = generate(service)

        history = repository.find_optimization_history(result.schedule_id)
        assert len(history) == 1
        entry = history[0]
        assert entry.id == result.history_id
        assert entry.algorithm == OptimizationAlgorithm.GREEDY_BACKTRACKING
        assert entry.penalty_before == 0
        assert entry.penalty_after == result.evaluation.total_penalty
        assert entry.iterations_count == 8
        assert entry.improvements['placed'] == 8

    def test_without_history(self, service, repository):
        result = generate(service, save_progress=False)

        assert result.history_id is None
        assert repository.find_optimization_history(result.schedule_id) == []

    def test_result_serializes(self, service):
        data = generate(service).to_dict()

        assert data['placed_count'] == 8
        assert data['unplaced_tasks'] == []
        assert data['optimization'] is None
        assert data['breakdown']['hard'] == 0

    def test_without_teaching_loads(self, service, repository):
        repository.add_semester(Semester(2, 2, "2024-2025"))

        result = service.generate_schedule(2, DISPATCHER_ID)

        assert result.total_tasks == 0
        assert result.success_rate == 0.0
        assert result.evaluation.total_penalty == 0
        assert repository.get_schedule(result.schedule_id).name == "Schedule - Semester 2"


class TestPreconditions:

    @pytest.mark.parametrize("user_id", [TEACHER_USER_ID, 99])
    def test_requires_a_dispatcher(self, service, repository, user_id):
        with pytest.raises(DispatcherRequiredError) as excinfo:
            service.generate_schedule(1, user_id)

        assert excinfo.value.user_id == user_id
        assert repository.schedules == {}

    def test_missing_semester(self, service, repository):
        with pytest.raises(SemesterNotFoundError):
            service.generate_schedule(42, DISPATCHER_ID)
        assert repository.schedules == {}

    def test_negative_options_are_rejected(self):
        with pytest.raises(ValueError):
            GenerationOptions(max_iterations=-1)
        with pytest.raises(ValueError):
            GenerationOptions(optimization_iterations=-5)


class TestUnplacedTasks:

    def test_iteration_limit(self, service):
        result = generate(service, max_iterations=3)

        assert result.placed_count == 3
        assert len(result.unplaced_tasks) == 5
        assert {unplaced.reason for unplaced in result.unplaced_tasks} == {"iteration limit reached"}
        assert result.success_rate == 37.5

    def test_no_room_large_enough(self, service, repository):
        repository.add_group(Group(3, "ПОТОК-24", 200))
        repository.add_teaching_load(TeachingLoad(3, 1, 1, PETROV, 3, hours_lecture=3))

        result = generate(service)

        assert result.total_tasks == 10
        assert result.placed_count == 8
        unplaced = [u.to_dict() for u in result.unplaced_tasks]
        assert {u['reason'] for u in unplaced} == {"no feasible placement"}
        assert {u['group'] for u in unplaced} == {"ПОТОК-24"}


class TestOptimizationAfterConstruction:

    def test_always_optimizes_without_target(self, service):
        result = generate(service, optimization_iterations=30)

        assert result.optimization is not None
        assert result.optimization.iterations == 30
        assert result.optimization.after <= result.optimization.before
        assert result.evaluation.total_penalty == result.optimization.after
        assert not result.target_reached

    def test_target_met_skips_optimization(self, service):
        result = generate(service, optimization_iterations=30, target_penalty=1e6)

        assert result.optimization is None
        assert result.target_reached

    def test_construction_history_keeps_construction_penalty(self, service, repository):
        result = generate(service, optimization_iterations=30)

        history = repository.find_optimization_history(result.schedule_id)
        algorithms = [entry.algorithm for entry in history]
        assert OptimizationAlgorithm.LOCAL_SEARCH in algorithms
        construction = history[algorithms.index(OptimizationAlgorithm.GREEDY_BACKTRACKING)]
        assert construction.penalty_after == result.optimization.before


class TestGenerationRun:

    def test_phase_transitions(self):
        run = GenerationRun(semester=Semester(1, 1, "2024-2025"), acting_user_id=DISPATCHER_ID,
                            options=GenerationOptions())
        for phase in (GenerationPhase.CREATE_SCHEDULE, GenerationPhase.LOAD_DATA,
                      GenerationPhase.BUILD_TASKS, GenerationPhase.PRIORITIZE,
                      GenerationPhase.PLACE_LOOP, GenerationPhase.EVALUATE,
                      GenerationPhase.DONE):
            run.advance(phase)
        assert run.phase == GenerationPhase.DONE

    def test_illegal_transition(self):
        run = GenerationRun(semester=Semester(1, 1, "2024-2025"), acting_user_id=DISPATCHER_ID,
                            options=GenerationOptions())
        with pytest.raises(RuntimeError):
            run.advance(GenerationPhase.PLACE_LOOP)


class TestDeclaredShift:
    """ИС-21-1к is in its fourth course (afternoon) but declared a morning group"""

    @pytest.fixture
    def morning_group(self, repository):
        repository.add_group(Group(3, "ИС-21-1к", 25, shift=Shift.MORNING))
        repository.add_teaching_load(TeachingLoad(3, 1, 2, SIDOROVA, 3, hours_lecture=3, hours_practical=3))
        return 3

    def test_generation_keeps_the_declared_shift(self, service, repository, morning_group):
        result = generate(service)

        assert result.total_tasks == 12
        assert result.placed_count == 12
        morning = {slot.id for slot in repository.find_time_slots() if slot.shift == Shift.MORNING}
        placed = service.lessons_for_group(result.schedule_id, morning_group)
        assert len(placed) == 4
        assert {lesson.time_slot_id for lesson in placed} <= morning

    def test_afternoon_lesson_is_a_shift_violation(self, service, make_lesson, schedule_id, morning_group):
        make_lesson(3, day=DayOfWeek.TUESDAY, time_slot_id=4, classroom_id=ROOM_101)

        reports = service.detect_conflicts(schedule_id)

        assert len(reports) == 1
        assert [conflict.type for conflict in reports[0].conflicts] == [ConflictType.SHIFT_VIOLATION]
        assert reports[0].conflicts[0].details['expected_shift'] == 'MORNING'


class TestSharedTeacher:
    """Petrov teaches two first-course groups in the same (morning) shift"""

    @pytest.fixture
    def second_group_load(self, repository):
        repository.add_group(Group(3, "ИС-24-2к", 20))
        repository.add_teaching_load(TeachingLoad(3, 1, 1, PETROV, 3, hours_lecture=3))
        return 3

    def test_one_lesson_per_teacher_and_slot(self, service, repository, second_group_load):
        result = generate(service)

        assert result.placed_count == result.total_tasks == 10
        lessons = service.lessons_for_teacher(result.schedule_id, PETROV.id)
        assert len(lessons) == 6
        positions = [lesson.position for lesson in lessons]
        assert len(set(positions)) == len(positions)
        assert ConflictDetector(repository).get_all_conflicts(result.schedule_id) == []

    def test_second_load_in_an_occupied_slot_is_a_teacher_conflict(self, service, repository,
                                                                   second_group_load):
        schedule_id = generate(service).schedule_id
        taken = next(lesson for lesson in repository.find_lessons(schedule_id)
                     if lesson.teaching_load_id == PROGRAMMING_LOAD)
        other_room = ROOM_101 if taken.classroom_id != ROOM_101 else LECTURE_HALL
        candidate = Lesson(
            schedule_id=schedule_id, teaching_load_id=second_group_load, lesson_type=LessonType.LECTURE,
            day_of_week=taken.day_of_week, time_slot_id=taken.time_slot_id, classroom_id=other_room,
        )

        conflicts = ConflictDetector(repository).detect_conflicts(candidate, schedule_id)

        teacher_conflicts = [c for c in conflicts if c.type == ConflictType.TEACHER_CONFLICT]
        assert len(teacher_conflicts) == 1
        assert teacher_conflicts[0].conflicting_lesson_id == taken.id


class TestRunIsolation:

    def test_timings_per_run(self, service):
        plain = generate(service)
        optimized = generate(service, optimization_iterations=10)

        assert set(plain.timings) == {'generate', 'place_loop'}
        assert set(optimized.timings) == {'generate', 'place_loop', 'optimize'}
        assert plain.timings['generate'] >= plain.timings['place_loop']
        assert set(plain.to_dict()['timings']) == {'generate', 'place_loop'}

    def test_each_run_gets_its_own_profiler(self, service, monkeypatch):
        profilers = []

        class RecordingProfiler(PerformanceProfiler):
            def __init__(self):
                super().__init__()
                profilers.append(self)

        monkeypatch.setattr(schedule_generator, 'PerformanceProfiler', RecordingProfiler)
        for _ in range(3):
            generate(service)

        assert len(profilers) == 3
        assert [len(profiler.completed_metrics) for profiler in profilers] == [1, 1, 1]

    def test_runs_log_their_own_context(self, service, caplog):
        with caplog.at_level(logging.INFO, logger=schedule_generator.__name__):
            first = generate(service)
            second = generate(service)

        finished = [r for r in caplog.records if r.getMessage().startswith("Generation finished")]
        assert [r.context['schedule_id'] for r in finished] == [first.schedule_id, second.schedule_id]
        created = [r for r in caplog.records if r.getMessage().startswith("Created draft schedule")]
        assert len(created) == 2
        assert all(r.context == {'semester_id': 1} for r in created)
