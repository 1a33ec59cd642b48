"""Timetable engine application service

Single entry point of the engine. Mutating operations hold the lock of the
schedule they change; read-only operations take no lock and see a
point-in-time snapshot.
"""
import logging
import random
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from .services.schedule_generator import ScheduleGenerator
from .use_cases.request_models import GenerationOptions, GenerationResult, LessonRequest
from ..domain.entities.schedule import GeneratedBy, Lesson, OptimizationHistory, Schedule
from ..domain.entities.teaching_load import TeachingLoad
from ..domain.exceptions import (
    LessonValidationError,
    PreconditionError,
    PublicationError,
    ScheduleNotFoundError,
    SemesterNotFoundError,
)
from ..domain.interfaces.repositories import ITimetableRepository
from ..domain.services.conflict_detector import ConflictDetector
from ..domain.services.interfaces.local_search_optimizer import OptimizationResult
from ..domain.services.penalty_calculator import PenaltyCalculator, PenaltyReport
from ..domain.services.schedule_validator import ScheduleValidator, ValidationReport
from ..domain.value_objects.conflict import ConflictReport
from ..domain.value_objects.time_slot import DayOfWeek, build_slot_ordinals
from ..infrastructure.config.engine_config import EngineConfig
from ..shared.utils.concurrency import CancellationToken, ScheduleLockRegistry


class TimetableService:
    """Generation, optimization, evaluation and validation of schedules"""

    def __init__(self, repository: ITimetableRepository,
                 config: Optional[EngineConfig] = None,
                 locks: Optional[ScheduleLockRegistry] = None,
                 rng: Optional[random.Random] = None):
        self.repository = repository
        self.config = config or EngineConfig()
        self.locks = locks or ScheduleLockRegistry()
        self.generator = ScheduleGenerator(repository, self.config, rng, self.locks)
        self.logger = logging.getLogger(__name__)

    # --- generation and optimization --------------------------------------

    def generate_schedule(self, semester_id: int, acting_user_id: int,
                          options: Optional[GenerationOptions] = None) -> GenerationResult:
        """Generate a new draft schedule; see ScheduleGenerator.generate"""
        # generations of one semester are serialized
        with self.locks.hold(('semester', semester_id)):
            result = self.generator.generate(semester_id, acting_user_id, options)
        return result

    def optimize_schedule(self, schedule_id: int, max_iterations: Optional[int] = None,
                          cancellation_token: Optional[CancellationToken] = None) -> OptimizationResult:
        with self.locks.hold(schedule_id):
            return self.generator.optimize(schedule_id, max_iterations, cancellation_token)

    # --- read-only queries ------------------------------------------------

    def evaluate_schedule(self, schedule_id: int) -> PenaltyReport:
        schedule = self._require_schedule(schedule_id)
        calculator = PenaltyCalculator.for_semester(self.repository, schedule.semester_id)
        return calculator.calculate_total_penalty(schedule_id)

    def detect_conflicts(self, schedule_id: int) -> List[ConflictReport]:
        self._require_schedule(schedule_id)
        return ConflictDetector(self.repository).get_all_conflicts(schedule_id)

    def get_conflict_stats(self, schedule_id: int) -> Dict[str, Any]:
        self._require_schedule(schedule_id)
        return ConflictDetector(self.repository).get_conflict_stats(schedule_id)

    def validate_schedule(self, schedule_id: int) -> ValidationReport:
        return self._validator().validate_schedule(schedule_id)

    def get_schedule_stats(self, schedule_id: int) -> Dict[str, Any]:
        self._require_schedule(schedule_id)
        return self._validator().get_schedule_stats(schedule_id)

    def get_optimization_history(self, schedule_id: int) -> List[OptimizationHistory]:
        self._require_schedule(schedule_id)
        return self.repository.find_optimization_history(schedule_id)

    def lessons_for_group(self, schedule_id: int, group_id: int) -> List[Lesson]:
        """Lessons of one group, ordered by day and time of day"""
        return self._lessons_where(schedule_id, lambda load: load.group_id == group_id)

    def lessons_for_teacher(self, schedule_id: int, teacher_id: int) -> List[Lesson]:
        """Lessons of one teacher, ordered by day and time of day"""
        return self._lessons_where(schedule_id, lambda load: load.teacher_id == teacher_id)

    # --- copies -------------------------------------------------------------

    def clone_schedule(self, schedule_id: int, acting_user_id: int, name: Optional[str] = None,
                       semester_id: Optional[int] = None) -> Schedule:
        """Copy a schedule and its lessons into a new manual draft

        Args:
            schedule_id: schedule to copy
            acting_user_id: recorded as the creator of the copy
            name: name of the copy (default: source name with a "(copy)" suffix)
            semester_id: semester of the copy (default: the source semester)

        Raises:
            ScheduleNotFoundError: the source schedule does not exist
            SemesterNotFoundError: the target semester does not exist
        """
        with self.locks.hold(schedule_id):
            source = self._require_schedule(schedule_id)
            target_semester = self.repository.get_semester(
                semester_id if semester_id is not None else source.semester_id
            )
            if target_semester is None:
                raise SemesterNotFoundError(semester_id)
            lessons = self.repository.find_lessons(schedule_id)

            cloned = self.repository.create_schedule(Schedule(
                semester_id=target_semester.id,
                name=name or f"{source.name} (copy)",
                created_by=acting_user_id,
                semester_number=target_semester.number,
                academic_year=target_semester.academic_year,
                is_active=False,
                is_published=False,
                generated_by=GeneratedBy.MANUAL,
                optimization_score=source.optimization_score,
            ))
            with self.locks.hold(cloned.id):
                for lesson in lessons:
                    self.repository.create_lesson(replace(lesson, id=None, schedule_id=cloned.id))

        self.logger.info(f"Cloned schedule {schedule_id} into {cloned.id} ({len(lessons)} lessons)")
        return cloned

    # --- publication ------------------------------------------------------

    def publish_schedule(self, schedule_id: int) -> Schedule:
        """Publish and activate a schedule that passes validation

        Raises:
            ScheduleNotFoundError: the schedule does not exist
            PublicationError: validation reported errors
        """
        with self.locks.hold(schedule_id):
            schedule = self._require_schedule(schedule_id)
            report = self.validate_schedule(schedule_id)
            if not report.is_valid:
                raise PublicationError(
                    f"Schedule {schedule_id} has validation errors and cannot be published",
                    validation=report,
                    details={'errors': report.error_types()},
                )
            schedule.is_published = True
            schedule.is_active = True
            schedule = self.repository.update_schedule(schedule)
            self.logger.info(f"Published schedule {schedule_id}")
            return schedule

    # --- single-lesson editing --------------------------------------------

    def create_lesson(self, schedule_id: int, request: LessonRequest) -> Lesson:
        """Validate and persist a manually placed lesson

        Raises:
            ScheduleNotFoundError: the schedule does not exist
            LessonValidationError: missing fields or conflicts
        """
        with self.locks.hold(schedule_id):
            self._require_schedule(schedule_id)
            lesson = Lesson(
                schedule_id=schedule_id,
                teaching_load_id=request.teaching_load_id,
                lesson_type=request.lesson_type,
                day_of_week=request.day_of_week,
                time_slot_id=request.time_slot_id,
                classroom_id=request.classroom_id,
                subgroup_number=request.subgroup_number,
                is_double_lesson=request.is_double_lesson,
            )
            self._check_lesson(lesson, schedule_id)
            return self.repository.create_lesson(lesson)

    def move_lesson(self, lesson_id: int, day_of_week: Optional[DayOfWeek] = None,
                    time_slot_id: Optional[int] = None,
                    classroom_id: Optional[int] = None) -> Lesson:
        """Relocate a lesson; unspecified coordinates stay unchanged"""
        current = self._require_lesson(lesson_id)
        with self.locks.hold(current.schedule_id):
            current = self._require_lesson(lesson_id)
            moved = replace(
                current,
                day_of_week=day_of_week if day_of_week is not None else current.day_of_week,
                time_slot_id=time_slot_id if time_slot_id is not None else current.time_slot_id,
                classroom_id=classroom_id if classroom_id is not None else current.classroom_id,
            )
            self._check_lesson(moved, moved.schedule_id)
            return self.repository.update_lesson(moved)

    def delete_lesson(self, lesson_id: int) -> bool:
        lesson = self.repository.get_lesson(lesson_id)
        if lesson is None:
            return False
        with self.locks.hold(lesson.schedule_id):
            return self.repository.delete_lesson(lesson_id)

    # --- helpers ----------------------------------------------------------

    def _validator(self) -> ScheduleValidator:
        return ScheduleValidator(
            self.repository,
            hours_per_session=self.config.hours_per_session,
            curriculum_tolerance=self.config.curriculum_tolerance,
        )

    def _require_schedule(self, schedule_id: int) -> Schedule:
        schedule = self.repository.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    def _lessons_where(self, schedule_id: int, accepts: Callable[[TeachingLoad], bool]) -> List[Lesson]:
        self._require_schedule(schedule_id)
        loads: Dict[int, Optional[TeachingLoad]] = {}
        selected = []
        for lesson in self.repository.find_lessons(schedule_id):
            if lesson.teaching_load_id not in loads:
                loads[lesson.teaching_load_id] = self.repository.get_teaching_load(lesson.teaching_load_id)
            load = loads[lesson.teaching_load_id]
            if load is not None and accepts(load):
                selected.append(lesson)

        days = DayOfWeek.teaching_days()
        ordinals = build_slot_ordinals(self.repository.find_time_slots())
        return sorted(selected, key=lambda lesson: (
            days.index(lesson.day_of_week),
            ordinals.get(lesson.time_slot_id, lesson.time_slot_id),
            lesson.subgroup_number or 0,
        ))

    def _require_lesson(self, lesson_id: int) -> Lesson:
        lesson = self.repository.get_lesson(lesson_id)
        if lesson is None:
            raise PreconditionError(f"Lesson {lesson_id} not found", {'lesson_id': lesson_id})
        return lesson

    def _check_lesson(self, lesson: Lesson, schedule_id: int) -> None:
        result = self._validator().validate_lesson(lesson, schedule_id)
        if not result.is_valid:
            raise LessonValidationError(
                f"Lesson is invalid: {'; '.join(error['message'] for error in result.errors)}",
                errors=result.errors,
            )
