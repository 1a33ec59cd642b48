"""Schedule validator

Post-hoc audit of a generated schedule: conflicts, hour coverage against
teaching loads and curricula, and aggregate statistics.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from ..entities.schedule import Lesson
from ..interfaces.repositories import ITimetableRepository
from ..value_objects.lesson_type import LessonType
from ..value_objects.time_slot import DayOfWeek
from ...shared.mixins.logging_mixin import LoggingMixin
from .conflict_detector import ConflictDetector
from .task_builder import DEFAULT_HOURS_PER_SESSION


DEFAULT_CURRICULUM_TOLERANCE = 0.1

_HOUR_TYPES = (LessonType.LECTURE, LessonType.PRACTICE, LessonType.LAB)
_LESSON_COLUMNS = ['id', 'teaching_load_id', 'curriculum_id', 'group_id', 'teacher_id',
                   'classroom_id', 'lesson_type', 'day_of_week']


@dataclass
class ValidationIssue:
    """An error or warning found by the validator"""
    type: str
    message: str
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'type': self.type, 'message': self.message}
        if self.details is not None:
            result['details'] = self.details
        return result


@dataclass
class ValidationReport:
    """Result of a full schedule validation"""
    is_valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None

    def add_error(self, issue: ValidationIssue) -> None:
        self.is_valid = False
        self.errors.append(issue)

    def add_warning(self, issue: ValidationIssue) -> None:
        self.warnings.append(issue)

    def error_types(self) -> List[str]:
        return [issue.type for issue in self.errors]

    def warning_types(self) -> List[str]:
        return [issue.type for issue in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'errors': [issue.to_dict() for issue in self.errors],
            'warnings': [issue.to_dict() for issue in self.warnings],
            'stats': self.stats,
        }


@dataclass
class LessonValidationResult:
    """Result of validating a single lesson"""
    is_valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)


class ScheduleValidator(LoggingMixin):
    """Audits completeness and consistency of a schedule"""

    def __init__(self, repository: ITimetableRepository,
                 detector: Optional[ConflictDetector] = None,
                 hours_per_session: float = DEFAULT_HOURS_PER_SESSION,
                 curriculum_tolerance: float = DEFAULT_CURRICULUM_TOLERANCE):
        self.repository = repository
        self.detector = detector or ConflictDetector(repository)
        self.hours_per_session = hours_per_session
        self.curriculum_tolerance = curriculum_tolerance

    def validate_schedule(self, schedule_id: int) -> ValidationReport:
        """Run every check and collect errors, warnings and statistics

        Args:
            schedule_id: schedule to audit

        Returns:
            ValidationReport; a missing schedule yields a single
            SCHEDULE_NOT_FOUND error and no statistics
        """
        report = ValidationReport()

        schedule = self.repository.get_schedule(schedule_id)
        if schedule is None:
            report.add_error(ValidationIssue('SCHEDULE_NOT_FOUND', f"Schedule {schedule_id} not found"))
            return report

        conflicts = self.detector.get_all_conflicts(schedule_id)
        if conflicts:
            report.add_error(ValidationIssue(
                'CONFLICTS_FOUND',
                f"{len(conflicts)} lesson(s) with conflicts",
                [conflict_report.to_dict() for conflict_report in conflicts],
            ))

        frame = self._lesson_frame(schedule_id)

        completeness = self.check_completeness(schedule.semester_id, frame)
        if completeness['missing']:
            report.add_error(ValidationIssue(
                'MISSING_LESSONS',
                f"{len(completeness['missing'])} teaching load(s) have no lessons of a required kind",
                completeness,
            ))
        if completeness['partial']:
            report.add_warning(ValidationIssue(
                'INCOMPLETE_SCHEDULE',
                f"{len(completeness['partial'])} teaching load(s) are only partially scheduled",
                completeness,
            ))

        curriculum_match = self.check_curriculum_match(schedule.semester_id, frame)
        if not curriculum_match['is_valid']:
            report.add_error(ValidationIssue(
                'CURRICULUM_MISMATCH',
                "Scheduled hours do not match the curriculum",
                curriculum_match,
            ))

        load_match = self.check_teaching_load_match(schedule.semester_id, frame)
        if not load_match['is_valid']:
            report.add_warning(ValidationIssue(
                'TEACHING_LOAD_MISMATCH',
                "Scheduled hours do not match the teaching loads",
                load_match,
            ))

        report.stats = self._stats_from_frame(frame)

        self.logger.info(
            f"Schedule {schedule_id} validated: valid={report.is_valid}, "
            f"errors={report.error_types()}, warnings={report.warning_types()}"
        )
        return report

    def check_completeness(self, semester_id: int, frame: pd.DataFrame) -> Dict[str, Any]:
        """Loads with no lessons (missing) or too few hours (partial) of a required kind"""
        loads = self.repository.find_teaching_loads(semester_id)
        actual = self._hours_by(frame, 'teaching_load_id')
        missing, partial = [], []

        for load in loads:
            delivered = actual.get(load.id, {})
            missing_types, partial_types = [], []
            for lesson_type, required in load.hours_by_type().items():
                if required <= 0:
                    continue
                hours = delivered.get(lesson_type.value, 0.0)
                if hours == 0:
                    missing_types.append(lesson_type.value)
                elif hours < required:
                    partial_types.append(f"{lesson_type.value} ({hours}/{required} h)")

            entry = self._load_label(load)
            if missing_types:
                missing.append({**entry, 'missing_types': missing_types})
            if partial_types:
                partial.append({**entry, 'partial_types': partial_types})

        total = len(loads)
        completeness = (total - len(missing)) / total * 100 if total else 100.0
        return {
            'is_complete': not missing and not partial,
            'total_loads': total,
            'missing': missing,
            'partial': partial,
            'completeness': round(completeness, 1),
        }

    def check_curriculum_match(self, semester_id: int, frame: pd.DataFrame) -> Dict[str, Any]:
        """Per curriculum and group, hours within the tolerance of the plan"""
        actual = self._hours_by(frame, ['curriculum_id', 'group_id'])
        groups_by_curriculum: Dict[int, set] = {}
        for load in self.repository.find_teaching_loads(semester_id):
            groups_by_curriculum.setdefault(load.curriculum_id, set()).add(load.group_id)

        mismatches = []
        for curriculum in self.repository.find_curricula(semester_id):
            for group_id in sorted(groups_by_curriculum.get(curriculum.id, ())):
                delivered = actual.get((curriculum.id, group_id), {})
                expected = {t.value: h for t, h in curriculum.hours_by_type().items()}
                got = {t.value: delivered.get(t.value, 0.0) for t in _HOUR_TYPES}
                if any(abs(got[key] - hours) > hours * self.curriculum_tolerance
                       for key, hours in expected.items()):
                    group = self.repository.get_group(group_id)
                    mismatches.append({
                        'discipline': curriculum.discipline.name,
                        'group': group.code if group else group_id,
                        'expected': expected,
                        'actual': got,
                    })

        return {'is_valid': not mismatches, 'mismatches': mismatches}

    def check_teaching_load_match(self, semester_id: int, frame: pd.DataFrame) -> Dict[str, Any]:
        """Per load, exact equality of scheduled and assigned hours"""
        actual = self._hours_by(frame, 'teaching_load_id')
        mismatches = []
        for load in self.repository.find_teaching_loads(semester_id):
            delivered = actual.get(load.id, {})
            expected = {t.value: h for t, h in load.hours_by_type().items()}
            got = {t.value: delivered.get(t.value, 0.0) for t in _HOUR_TYPES}
            if got != expected:
                mismatches.append({**self._load_label(load), 'expected': expected, 'actual': got})
        return {'is_valid': not mismatches, 'mismatches': mismatches}

    def get_schedule_stats(self, schedule_id: int) -> Dict[str, Any]:
        """Distinct groups/teachers/rooms, hours by kind, lessons by weekday"""
        return self._stats_from_frame(self._lesson_frame(schedule_id))

    def has_errors(self, schedule_id: int) -> bool:
        """Quick check for critical conflicts"""
        return self.detector.has_critical_conflicts(schedule_id)

    def validate_lesson(self, lesson: Lesson, schedule_id: int) -> LessonValidationResult:
        """Required fields and conflicts of a single lesson before it is saved"""
        errors: List[Dict[str, Any]] = []
        required = {
            'day_of_week': "Day of week is required",
            'time_slot_id': "Time slot is required",
            'classroom_id': "Classroom is required",
            'teaching_load_id': "Teaching load is required",
            'lesson_type': "Lesson type is required",
        }
        for name, message in required.items():
            if getattr(lesson, name, None) is None:
                errors.append({'field': name, 'message': message})

        if not errors:
            if self.repository.get_teaching_load(lesson.teaching_load_id) is None:
                errors.append({'field': 'teaching_load_id', 'message': "Teaching load does not exist"})
            if self.repository.get_classroom(lesson.classroom_id) is None:
                errors.append({'field': 'classroom_id', 'message': "Classroom does not exist"})
            if self.repository.get_time_slot(lesson.time_slot_id) is None:
                errors.append({'field': 'time_slot_id', 'message': "Time slot does not exist"})

        if not errors:
            for conflict in self.detector.detect_conflicts(lesson, schedule_id):
                errors.append({'field': 'general', 'message': conflict.message, 'type': conflict.type.value})

        return LessonValidationResult(is_valid=not errors, errors=errors)

    # --- helpers ----------------------------------------------------------

    def _lesson_frame(self, schedule_id: int) -> pd.DataFrame:
        rows = []
        for lesson in self.repository.find_lessons(schedule_id):
            load = self.detector.resolver.teaching_load(lesson.teaching_load_id)
            rows.append({
                'id': lesson.id,
                'teaching_load_id': lesson.teaching_load_id,
                'curriculum_id': load.curriculum_id if load else None,
                'group_id': load.group_id if load else None,
                'teacher_id': load.teacher_id if load else None,
                'classroom_id': lesson.classroom_id,
                'lesson_type': lesson.lesson_type.value,
                'day_of_week': lesson.day_of_week.value,
            })
        return pd.DataFrame(rows, columns=_LESSON_COLUMNS)

    def _hours_by(self, frame: pd.DataFrame, keys) -> Dict[Any, Dict[str, float]]:
        """{key: {lesson_type: hours}} from lesson counts"""
        if frame.empty:
            return {}
        key_list = keys if isinstance(keys, list) else [keys]
        counts = frame.groupby(key_list + ['lesson_type']).size()
        result: Dict[Any, Dict[str, float]] = {}
        for index, count in counts.items():
            *key, lesson_type = index
            key = tuple(int(k) for k in key) if len(key) > 1 else int(key[0])
            result.setdefault(key, {})[lesson_type] = float(count) * self.hours_per_session
        return result

    def _stats_from_frame(self, frame: pd.DataFrame) -> Dict[str, Any]:
        by_type = frame['lesson_type'].value_counts().reindex(
            [t.value for t in LessonType], fill_value=0
        )
        by_day = frame['day_of_week'].value_counts().reindex(
            [d.value for d in DayOfWeek], fill_value=0
        )
        hours_by_type = {key: float(value) * self.hours_per_session for key, value in by_type.items()}
        return {
            'total_lessons': int(len(frame)),
            'unique_groups': int(frame['group_id'].nunique()),
            'unique_teachers': int(frame['teacher_id'].nunique()),
            'unique_rooms': int(frame['classroom_id'].nunique()),
            'total_hours': float(sum(hours_by_type.values())),
            'hours_by_type': hours_by_type,
            'lessons_by_day': {key: int(value) for key, value in by_day.items()},
        }

    def _load_label(self, load) -> Dict[str, Any]:
        curriculum = self.repository.get_curriculum(load.curriculum_id)
        group = self.repository.get_group(load.group_id)
        return {
            'teaching_load_id': load.id,
            'discipline': curriculum.discipline.name if curriculum else None,
            'group': group.code if group else load.group_id,
            'teacher': load.teacher.full_name,
        }
