"""Conflict detector

Checks a single lesson placement against the hard rules: teacher, room and
group double-booking, room capacity, room type and shift conformance.
"""
from collections import Counter
from typing import Any, Dict, List, Optional

from ..entities.schedule import Lesson
from ..interfaces.repositories import ITimetableRepository
from ..value_objects.conflict import Conflict, ConflictReport, ConflictType, Severity
from ..value_objects.lesson_type import allowed_room_types
from ...shared.mixins.logging_mixin import LoggingMixin
from .lesson_resolver import LessonResolver, ResolvedLesson, groups_overlap


class ConflictDetector(LoggingMixin):
    """Hard-rule checks for lesson placements"""

    def __init__(self, repository: ITimetableRepository, resolver: Optional[LessonResolver] = None):
        self.repository = repository
        self.resolver = resolver or LessonResolver(repository)

    def detect_conflicts(self, lesson: Lesson, schedule_id: int) -> List[Conflict]:
        """All conflicts of a (candidate or persisted) lesson

        Every check runs independently and every violation is returned.

        Args:
            lesson: the placement to check; its own id is excluded from the
                comparison set
            schedule_id: schedule the lesson belongs to

        Returns:
            list of Conflict (empty when the placement is feasible)
        """
        existing = [
            other for other in self.repository.find_lessons(
                schedule_id, day_of_week=lesson.day_of_week, time_slot_id=lesson.time_slot_id
            )
            if lesson.id is None or other.id != lesson.id
        ]

        candidate = self.resolver.resolve(lesson)
        others = [self.resolver.resolve(other) for other in existing]

        conflicts: List[Conflict] = []
        for check in (self._check_teacher_conflict,
                      self._check_room_conflict,
                      self._check_group_conflict):
            conflict = check(candidate, others)
            if conflict:
                conflicts.append(conflict)

        for check in (self._check_room_capacity, self._check_room_type):
            conflict = check(candidate)
            if conflict:
                conflicts.append(conflict)

        conflict = self._check_shift(candidate, self.resolver.reference_year(schedule_id))
        if conflict:
            conflicts.append(conflict)

        return conflicts

    def is_feasible(self, lesson: Lesson, schedule_id: int) -> bool:
        return not self.detect_conflicts(lesson, schedule_id)

    def get_all_conflicts(self, schedule_id: int) -> List[ConflictReport]:
        """Conflicts of every persisted lesson of a schedule"""
        reports = []
        for lesson in self.repository.find_lessons(schedule_id):
            conflicts = self.detect_conflicts(lesson, schedule_id)
            if conflicts:
                reports.append(ConflictReport(lesson=lesson, conflicts=conflicts))
        return reports

    def has_critical_conflicts(self, schedule_id: int) -> bool:
        return any(
            conflict.is_critical
            for report in self.get_all_conflicts(schedule_id)
            for conflict in report.conflicts
        )

    def get_conflict_stats(self, schedule_id: int) -> Dict[str, Any]:
        """Conflict counts by type and severity"""
        by_type: Counter = Counter()
        by_severity: Counter = Counter({severity.value: 0 for severity in Severity})
        for report in self.get_all_conflicts(schedule_id):
            for conflict in report.conflicts:
                by_type[conflict.type.value] += 1
                by_severity[conflict.severity.value] += 1
        return {
            'total': sum(by_type.values()),
            'by_type': dict(by_type),
            'by_severity': dict(by_severity),
        }

    # --- pairwise checks -------------------------------------------------

    def _check_teacher_conflict(self, candidate: ResolvedLesson,
                                others: List[ResolvedLesson]) -> Optional[Conflict]:
        if candidate.teacher_id is None:
            return None
        for other in others:
            if other.teacher_id == candidate.teacher_id:
                return Conflict(
                    type=ConflictType.TEACHER_CONFLICT,
                    message="Teacher is already busy at this time",
                    conflicting_lesson_id=other.lesson.id,
                    details={
                        'teacher': str(candidate.teaching_load.teacher),
                        'group': str(other.group) if other.group else None,
                        'classroom': str(other.classroom) if other.classroom else None,
                    }
                )
        return None

    def _check_room_conflict(self, candidate: ResolvedLesson,
                             others: List[ResolvedLesson]) -> Optional[Conflict]:
        for other in others:
            if other.lesson.classroom_id == candidate.lesson.classroom_id:
                return Conflict(
                    type=ConflictType.ROOM_CONFLICT,
                    message="Classroom is already occupied",
                    conflicting_lesson_id=other.lesson.id,
                    details={
                        'classroom': str(candidate.classroom) if candidate.classroom else None,
                        'group': str(other.group) if other.group else None,
                        'teacher': str(other.teaching_load.teacher) if other.teaching_load else None,
                    }
                )
        return None

    def _check_group_conflict(self, candidate: ResolvedLesson,
                              others: List[ResolvedLesson]) -> Optional[Conflict]:
        for other in others:
            if groups_overlap(candidate, other):
                return Conflict(
                    type=ConflictType.GROUP_CONFLICT,
                    message="Group is already busy at this time",
                    conflicting_lesson_id=other.lesson.id,
                    details={
                        'group': str(candidate.group),
                        'subgroup': candidate.lesson.subgroup,
                        'conflicting_subgroup': other.lesson.subgroup,
                    }
                )
        return None

    # --- single-lesson checks -------------------------------------------

    def _check_room_capacity(self, candidate: ResolvedLesson) -> Optional[Conflict]:
        if candidate.classroom is None or candidate.group is None:
            return None
        required = candidate.group.student_count
        if candidate.classroom.fits(required):
            return None
        return Conflict(
            type=ConflictType.CAPACITY_INSUFFICIENT,
            message=f"Classroom capacity is too small ({candidate.classroom.capacity} < {required})",
            details={
                'classroom_capacity': candidate.classroom.capacity,
                'required_capacity': required,
                'classroom': str(candidate.classroom),
                'group': str(candidate.group),
            }
        )

    def _check_room_type(self, candidate: ResolvedLesson) -> Optional[Conflict]:
        if candidate.classroom is None:
            return None
        allowed = allowed_room_types(candidate.lesson.lesson_type)
        if candidate.classroom.type in allowed:
            return None
        return Conflict(
            type=ConflictType.WRONG_ROOM_TYPE,
            message="Classroom type does not suit the lesson",
            details={
                'lesson_type': candidate.lesson.lesson_type.value,
                'classroom_type': candidate.classroom.type.value,
                'classroom': str(candidate.classroom),
                'allowed_types': sorted(t.value for t in allowed),
            }
        )

    def _check_shift(self, candidate: ResolvedLesson,
                     reference_year: Optional[int]) -> Optional[Conflict]:
        if candidate.group is None or candidate.time_slot is None or reference_year is None:
            return None
        expected = candidate.group.required_shift(reference_year)
        if expected is None or candidate.time_slot.shift == expected:
            return None
        return Conflict(
            type=ConflictType.SHIFT_VIOLATION,
            message="Group must study in the other shift",
            details={
                'group': str(candidate.group),
                'course': candidate.group.course_number(reference_year),
                'expected_shift': expected.value,
                'actual_shift': candidate.time_slot.shift.value,
                'pair_number': candidate.time_slot.pair_number,
            }
        )
