"""Soft constraints (quality preferences)

Gaps and adjacency are measured on the daily slot ordinal, so the last
morning pair and the first afternoon pair count as consecutive.
"""
from typing import List

from .base import ConstraintResult, PenaltyViolation, ScheduleSnapshot, SoftConstraint
from ..value_objects.penalty_weights import PenaltyWeights


class _GapConstraint(SoftConstraint):
    """Idle slots between the lessons of one owner on one day"""

    violation_type = ""
    weight_attr = ""

    def owner_key(self, resolved):
        raise NotImplementedError

    def owner_label(self, resolved) -> str:
        raise NotImplementedError

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        weight = getattr(weights, self.weight_attr)
        violations: List[PenaltyViolation] = []
        buckets = snapshot.group_by(
            lambda r: (self.owner_key(r), r.lesson.day_of_week) if self.owner_key(r) is not None else None
        )

        for (_, day), lessons in buckets.items():
            ordered = snapshot.sorted_by_ordinal(lessons)
            for current, following in zip(ordered, ordered[1:]):
                gap = snapshot.ordinal(following) - snapshot.ordinal(current) - 1
                if gap <= 0:
                    continue
                violations.append(PenaltyViolation(
                    type=self.violation_type,
                    penalty=gap * weight,
                    lesson_id=following.lesson.id,
                    details=f"{gap} idle slot(s) for {self.owner_label(current)} on {day.value}",
                    context={'gap': gap},
                ))

        return ConstraintResult(self.name, violations)


class StudentGapConstraint(_GapConstraint):
    violation_type = 'STUDENT_GAP'
    weight_attr = 'student_gap_penalty'

    def __init__(self):
        super().__init__("Student gaps", "idle slots between a group's lessons")

    def owner_key(self, resolved):
        return resolved.group_id

    def owner_label(self, resolved) -> str:
        return f"group {resolved.group}"


class TeacherGapConstraint(_GapConstraint):
    violation_type = 'TEACHER_GAP'
    weight_attr = 'teacher_gap_penalty'

    def __init__(self):
        super().__init__("Teacher gaps", "idle slots between a teacher's lessons")

    def owner_key(self, resolved):
        return resolved.teacher_id

    def owner_label(self, resolved) -> str:
        return f"teacher {resolved.teaching_load.teacher}"


class TimePreferenceConstraint(SoftConstraint):
    """Early (first pair of a shift) and late lessons"""

    def __init__(self):
        super().__init__("Time preferences", "avoid first pairs and late slots")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        violations: List[PenaltyViolation] = []
        for resolved in snapshot.lessons:
            group = resolved.group or "unknown group"
            if resolved.time_slot is not None and resolved.time_slot.is_first_of_shift():
                violations.append(PenaltyViolation(
                    type='EARLY_LESSON',
                    penalty=weights.early_lesson_penalty,
                    lesson_id=resolved.lesson.id,
                    details=f"Early lesson for group {group}",
                ))
            if snapshot.ordinal(resolved) >= weights.late_slot_threshold:
                violations.append(PenaltyViolation(
                    type='LATE_LESSON',
                    penalty=weights.late_lesson_penalty,
                    lesson_id=resolved.lesson.id,
                    details=f"Late lesson for group {group}",
                ))
        return ConstraintResult(self.name, violations)


class ClassroomChangeConstraint(SoftConstraint):
    """Room change inside a logical double session

    Lessons of the same group, discipline, day and type in consecutive slots
    form a double session and should stay in one room.
    """

    def __init__(self):
        super().__init__("Classroom changes", "double sessions keep their room")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        violations: List[PenaltyViolation] = []

        def session_key(resolved):
            if resolved.group_id is None or resolved.teaching_load is None:
                return None
            return (resolved.group_id, resolved.teaching_load.curriculum_id,
                    resolved.lesson.day_of_week, resolved.lesson.lesson_type)

        for lessons in snapshot.group_by(session_key).values():
            ordered = snapshot.sorted_by_ordinal(lessons)
            for current, following in zip(ordered, ordered[1:]):
                if snapshot.ordinal(following) != snapshot.ordinal(current) + 1:
                    continue
                if current.lesson.classroom_id == following.lesson.classroom_id:
                    continue
                violations.append(PenaltyViolation(
                    type='CLASSROOM_CHANGE',
                    penalty=weights.classroom_change_penalty,
                    lesson_id=following.lesson.id,
                    details=f"Room change inside a double session of group {current.group}",
                ))

        return ConstraintResult(self.name, violations)


class BuildingChangeConstraint(SoftConstraint):
    """Building change between a group's lessons at most two slots apart"""

    max_distance = 2

    def __init__(self):
        super().__init__("Building changes", "no building hops between close lessons")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        violations: List[PenaltyViolation] = []
        buckets = snapshot.group_by(
            lambda r: (r.group_id, r.lesson.day_of_week) if r.group_id is not None else None
        )

        for lessons in buckets.values():
            ordered = snapshot.sorted_by_ordinal(lessons)
            for current, following in zip(ordered, ordered[1:]):
                if current.classroom is None or following.classroom is None:
                    continue
                distance = snapshot.ordinal(following) - snapshot.ordinal(current)
                if distance > self.max_distance:
                    continue
                if current.classroom.building.id == following.classroom.building.id:
                    continue
                violations.append(PenaltyViolation(
                    type='BUILDING_CHANGE',
                    penalty=weights.building_change_penalty,
                    lesson_id=following.lesson.id,
                    details=(f"Group {current.group} moves from {current.classroom.building} "
                             f"to {following.classroom.building}"),
                ))

        return ConstraintResult(self.name, violations)


def default_soft_constraints() -> List[SoftConstraint]:
    return [
        StudentGapConstraint(),
        TeacherGapConstraint(),
        TimePreferenceConstraint(),
        ClassroomChangeConstraint(),
        BuildingChangeConstraint(),
    ]
