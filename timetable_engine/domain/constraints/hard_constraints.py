"""Hard constraints scored by the penalty calculator

Double-booking rules compare every pair of lessons sharing a (day, slot);
each offending pair is one violation. The remaining rules are checked per
lesson.
"""
from abc import abstractmethod
from itertools import combinations
from typing import List

from .base import ConstraintResult, HardConstraint, PenaltyViolation, ScheduleSnapshot
from ..services.lesson_resolver import ResolvedLesson, groups_overlap
from ..value_objects.lesson_type import allowed_room_types
from ..value_objects.penalty_weights import PenaltyWeights


class PairwiseHardConstraint(HardConstraint):
    """Hard constraint broken by two lessons in the same (day, slot)"""

    weight_key: str = ""

    @abstractmethod
    def clashes(self, first: ResolvedLesson, second: ResolvedLesson) -> bool:
        pass

    @abstractmethod
    def describe(self, first: ResolvedLesson, second: ResolvedLesson) -> str:
        pass

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        weight = weights.hard_weight(self.weight_key)
        violations: List[PenaltyViolation] = []
        buckets = snapshot.group_by(lambda r: r.lesson.position)

        for lessons in buckets.values():
            for first, second in combinations(lessons, 2):
                if self.clashes(first, second):
                    violations.append(PenaltyViolation(
                        type=self.weight_key.upper(),
                        penalty=weight,
                        lesson_id=second.lesson.id,
                        details=self.describe(first, second),
                        context={'other_lesson_id': first.lesson.id},
                    ))

        return ConstraintResult(self.name, violations)


class TeacherDoubleBookingConstraint(PairwiseHardConstraint):
    """A teacher cannot be in two places at once"""

    weight_key = 'teacher_double_booking'

    def __init__(self):
        super().__init__("Teacher double booking", "a teacher teaches one lesson per slot")

    def clashes(self, first: ResolvedLesson, second: ResolvedLesson) -> bool:
        return first.teacher_id is not None and first.teacher_id == second.teacher_id

    def describe(self, first: ResolvedLesson, second: ResolvedLesson) -> str:
        return (f"Teacher {second.teaching_load.teacher} is busy on "
                f"{second.lesson.day_of_week.value}, slot {second.lesson.time_slot_id}")


class RoomDoubleBookingConstraint(PairwiseHardConstraint):
    """A classroom hosts one lesson per slot"""

    weight_key = 'room_double_booking'

    def __init__(self):
        super().__init__("Room double booking", "a classroom hosts one lesson per slot")

    def clashes(self, first: ResolvedLesson, second: ResolvedLesson) -> bool:
        return first.lesson.classroom_id == second.lesson.classroom_id

    def describe(self, first: ResolvedLesson, second: ResolvedLesson) -> str:
        room = second.classroom or second.lesson.classroom_id
        return (f"Classroom {room} is occupied on "
                f"{second.lesson.day_of_week.value}, slot {second.lesson.time_slot_id}")


class GroupDoubleBookingConstraint(PairwiseHardConstraint):
    """A group (or overlapping subgroup) attends one lesson per slot"""

    weight_key = 'group_double_booking'

    def __init__(self):
        super().__init__("Group double booking", "a group attends one lesson per slot")

    def clashes(self, first: ResolvedLesson, second: ResolvedLesson) -> bool:
        return groups_overlap(first, second)

    def describe(self, first: ResolvedLesson, second: ResolvedLesson) -> str:
        return (f"Group {second.group} is busy on "
                f"{second.lesson.day_of_week.value}, slot {second.lesson.time_slot_id}")


class RoomOverflowConstraint(HardConstraint):
    """The classroom seats the whole group"""

    weight_key = 'room_overflow'

    def __init__(self):
        super().__init__("Room overflow", "classroom capacity covers the group size")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        weight = weights.hard_weight(self.weight_key)
        violations = []
        for resolved in snapshot.lessons:
            if resolved.classroom is None or resolved.group is None:
                continue
            if not resolved.classroom.fits(resolved.group.student_count):
                violations.append(PenaltyViolation(
                    type='ROOM_OVERFLOW',
                    penalty=weight,
                    lesson_id=resolved.lesson.id,
                    details=(f"Classroom {resolved.classroom} ({resolved.classroom.capacity} seats) "
                             f"is too small for group {resolved.group} "
                             f"({resolved.group.student_count} students)"),
                ))
        return ConstraintResult(self.name, violations)


class WrongSpecializationConstraint(HardConstraint):
    """The classroom type suits the lesson type"""

    weight_key = 'wrong_specialization'

    def __init__(self):
        super().__init__("Wrong specialization", "classroom type matches the lesson type")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        weight = weights.hard_weight(self.weight_key)
        violations = []
        for resolved in snapshot.lessons:
            if resolved.classroom is None:
                continue
            lesson_type = resolved.lesson.lesson_type
            if resolved.classroom.type not in allowed_room_types(lesson_type):
                violations.append(PenaltyViolation(
                    type='WRONG_SPECIALIZATION',
                    penalty=weight,
                    lesson_id=resolved.lesson.id,
                    details=(f"Classroom {resolved.classroom} ({resolved.classroom.type.value}) "
                             f"does not suit {lesson_type.value}"),
                ))
        return ConstraintResult(self.name, violations)


class ShiftViolationConstraint(HardConstraint):
    """Groups study in the shift of their course"""

    weight_key = 'shift_violation'

    def __init__(self):
        super().__init__("Shift violation", "lessons fall into the group's shift")

    def evaluate(self, snapshot: ScheduleSnapshot, weights: PenaltyWeights) -> ConstraintResult:
        weight = weights.hard_weight(self.weight_key)
        violations = []
        if snapshot.reference_year is None:
            return ConstraintResult(self.name, violations)

        for resolved in snapshot.lessons:
            if resolved.group is None or resolved.time_slot is None:
                continue
            expected = resolved.group.required_shift(snapshot.reference_year)
            if expected is None or resolved.time_slot.shift == expected:
                continue
            course = resolved.group.course_number(snapshot.reference_year)
            violations.append(PenaltyViolation(
                type='SHIFT_VIOLATION',
                penalty=weight,
                lesson_id=resolved.lesson.id,
                details=(f"Group {resolved.group} (course {course}) belongs to the "
                         f"{expected.value} shift but has a lesson in {resolved.time_slot.shift.value}"),
            ))
        return ConstraintResult(self.name, violations)


def default_hard_constraints() -> List[HardConstraint]:
    return [
        TeacherDoubleBookingConstraint(),
        RoomDoubleBookingConstraint(),
        GroupDoubleBookingConstraint(),
        RoomOverflowConstraint(),
        WrongSpecializationConstraint(),
        ShiftViolationConstraint(),
    ]
