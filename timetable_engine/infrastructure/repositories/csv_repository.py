"""CSV-backed repository

Loads a data directory of CSV files with pandas into the in-memory store and
writes schedules, lessons and optimization history back with ``flush``.

Reference files (read-only):
    semesters.csv, users.csv, buildings.csv, classrooms.csv, time_slots.csv,
    groups.csv, disciplines.csv, curricula.csv, teachers.csv,
    teaching_loads.csv, penalty_settings.csv
Working files (read and written):
    schedules.csv, lessons.csv, optimization_history.csv
"""
import itertools
import json
from datetime import datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ...domain.entities.classroom import Building, Classroom
from ...domain.entities.curriculum import AssessmentType, Curriculum, Discipline
from ...domain.entities.group import Group
from ...domain.entities.schedule import (
    GeneratedBy,
    Lesson,
    OptimizationAlgorithm,
    OptimizationHistory,
    OptimizationStatus,
    PenaltySettings,
    Schedule,
)
from ...domain.entities.semester import Semester, User, UserRole
from ...domain.entities.teaching_load import ApprovalStatus, Teacher, TeachingLoad
from ...domain.exceptions import PersistenceError
from ...domain.value_objects.lesson_type import ClassroomType, LessonType
from ...domain.value_objects.time_slot import DayOfWeek, Shift, TimeSlot
from .in_memory_repository import InMemoryTimetableRepository


SCHEDULE_COLUMNS = ['id', 'semester_id', 'name', 'created_by', 'semester_number', 'academic_year',
                    'is_active', 'is_published', 'generated_by', 'optimization_score', 'created_at']
LESSON_COLUMNS = ['id', 'schedule_id', 'teaching_load_id', 'lesson_type', 'day_of_week',
                  'time_slot_id', 'classroom_id', 'subgroup_number', 'is_double_lesson']
HISTORY_COLUMNS = ['id', 'schedule_id', 'algorithm', 'penalty_before', 'penalty_after',
                   'iterations_count', 'duration', 'improvements', 'status',
                   'penalty_settings_id', 'created_at']


def _optional(value: Any) -> Any:
    """None for empty CSV cells"""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _optional_int(value: Any) -> Optional[int]:
    value = _optional(value)
    return int(value) if value is not None else None


def _bool(value: Any, default: bool = False) -> bool:
    value = _optional(value)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


def _time(value: Any) -> time:
    return datetime.strptime(str(value).strip(), '%H:%M').time()


def _timestamp(value: Any) -> datetime:
    value = _optional(value)
    return datetime.fromisoformat(str(value)) if value is not None else datetime.now()


class CsvTimetableRepository(InMemoryTimetableRepository):
    """Repository over a directory of CSV files"""

    def __init__(self, data_dir: Path):
        super().__init__()
        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            raise PersistenceError(f"Data directory {self.data_dir} does not exist")
        self.load()

    # --- reading ----------------------------------------------------------

    def _read(self, name: str) -> pd.DataFrame:
        path = self.data_dir / f"{name}.csv"
        if not path.exists():
            self.logger.warning(f"{path} not found; no {name} loaded")
            return pd.DataFrame()
        try:
            return pd.read_csv(path, dtype=object, keep_default_na=False, encoding='utf-8')
        except (OSError, pd.errors.ParserError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}", entity=name) from e

    def _records(self, name: str) -> List[Dict[str, Any]]:
        return self._read(name).to_dict('records')

    def load(self) -> None:
        """(Re)load every CSV file of the data directory"""
        try:
            self._load_reference_data()
            self._load_working_data()
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Malformed data in {self.data_dir}: {e}") from e

        self.logger.info(
            f"Loaded {len(self.teaching_loads)} teaching loads, {len(self.classrooms)} classrooms, "
            f"{len(self.time_slots)} time slots, {len(self.schedules)} schedules "
            f"from {self.data_dir}"
        )

    def _load_reference_data(self) -> None:
        for row in self._records('semesters'):
            self.add_semester(Semester(
                id=int(row['id']),
                number=int(row['number']),
                academic_year=str(row['academic_year']),
                is_active=_bool(row.get('is_active'), True),
            ))

        for row in self._records('users'):
            self.add_user(User(id=int(row['id']), name=str(row['name']), role=UserRole(row['role'])))

        buildings = {
            int(row['id']): Building(id=int(row['id']), name=str(row['name']))
            for row in self._records('buildings')
        }
        for row in self._records('classrooms'):
            self.add_classroom(Classroom(
                id=int(row['id']),
                building=buildings[int(row['building_id'])],
                number=str(row['number']),
                capacity=int(row['capacity']),
                type=ClassroomType(_optional(row.get('type')) or 'STANDARD'),
            ))

        for row in self._records('time_slots'):
            self.add_time_slot(TimeSlot(
                id=int(row['id']),
                shift=Shift(row['shift']),
                pair_number=int(row['pair_number']),
                start_time=_time(row['start_time']),
                end_time=_time(row['end_time']),
            ))

        for row in self._records('groups'):
            shift = _optional(row.get('shift'))
            self.add_group(Group(
                id=int(row['id']),
                code=str(row['code']),
                student_count=int(row['student_count']),
                enrollment_year=_optional_int(row.get('enrollment_year')),
                shift=Shift(shift) if shift else None,
                lecture_subgroups=_optional_int(row.get('lecture_subgroups')) or 1,
                practical_subgroups=_optional_int(row.get('practical_subgroups')) or 1,
                lab_subgroups=_optional_int(row.get('lab_subgroups')) or 1,
            ))

        disciplines = {
            int(row['id']): Discipline(id=int(row['id']), name=str(row['name']),
                                       code=_optional(row.get('code')))
            for row in self._records('disciplines')
        }
        for row in self._records('curricula'):
            self.add_curriculum(Curriculum(
                id=int(row['id']),
                semester_id=int(row['semester_id']),
                discipline=disciplines[int(row['discipline_id'])],
                program_id=_optional_int(row.get('program_id')),
                hours_lecture=float(_optional(row.get('hours_lecture')) or 0),
                hours_practical=float(_optional(row.get('hours_practical')) or 0),
                hours_lab=float(_optional(row.get('hours_lab')) or 0),
                assessment_type=AssessmentType(_optional(row.get('assessment_type')) or 'EXAM'),
            ))

        teachers = {
            int(row['id']): Teacher(id=int(row['id']), first_name=str(row['first_name']),
                                    last_name=str(_optional(row.get('last_name')) or ""))
            for row in self._records('teachers')
        }
        for row in self._records('teaching_loads'):
            self.add_teaching_load(TeachingLoad(
                id=int(row['id']),
                semester_id=int(row['semester_id']),
                curriculum_id=int(row['curriculum_id']),
                teacher=teachers[int(row['teacher_id'])],
                group_id=int(row['group_id']),
                hours_lecture=float(_optional(row.get('hours_lecture')) or 0),
                hours_practical=float(_optional(row.get('hours_practical')) or 0),
                hours_lab=float(_optional(row.get('hours_lab')) or 0),
                status=ApprovalStatus(_optional(row.get('status')) or 'APPROVED'),
            ))

        for row in self._records('penalty_settings'):
            # malformed JSON is kept as raw text; the settings loader falls back to defaults
            raw = _optional(row.get('penalties')) or "{}"
            try:
                penalties = json.loads(raw)
            except json.JSONDecodeError:
                self.logger.warning(f"Penalty settings {row['id']} hold malformed JSON")
                penalties = raw
            self.add_penalty_settings(PenaltySettings(
                id=int(row['id']),
                semester_id=int(row['semester_id']),
                name=str(row['name']),
                penalties=penalties,
                is_default=_bool(row.get('is_default')),
                created_at=_timestamp(row.get('created_at')),
            ))

    def _load_working_data(self) -> None:
        self.schedules.clear()
        self.lessons.clear()
        self.history.clear()

        for row in self._records('schedules'):
            schedule = Schedule(
                id=int(row['id']),
                semester_id=int(row['semester_id']),
                name=str(row['name']),
                created_by=int(row['created_by']),
                semester_number=_optional_int(row.get('semester_number')),
                academic_year=_optional(row.get('academic_year')),
                is_active=_bool(row.get('is_active')),
                is_published=_bool(row.get('is_published')),
                generated_by=GeneratedBy(_optional(row.get('generated_by')) or 'ALGORITHM'),
                optimization_score=(float(row['optimization_score'])
                                    if _optional(row.get('optimization_score')) is not None else None),
                created_at=_timestamp(row.get('created_at')),
            )
            self.schedules[schedule.id] = schedule

        for row in self._records('lessons'):
            lesson = Lesson(
                id=int(row['id']),
                schedule_id=int(row['schedule_id']),
                teaching_load_id=int(row['teaching_load_id']),
                lesson_type=LessonType(row['lesson_type']),
                day_of_week=DayOfWeek(row['day_of_week']),
                time_slot_id=int(row['time_slot_id']),
                classroom_id=int(row['classroom_id']),
                subgroup_number=_optional_int(row.get('subgroup_number')),
                is_double_lesson=_bool(row.get('is_double_lesson')),
            )
            self.lessons[lesson.id] = lesson

        for row in self._records('optimization_history'):
            self.history.append(OptimizationHistory(
                id=int(row['id']),
                schedule_id=int(row['schedule_id']),
                algorithm=OptimizationAlgorithm(row['algorithm']),
                penalty_before=float(row['penalty_before']),
                penalty_after=float(row['penalty_after']),
                iterations_count=int(row['iterations_count']),
                duration=float(row['duration']),
                improvements=json.loads(_optional(row.get('improvements')) or "{}"),
                status=OptimizationStatus(_optional(row.get('status')) or 'COMPLETED'),
                penalty_settings_id=_optional_int(row.get('penalty_settings_id')),
                created_at=_timestamp(row.get('created_at')),
            ))

        self._schedule_ids = itertools.count(max(self.schedules, default=0) + 1)
        self._lesson_ids = itertools.count(max(self.lessons, default=0) + 1)
        self._history_ids = itertools.count(max((h.id for h in self.history), default=0) + 1)

    # --- writing ----------------------------------------------------------

    def flush(self) -> None:
        """Write schedules, lessons and history back to the data directory"""
        with self._lock:
            schedules = [
                {
                    'id': s.id,
                    'semester_id': s.semester_id,
                    'name': s.name,
                    'created_by': s.created_by,
                    'semester_number': s.semester_number,
                    'academic_year': s.academic_year,
                    'is_active': s.is_active,
                    'is_published': s.is_published,
                    'generated_by': s.generated_by.value,
                    'optimization_score': s.optimization_score,
                    'created_at': s.created_at.isoformat(),
                }
                for s in self.schedules.values()
            ]
            lessons = [lesson.to_dict() for lesson in self.lessons.values()]
            history = [
                {
                    'id': h.id,
                    'schedule_id': h.schedule_id,
                    'algorithm': h.algorithm.value,
                    'penalty_before': h.penalty_before,
                    'penalty_after': h.penalty_after,
                    'iterations_count': h.iterations_count,
                    'duration': h.duration,
                    'improvements': json.dumps(h.improvements, ensure_ascii=False),
                    'status': h.status.value,
                    'penalty_settings_id': h.penalty_settings_id,
                    'created_at': h.created_at.isoformat(),
                }
                for h in self.history
            ]

        self._write('schedules', schedules, SCHEDULE_COLUMNS)
        self._write('lessons', lessons, LESSON_COLUMNS)
        self._write('optimization_history', history, HISTORY_COLUMNS)
        self.logger.info(f"Saved {len(schedules)} schedules and {len(lessons)} lessons to {self.data_dir}")

    def _write(self, name: str, rows: List[Dict[str, Any]], columns: List[str]) -> None:
        path = self.data_dir / f"{name}.csv"
        frame = pd.DataFrame(rows, columns=columns)
        # nullable integer columns keep ids integral in the file
        for column in ('subgroup_number', 'semester_number', 'penalty_settings_id'):
            if column in frame.columns:
                frame[column] = frame[column].astype('Int64')
        try:
            frame.to_csv(path, index=False, encoding='utf-8')
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}", entity=name) from e
