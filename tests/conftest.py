"""Shared fixtures: a small faculty with two groups and one week grid"""
import random
from datetime import time

import pytest

from timetable_engine.application.timetable_service import TimetableService
from timetable_engine.domain.entities.classroom import Building, Classroom
from timetable_engine.domain.entities.curriculum import Curriculum, Discipline
from timetable_engine.domain.entities.group import Group
from timetable_engine.domain.entities.schedule import Lesson, Schedule
from timetable_engine.domain.entities.semester import Semester, User, UserRole
from timetable_engine.domain.entities.teaching_load import Teacher, TeachingLoad
from timetable_engine.domain.value_objects.lesson_type import ClassroomType, LessonType
from timetable_engine.domain.value_objects.time_slot import DayOfWeek, Shift, TimeSlot
from timetable_engine.infrastructure.config.engine_config import EngineConfig
from timetable_engine.infrastructure.repositories.in_memory_repository import InMemoryTimetableRepository


MAIN = Building(1, "Main")
LAB_BUILDING = Building(2, "Lab building")

PETROV = Teacher(1, "Ivan", "Petrov")
SIDOROVA = Teacher(2, "Anna", "Sidorova")

PROGRAMMING = Discipline(1, "Programming", "CS101")
MATHEMATICS = Discipline(2, "Mathematics", "MA101")

# ids of the seeded records
DISPATCHER_ID = 1
TEACHER_USER_ID = 2
FIRST_COURSE_GROUP_ID = 1   # ИС-24-1к, first course in 2024-2025 -> morning shift
SECOND_COURSE_GROUP_ID = 2  # ПИ-23-1к, second course in 2024-2025 -> afternoon shift
ROOM_101 = 1                # standard, 30 seats, main building
LECTURE_HALL = 2            # lecture hall, 120 seats, main building
COMPUTER_LAB = 3            # computer lab, 25 seats, lab building
PROGRAMMING_LOAD = 1        # Petrov -> ИС-24-1к, 3 h lectures + 3 h labs
MATHEMATICS_LOAD = 2        # Sidorova -> ПИ-23-1к, 3 h lectures + 3 h practice


def build_time_slots():
    """Three morning and three afternoon pairs (daily ordinals 1..6)"""
    return [
        TimeSlot(1, Shift.MORNING, 1, time(8, 0), time(9, 30)),
        TimeSlot(2, Shift.MORNING, 2, time(9, 40), time(11, 10)),
        TimeSlot(3, Shift.MORNING, 3, time(11, 20), time(12, 50)),
        TimeSlot(4, Shift.AFTERNOON, 1, time(13, 30), time(15, 0)),
        TimeSlot(5, Shift.AFTERNOON, 2, time(15, 10), time(16, 40)),
        TimeSlot(6, Shift.AFTERNOON, 3, time(16, 50), time(18, 20)),
    ]


def seed_repository(repository):
    repository.add_all([
        Semester(1, 1, "2024-2025"),
        User(DISPATCHER_ID, "dispatcher", UserRole.DISPATCHER),
        User(TEACHER_USER_ID, "petrov", UserRole.TEACHER),
        Classroom(ROOM_101, MAIN, "101", 30, ClassroomType.STANDARD),
        Classroom(LECTURE_HALL, MAIN, "Hall A", 120, ClassroomType.LECTURE_HALL),
        Classroom(COMPUTER_LAB, LAB_BUILDING, "201", 25, ClassroomType.COMPUTER_LAB),
        Group(FIRST_COURSE_GROUP_ID, "ИС-24-1к", 25, practical_subgroups=2),
        Group(SECOND_COURSE_GROUP_ID, "ПИ-23-1к", 20),
        Curriculum(1, 1, PROGRAMMING, hours_lecture=3, hours_lab=3),
        Curriculum(2, 1, MATHEMATICS, hours_lecture=3, hours_practical=3),
        TeachingLoad(PROGRAMMING_LOAD, 1, 1, PETROV, FIRST_COURSE_GROUP_ID,
                     hours_lecture=3, hours_lab=3),
        TeachingLoad(MATHEMATICS_LOAD, 1, 2, SIDOROVA, SECOND_COURSE_GROUP_ID,
                     hours_lecture=3, hours_practical=3),
    ])
    repository.add_all(build_time_slots())
    return repository


@pytest.fixture
def repository():
    return seed_repository(InMemoryTimetableRepository())


@pytest.fixture
def schedule_id(repository):
    """An empty draft schedule of semester 1"""
    schedule = repository.create_schedule(Schedule(semester_id=1, name="Draft", created_by=DISPATCHER_ID))
    return schedule.id


@pytest.fixture
def make_lesson(repository, schedule_id):
    """Factory persisting a lesson into the draft schedule"""
    def _make(teaching_load_id=PROGRAMMING_LOAD, day=DayOfWeek.MONDAY, time_slot_id=2,
              classroom_id=LECTURE_HALL, lesson_type=LessonType.LECTURE,
              subgroup_number=None, persist=True):
        lesson = Lesson(
            schedule_id=schedule_id,
            teaching_load_id=teaching_load_id,
            lesson_type=lesson_type,
            day_of_week=day,
            time_slot_id=time_slot_id,
            classroom_id=classroom_id,
            subgroup_number=subgroup_number,
        )
        return repository.create_lesson(lesson) if persist else lesson
    return _make


@pytest.fixture
def engine_config():
    return EngineConfig(random_seed=7)


@pytest.fixture
def service(repository, engine_config):
    return TimetableService(repository, engine_config, rng=random.Random(7))


DATA_FILES = {
    'semesters': "id,number,academic_year,is_active\n1,1,2024-2025,true\n",
    'users': "id,name,role\n1,dispatcher,DISPATCHER\n2,petrov,TEACHER\n",
    'buildings': "id,name\n1,Main\n2,Lab building\n",
    'classrooms': (
        "id,building_id,number,capacity,type\n"
        "1,1,101,30,STANDARD\n"
        "2,1,Hall A,120,LECTURE_HALL\n"
        "3,2,201,25,COMPUTER_LAB\n"
    ),
    'time_slots': (
        "id,shift,pair_number,start_time,end_time\n"
        "1,MORNING,1,08:00,09:30\n"
        "2,MORNING,2,09:40,11:10\n"
        "3,MORNING,3,11:20,12:50\n"
        "4,AFTERNOON,1,13:30,15:00\n"
        "5,AFTERNOON,2,15:10,16:40\n"
        "6,AFTERNOON,3,16:50,18:20\n"
    ),
    'groups': (
        "id,code,student_count,enrollment_year,shift,lecture_subgroups,practical_subgroups,lab_subgroups\n"
        "1,ИС-24-1к,25,,,1,2,1\n"
        "2,ПИ-23-1к,20,,,,,\n"
    ),
    'disciplines': "id,name,code\n1,Programming,CS101\n2,Mathematics,MA101\n",
    'curricula': (
        "id,semester_id,discipline_id,hours_lecture,hours_practical,hours_lab,assessment_type\n"
        "1,1,1,3,0,3,EXAM\n"
        "2,1,2,3,3,0,CREDIT\n"
    ),
    'teachers': "id,first_name,last_name\n1,Ivan,Petrov\n2,Anna,Sidorova\n",
    'teaching_loads': (
        "id,semester_id,curriculum_id,teacher_id,group_id,hours_lecture,hours_practical,hours_lab,status\n"
        "1,1,1,1,1,3,0,3,APPROVED\n"
        "2,1,2,2,2,3,3,0,DRAFT\n"
    ),
    'penalty_settings': (
        "id,semester_id,name,penalties,is_default,created_at\n"
        '1,1,standard,"{""early_lesson_penalty"": 12}",true,2024-09-01T00:00:00\n'
    ),
}


def write_data_dir(path):
    """Write the CSV rendition of the seeded faculty into ``path``"""
    path.mkdir(parents=True, exist_ok=True)
    for name, content in DATA_FILES.items():
        (path / f"{name}.csv").write_text(content, encoding='utf-8')
    return path


@pytest.fixture
def data_dir(tmp_path):
    return write_data_dir(tmp_path / "data")
