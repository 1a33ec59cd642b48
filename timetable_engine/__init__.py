"""University timetable engine

Construction, scoring and optimization of semester timetables.
"""

__version__ = "1.0.0"
