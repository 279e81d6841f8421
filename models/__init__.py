from models.teacher import Teacher
from models.course import Course
from models.section import Section
from models.group_class import GroupClass
from models.assignment import Assignment
from models.classroom import Classroom
from models.timeslot import Slot
from models.program_data import ProgramData, FeasibilityReport

__all__ = [
    "Teacher",
    "Course",
    "Section",
    "GroupClass",
    "Assignment",
    "Classroom",
    "Slot",
    "ProgramData",
    "FeasibilityReport",
]
