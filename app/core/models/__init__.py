from app.core.models.semester import Semester
from app.core.models.section_model import Section
from app.core.models.course import Course
from app.core.models.class_model import AcademicClass
from app.core.models.class_schedule import ClassSchedule
from app.core.models.teacher import Teacher
from app.core.models.teacher_assignment import TeacherAssignment

__all__ = [
    "AcademicClass",
    "ClassSchedule",
    "Course",
    "Section",
    "Semester",
    "Teacher",
    "TeacherAssignment",
]
