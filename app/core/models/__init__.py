from app.core.models.setting import Setting
from app.core.models.student import Student
from app.core.models.student_attendance import StudentAttendance

__all__ = [
    "Setting",
    "Student",
    "StudentAttendance",
]
