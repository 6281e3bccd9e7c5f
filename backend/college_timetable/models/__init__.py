from college_timetable.models.activity_log import ActivityLog  # noqa: F401
from college_timetable.models.course import (  # noqa: F401
    Course,
    CourseRegistration,
    CourseSection,
    RegistrationStatus,
)
from college_timetable.models.department import Department  # noqa: F401
from college_timetable.models.people import Student, Teacher  # noqa: F401
from college_timetable.models.semester import AcademicSession, Semester  # noqa: F401
from college_timetable.models.timetable_slot import TimetableSlot  # noqa: F401
from college_timetable.models.user import User, UserRole  # noqa: F401
