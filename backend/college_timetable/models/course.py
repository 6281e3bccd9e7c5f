import uuid
from enum import Enum

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from college_timetable.db.base import Base


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    credit_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    department_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("departments.id"), nullable=True)


class CourseSection(Base):
    __tablename__ = "course_sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False
    )
    semester_id: Mapped[str] = mapped_column(String(36), ForeignKey("semesters.id"), index=True, nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("teachers.id"), index=True, nullable=True)
    section_name: Mapped[str] = mapped_column(String(10), nullable=False, default="A")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    room_no: Mapped[str | None] = mapped_column(String(20), nullable=True)


class RegistrationStatus(str, Enum):
    registered = "registered"
    dropped = "dropped"
    completed = "completed"


class CourseRegistration(Base):
    __tablename__ = "course_registrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False
    )
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("course_sections.id", ondelete="CASCADE"), index=True, nullable=False
    )
    semester_id: Mapped[str] = mapped_column(String(36), ForeignKey("semesters.id"), nullable=False)
    status: Mapped[RegistrationStatus] = mapped_column(
        SAEnum(RegistrationStatus, name="registration_status"),
        nullable=False,
        default=RegistrationStatus.registered,
    )
