from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, case, delete, select
from sqlalchemy.orm import Session

from college_timetable.core.exceptions import ResourceNotFoundError
from college_timetable.models.course import Course, CourseRegistration, CourseSection, RegistrationStatus
from college_timetable.models.department import Department
from college_timetable.models.people import Teacher
from college_timetable.models.semester import Semester
from college_timetable.models.timetable_slot import TimetableSlot
from college_timetable.services.intervals import DAY_INDEX, TimeRange

UPDATABLE_FIELDS = frozenset({"day", "start_time", "end_time", "room_no"})


@dataclass(frozen=True)
class SlotFilter:
    """Optional, AND-combined restrictions for :meth:`SlotStore.query`."""

    semester_id: str | None = None
    day: str | None = None
    section_id: str | None = None
    room_no: str | None = None
    teacher_id: str | None = None
    course_id: str | None = None
    # Only sections this student is registered in (status "registered").
    student_id: str | None = None


@dataclass(frozen=True)
class SectionInfo:
    id: str
    course_id: str
    semester_id: str
    teacher_id: str | None
    default_room: str | None
    section_name: str
    course_name: str
    course_code: str
    teacher_name: str | None


def semester_lock_statement(semester_id: str) -> Select:
    # Row lock serializing writers of one semester; SQLite drops FOR UPDATE
    # and serializes writers on its own.
    return select(Semester.id).where(Semester.id == semester_id).with_for_update()


def slot_range(row: dict[str, Any]) -> TimeRange:
    return TimeRange(day=row["day"], start_time=row["start_time"], end_time=row["end_time"])


class SlotStore:
    """Reads and writes timetable slots inside the caller's transaction.

    The store never commits; the allocation service owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _projection(self) -> Select:
        day_order = case(DAY_INDEX, value=TimetableSlot.day, else_=len(DAY_INDEX) + 1)
        return (
            select(
                TimetableSlot.id,
                TimetableSlot.section_id,
                TimetableSlot.day,
                TimetableSlot.start_time,
                TimetableSlot.end_time,
                TimetableSlot.room_no,
                CourseSection.section_name,
                CourseSection.capacity,
                CourseSection.course_id,
                CourseSection.teacher_id,
                CourseSection.semester_id,
                Course.name.label("course_name"),
                Course.code.label("course_code"),
                Course.credit_hours,
                Teacher.name.label("teacher_name"),
                Department.name.label("department_name"),
                Semester.name.label("semester_name"),
            )
            .select_from(TimetableSlot)
            .join(CourseSection, TimetableSlot.section_id == CourseSection.id)
            .join(Course, CourseSection.course_id == Course.id)
            .outerjoin(Teacher, CourseSection.teacher_id == Teacher.id)
            .outerjoin(Department, Course.department_id == Department.id)
            .join(Semester, CourseSection.semester_id == Semester.id)
            .order_by(day_order, TimetableSlot.start_time, TimetableSlot.room_no)
        )

    def query(self, filters: SlotFilter = SlotFilter()) -> list[dict[str, Any]]:
        statement = self._projection()
        if filters.semester_id is not None:
            statement = statement.where(CourseSection.semester_id == filters.semester_id)
        if filters.day is not None:
            statement = statement.where(TimetableSlot.day == filters.day)
        if filters.section_id is not None:
            statement = statement.where(TimetableSlot.section_id == filters.section_id)
        if filters.room_no is not None:
            statement = statement.where(TimetableSlot.room_no == filters.room_no)
        if filters.teacher_id is not None:
            statement = statement.where(CourseSection.teacher_id == filters.teacher_id)
        if filters.course_id is not None:
            statement = statement.where(CourseSection.course_id == filters.course_id)
        if filters.student_id is not None:
            statement = statement.join(
                CourseRegistration, CourseRegistration.section_id == CourseSection.id
            ).where(
                CourseRegistration.student_id == filters.student_id,
                CourseRegistration.semester_id == CourseSection.semester_id,
                CourseRegistration.status == RegistrationStatus.registered,
            )
        return [dict(row._mapping) for row in self.db.execute(statement)]

    def get(self, slot_id: str) -> TimetableSlot | None:
        return self.db.get(TimetableSlot, slot_id)

    def get_row(self, slot_id: str) -> dict[str, Any] | None:
        row = self.db.execute(self._projection().where(TimetableSlot.id == slot_id)).first()
        return dict(row._mapping) if row is not None else None

    def get_section(self, section_id: str) -> SectionInfo | None:
        row = self.db.execute(
            select(
                CourseSection.id,
                CourseSection.course_id,
                CourseSection.semester_id,
                CourseSection.teacher_id,
                CourseSection.room_no,
                CourseSection.section_name,
                Course.name,
                Course.code,
                Teacher.name,
            )
            .join(Course, CourseSection.course_id == Course.id)
            .outerjoin(Teacher, CourseSection.teacher_id == Teacher.id)
            .where(CourseSection.id == section_id)
        ).first()
        if row is None:
            return None
        return SectionInfo(
            id=row[0],
            course_id=row[1],
            semester_id=row[2],
            teacher_id=row[3],
            default_room=row[4],
            section_name=row[5],
            course_name=row[6],
            course_code=row[7],
            teacher_name=row[8],
        )

    def insert(self, *, section_id: str, time_range: TimeRange, room_no: str | None) -> TimetableSlot:
        slot = TimetableSlot(
            section_id=section_id,
            day=time_range.day,
            start_time=time_range.start_time,
            end_time=time_range.end_time,
            room_no=room_no,
        )
        self.db.add(slot)
        # Flush so later conflict checks in the same transaction see this slot.
        self.db.flush()
        return slot

    def update(self, slot_id: str, fields: dict[str, Any]) -> TimetableSlot:
        slot = self.get(slot_id)
        if slot is None:
            raise ResourceNotFoundError("Timetable slot", slot_id, message="Timetable slot not found")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update slot fields: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(slot, key, value)
        self.db.flush()
        return slot

    def delete(self, slot_id: str) -> int:
        result = self.db.execute(delete(TimetableSlot).where(TimetableSlot.id == slot_id))
        return result.rowcount or 0

    def delete_by_section(self, section_id: str) -> int:
        result = self.db.execute(delete(TimetableSlot).where(TimetableSlot.section_id == section_id))
        return result.rowcount or 0

    def lock_semester(self, semester_id: str) -> None:
        self.db.execute(semester_lock_statement(semester_id)).first()

    def distinct_rooms(self, semester_id: str | None = None) -> list[str]:
        statement = (
            select(TimetableSlot.room_no)
            .distinct()
            .join(CourseSection, TimetableSlot.section_id == CourseSection.id)
            .where(TimetableSlot.room_no.is_not(None))
            .order_by(TimetableSlot.room_no)
        )
        if semester_id is not None:
            statement = statement.where(CourseSection.semester_id == semester_id)
        return list(self.db.execute(statement).scalars())
