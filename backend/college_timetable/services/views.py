from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from college_timetable.core.config import get_settings
from college_timetable.core.exceptions import ResourceNotFoundError, ValidationError
from college_timetable.models.course import Course, CourseRegistration, CourseSection, RegistrationStatus
from college_timetable.models.department import Department
from college_timetable.models.people import Student, Teacher
from college_timetable.schemas.timetable import SlotOut
from college_timetable.schemas.views import (
    ExportPayload,
    ExportType,
    RoomList,
    RoomTimetable,
    StudentTimetable,
    TeacherTimetable,
    TeachingSection,
    TimetableView,
)
from college_timetable.services.intervals import group_by_day
from college_timetable.services.semester import CurrentSemesterResolver
from college_timetable.services.slot_store import SlotFilter, SlotStore

EXPORT_TITLES: dict[str, str] = {
    "student": "Student Timetable",
    "teacher": "Teacher Timetable",
    "room": "Room Timetable",
    "master": "Master Timetable",
}


def _as_view(rows: list[dict[str, Any]]) -> tuple[dict[str, list[SlotOut]], list[SlotOut]]:
    slots = [SlotOut.model_validate(row) for row in rows]
    return group_by_day(slots, day_of=lambda slot: slot.day), slots


class TimetableViewBuilder:
    """Read-only projections of the slot set: student, teacher, room, master."""

    def __init__(self, db: Session, resolver: CurrentSemesterResolver | None = None) -> None:
        self.db = db
        self.store = SlotStore(db)
        self.resolver = resolver or CurrentSemesterResolver(db)

    def _student(self, user_id: str) -> Student:
        student = self.db.execute(select(Student).where(Student.user_id == user_id)).scalar_one_or_none()
        if student is None:
            raise ResourceNotFoundError("Student", message="Student profile not found")
        return student

    def _teacher(self, user_id: str) -> Teacher:
        teacher = self.db.execute(select(Teacher).where(Teacher.user_id == user_id)).scalar_one_or_none()
        if teacher is None:
            raise ResourceNotFoundError("Teacher", message="Teacher profile not found")
        return teacher

    def _enrollment_counts(self, section_ids: set[str]) -> dict[str, int]:
        if not section_ids:
            return {}
        rows = self.db.execute(
            select(CourseRegistration.section_id, func.count(CourseRegistration.id))
            .where(
                CourseRegistration.section_id.in_(section_ids),
                CourseRegistration.status == RegistrationStatus.registered,
            )
            .group_by(CourseRegistration.section_id)
        )
        return {section_id: count for section_id, count in rows}

    def student_timetable(self, user_id: str, semester_id: str | None = None) -> StudentTimetable:
        student = self._student(user_id)
        target = self.resolver.resolve(semester_id)
        grouped, slots = _as_view(self.store.query(SlotFilter(semester_id=target, student_id=student.id)))
        return StudentTimetable(semester_id=target, student_id=student.id, timetable=grouped, slots=slots)

    def teacher_timetable(self, user_id: str, semester_id: str | None = None) -> TeacherTimetable:
        teacher = self._teacher(user_id)
        target = self.resolver.resolve(semester_id)
        taught = self.db.execute(
            select(CourseSection, Course.code, Course.name)
            .join(Course, CourseSection.course_id == Course.id)
            .where(CourseSection.teacher_id == teacher.id, CourseSection.semester_id == target)
            .order_by(Course.code, CourseSection.section_name)
        ).all()
        counts = self._enrollment_counts({section.id for section, _, _ in taught})

        rows = self.store.query(SlotFilter(semester_id=target, teacher_id=teacher.id))
        slot_counts = Counter(row["section_id"] for row in rows)
        for row in rows:
            row["enrolled_count"] = counts.get(row["section_id"], 0)
        grouped, slots = _as_view(rows)
        sections = [
            TeachingSection(
                section_id=section.id,
                section_name=section.section_name,
                course_code=code,
                course_name=name,
                capacity=section.capacity,
                room_no=section.room_no,
                enrolled_count=counts.get(section.id, 0),
                slot_count=slot_counts[section.id],
            )
            for section, code, name in taught
        ]
        return TeacherTimetable(
            semester_id=target,
            teacher_id=teacher.id,
            teacher_name=teacher.name,
            timetable=grouped,
            slots=slots,
            sections=sections,
        )

    def room_timetable(self, room_no: str | None, semester_id: str | None = None) -> RoomTimetable:
        room = (room_no or "").strip()
        if not room:
            raise ValidationError("Room number is required")
        target = self.resolver.resolve(semester_id)
        grouped, slots = _as_view(self.store.query(SlotFilter(semester_id=target, room_no=room)))
        return RoomTimetable(semester_id=target, room_no=room, timetable=grouped, slots=slots)

    def master_timetable(self, semester_id: str | None = None) -> TimetableView:
        target = self.resolver.resolve(semester_id)
        grouped, slots = _as_view(self.store.query(SlotFilter(semester_id=target)))
        return TimetableView(semester_id=target, timetable=grouped, slots=slots)

    def all_rooms(self, semester_id: str | None = None) -> RoomList:
        rooms = self.store.distinct_rooms(semester_id)
        return RoomList(rooms=rooms, count=len(rooms))

    def export_payload(
        self, kind: ExportType | str, target_id: str | None, semester_id: str | None = None
    ) -> ExportPayload:
        """Assemble what the document renderer needs; rendering happens elsewhere."""
        if kind == "student":
            view = self.student_timetable(target_id, semester_id)
            subtitle = self._student_subtitle(target_id)
        elif kind == "teacher":
            view = self.teacher_timetable(target_id, semester_id)
            subtitle = self._teacher_subtitle(target_id)
        elif kind == "room":
            view = self.room_timetable(target_id, semester_id)
            subtitle = f"Room: {view.room_no}"
        elif kind == "master":
            view = self.master_timetable(semester_id)
            subtitle = None
        else:
            raise ValidationError("Invalid timetable type")

        labels = self.resolver.labels(view.semester_id)
        if subtitle is None:
            subtitle = labels.semester if labels.semester != "N/A" else "All Classes"
        return ExportPayload(
            type=kind,
            title=EXPORT_TITLES[kind],
            subtitle=subtitle,
            session=labels.session,
            semester=labels.semester,
            generated_at=datetime.now(timezone.utc),
            institution=get_settings().institution_name,
            timetable=view.timetable,
            slots=view.slots,
        )

    def _student_subtitle(self, user_id: str) -> str:
        row = self.db.execute(
            select(Student.name, Student.roll_no, Department.name)
            .outerjoin(Department, Student.department_id == Department.id)
            .where(Student.user_id == user_id)
        ).first()
        if row is None:
            return "Unknown Student"
        name, roll_no, department = row
        return f"{name} ({roll_no or 'N/A'}) - {department or 'N/A'}"

    def _teacher_subtitle(self, user_id: str) -> str:
        row = self.db.execute(
            select(Teacher.name, Teacher.designation, Department.name)
            .outerjoin(Department, Teacher.department_id == Department.id)
            .where(Teacher.user_id == user_id)
        ).first()
        if row is None:
            return "Unknown Teacher"
        name, designation, department = row
        return f"{name} ({designation or 'Faculty'}) - {department or 'N/A'}"
