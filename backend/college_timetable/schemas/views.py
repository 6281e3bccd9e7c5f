from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from college_timetable.schemas.timetable import SlotOut

ExportType = Literal["student", "teacher", "room", "master"]


class TimetableView(BaseModel):
    semester_id: str
    timetable: dict[str, list[SlotOut]]
    slots: list[SlotOut]


class StudentTimetable(TimetableView):
    student_id: str


class TeachingSection(BaseModel):
    section_id: str
    section_name: str
    course_code: str
    course_name: str
    capacity: int | None = None
    room_no: str | None = None
    enrolled_count: int = 0
    slot_count: int = 0


class TeacherTimetable(TimetableView):
    teacher_id: str
    teacher_name: str
    # Every section taught this semester, scheduled or not.
    sections: list[TeachingSection] = Field(default_factory=list)


class RoomTimetable(TimetableView):
    room_no: str


class RoomList(BaseModel):
    rooms: list[str]
    count: int


class ExportPayload(BaseModel):
    type: ExportType
    title: str
    subtitle: str
    session: str
    semester: str
    generated_at: datetime
    institution: str
    timetable: dict[str, list[SlotOut]]
    slots: list[SlotOut]


class ExportResponse(BaseModel):
    message: str
    data: ExportPayload
