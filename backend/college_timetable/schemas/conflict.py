from pydantic import BaseModel, Field
from typing import Literal, Optional, List


class ConflictEntry(BaseModel):
    type: Literal["Room Conflict", "Teacher Conflict", "Section Conflict"]
    slot_id: str
    section_id: str
    conflicting_course: str  # "CODE - Name"
    section: Optional[str] = None
    room: Optional[str] = None
    teacher: Optional[str] = None
    day: str
    time: str  # "HH:MM - HH:MM"


class ConflictReport(BaseModel):
    has_conflicts: bool = False
    room: List[ConflictEntry] = Field(default_factory=list)
    teacher: List[ConflictEntry] = Field(default_factory=list)
    section: List[ConflictEntry] = Field(default_factory=list)


class ConflictCheckRequest(BaseModel):
    """Dry-run input; teacher and semester default to the section's own."""
    section_id: str
    day: str
    start_time: str
    end_time: str
    room_no: Optional[str] = None
    teacher_id: Optional[str] = None
    semester_id: Optional[str] = None
    exclude_slot_id: Optional[str] = None


class PairedSlot(BaseModel):
    slot_id: str
    course: str
    section: Optional[str] = None
    time: str


class PairConflict(BaseModel):
    type: Literal["Room Conflict", "Teacher Conflict"]
    room: Optional[str] = None
    teacher: Optional[str] = None
    day: str
    slot1: PairedSlot
    slot2: PairedSlot


class SemesterConflicts(BaseModel):
    semester_id: str
    room: List[PairConflict] = Field(default_factory=list)
    teacher: List[PairConflict] = Field(default_factory=list)
    total: int = 0
