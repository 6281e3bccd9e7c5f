from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SlotCreate(BaseModel):
    # Loose on purpose: required fields and formats are checked by the
    # allocation service so bulk items can fail one at a time with a 400.
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    section_id: str | None = None
    day: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    room_no: str | None = None


class SlotUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    day: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    room_no: str | None = None


class SlotOut(BaseModel):
    id: str
    section_id: str
    day: str
    start_time: str
    end_time: str
    room_no: str | None = None
    section_name: str | None = None
    course_id: str | None = None
    course_name: str | None = None
    course_code: str | None = None
    credit_hours: int | None = None
    teacher_id: str | None = None
    teacher_name: str | None = None
    department_name: str | None = None
    semester_id: str | None = None
    semester_name: str | None = None
    capacity: int | None = None
    enrolled_count: int | None = None

    model_config = {"from_attributes": True}


class SlotMutationOut(BaseModel):
    message: str
    slot: SlotOut


class MessageOut(BaseModel):
    message: str


class BulkSlotRequest(BaseModel):
    slots: list[dict[str, Any]] = Field(default_factory=list)


class BulkSlotFailure(BaseModel):
    slot: dict[str, Any]
    error: str


class BulkSlotResult(BaseModel):
    message: str
    success: list[SlotOut] = Field(default_factory=list)
    failed: list[BulkSlotFailure] = Field(default_factory=list)


class ClearSectionOut(BaseModel):
    message: str
    deleted_count: int
