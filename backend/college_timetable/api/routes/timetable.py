from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from college_timetable.api.deps import (
    get_allocation_service,
    get_current_user,
    get_view_builder,
    require_roles,
)
from college_timetable.core.exceptions import ValidationError
from college_timetable.models.user import User, UserRole
from college_timetable.schemas.conflict import ConflictCheckRequest, ConflictReport, SemesterConflicts
from college_timetable.schemas.timetable import (
    BulkSlotRequest,
    BulkSlotResult,
    ClearSectionOut,
    MessageOut,
    SlotMutationOut,
    SlotOut,
)
from college_timetable.schemas.views import (
    ExportResponse,
    RoomList,
    RoomTimetable,
    StudentTimetable,
    TeacherTimetable,
    TimetableView,
)
from college_timetable.services.allocation import AllocationService
from college_timetable.services.slot_store import SlotFilter
from college_timetable.services.views import EXPORT_TITLES, TimetableViewBuilder

router = APIRouter()


@router.post("/", response_model=SlotMutationOut, status_code=status.HTTP_201_CREATED)
def create_slot(
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    service: AllocationService = Depends(get_allocation_service),
) -> SlotMutationOut:
    slot = service.create_slot(payload, actor_id=current_user.id)
    return SlotMutationOut(message="Timetable slot created successfully", slot=slot)


@router.post("/bulk", response_model=BulkSlotResult, status_code=status.HTTP_201_CREATED)
def bulk_create_slots(
    payload: BulkSlotRequest,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: AllocationService = Depends(get_allocation_service),
) -> BulkSlotResult:
    return service.bulk_create_slots(payload.slots, actor_id=current_user.id)


@router.put("/{slot_id}", response_model=SlotMutationOut)
def update_slot(
    slot_id: str,
    payload: dict[str, Any] = Body(...),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    service: AllocationService = Depends(get_allocation_service),
) -> SlotMutationOut:
    slot = service.update_slot(slot_id, payload, actor_id=current_user.id)
    return SlotMutationOut(message="Timetable slot updated successfully", slot=slot)


@router.delete("/{slot_id}", response_model=MessageOut)
def delete_slot(
    slot_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    service: AllocationService = Depends(get_allocation_service),
) -> MessageOut:
    service.delete_slot(slot_id, actor_id=current_user.id)
    return MessageOut(message="Timetable slot deleted successfully")


@router.delete("/section/{section_id}/clear", response_model=ClearSectionOut)
def clear_section_slots(
    section_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: AllocationService = Depends(get_allocation_service),
) -> ClearSectionOut:
    return service.clear_section_slots(section_id, actor_id=current_user.id)


@router.get("/conflicts", response_model=SemesterConflicts)
def get_all_conflicts(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.admin)),
    service: AllocationService = Depends(get_allocation_service),
) -> SemesterConflicts:
    del current_user
    return service.semester_conflicts(semester_id)


@router.post("/check-conflicts", response_model=ConflictReport)
def check_conflicts(
    payload: ConflictCheckRequest,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    service: AllocationService = Depends(get_allocation_service),
) -> ConflictReport:
    del current_user
    return service.check_conflicts(payload)


@router.get("/slots", response_model=list[SlotOut])
def list_slots(
    semester_id: str | None = Query(default=None),
    day: str | None = Query(default=None),
    section_id: str | None = Query(default=None),
    room_no: str | None = Query(default=None),
    teacher_id: str | None = Query(default=None),
    course_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
    service: AllocationService = Depends(get_allocation_service),
) -> list[SlotOut]:
    del current_user
    filters = SlotFilter(
        semester_id=semester_id,
        day=day,
        section_id=section_id,
        room_no=room_no,
        teacher_id=teacher_id,
        course_id=course_id,
    )
    return [SlotOut.model_validate(row) for row in service.store.query(filters)]


@router.get("/student", response_model=StudentTimetable)
def get_student_timetable(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.student)),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> StudentTimetable:
    return views.student_timetable(current_user.id, semester_id)


@router.get("/teacher", response_model=TeacherTimetable)
def get_teacher_timetable(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.teacher)),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> TeacherTimetable:
    return views.teacher_timetable(current_user.id, semester_id)


@router.get("/room", response_model=RoomTimetable)
def get_room_timetable(
    room_no: str | None = Query(default=None),
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> RoomTimetable:
    del current_user
    return views.room_timetable(room_no, semester_id)


@router.get("/master", response_model=TimetableView)
def get_master_timetable(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.admin)),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> TimetableView:
    del current_user
    return views.master_timetable(semester_id)


@router.get("/rooms", response_model=RoomList)
def get_all_rooms(
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> RoomList:
    del current_user
    return views.all_rooms(semester_id)


@router.get("/export", response_model=ExportResponse)
def export_timetable(
    type: str | None = Query(default=None),
    id: str | None = Query(default=None),
    semester_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    views: TimetableViewBuilder = Depends(get_view_builder),
) -> ExportResponse:
    if not type:
        raise ValidationError("Timetable type is required (student/teacher/room/master)")
    if type not in EXPORT_TITLES:
        raise ValidationError("Invalid timetable type")

    target_id = id
    if type in ("student", "teacher") and not target_id:
        target_id = current_user.id
    elif type == "room" and not target_id:
        raise ValidationError("Room number (id) is required for room timetable")

    payload = views.export_payload(type, target_id, semester_id)
    return ExportResponse(message="Timetable export data generated successfully", data=payload)
