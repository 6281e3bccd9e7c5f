from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterator, Mapping, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from college_timetable.core.config import get_settings
from college_timetable.core.exceptions import (
    AppError,
    InternalError,
    ResourceNotFoundError,
    SlotConflictError,
    ValidationError,
)
from college_timetable.models.timetable_slot import ROOM_NO_MAX_LENGTH
from college_timetable.schemas.conflict import ConflictCheckRequest, ConflictReport, SemesterConflicts
from college_timetable.schemas.timetable import (
    BulkSlotFailure,
    BulkSlotResult,
    ClearSectionOut,
    SlotCreate,
    SlotOut,
    SlotUpdate,
)
from college_timetable.services.audit import SlotAction, record_slot_activity
from college_timetable.services.conflict_detector import ConflictDetector, ProposedSlot
from college_timetable.services.intervals import TimeRange
from college_timetable.services.semester import CurrentSemesterResolver
from college_timetable.services.slot_store import SectionInfo, SlotStore

logger = logging.getLogger(__name__)

REQUIRED_CREATE_FIELDS = ("section_id", "day", "start_time", "end_time")

PayloadT = TypeVar("PayloadT", SlotCreate, SlotUpdate)


def clean_room(value: str | None) -> str | None:
    if value is None:
        return None
    room = value.strip()
    if len(room) > ROOM_NO_MAX_LENGTH:
        raise ValidationError(f"Room number must be at most {ROOM_NO_MAX_LENGTH} characters")
    return room or None


def _parse_payload(schema: type[PayloadT], data: PayloadT | Mapping[str, Any]) -> PayloadT:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError("Invalid slot payload", details={"errors": errors}) from exc


def build_time_range(day: str, start_time: str, end_time: str) -> TimeRange:
    try:
        return TimeRange.build(day, start_time, end_time)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class AllocationService:
    """Creates, moves and removes slots, refusing anything that would overlap.

    Every mutation locks the owning semester, runs the conflict detector and
    writes inside one transaction, so two writers in the same semester cannot
    both pass the check for overlapping intervals.
    """

    def __init__(self, db: Session, resolver: CurrentSemesterResolver | None = None) -> None:
        self.db = db
        self.store = SlotStore(db)
        self.detector = ConflictDetector(self.store)
        self.resolver = resolver or CurrentSemesterResolver(db)
        self.settings = get_settings()

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Timetable store failure")
            raise InternalError() from exc
        except Exception:
            self.db.rollback()
            logger.exception("Unexpected failure while updating the timetable")
            raise

    def _require_section(self, section_id: str) -> SectionInfo:
        section = self.store.get_section(section_id)
        if section is None:
            raise ResourceNotFoundError("Course section", section_id, message="Course section not found")
        return section

    def _raise_on_conflict(self, proposed: ProposedSlot) -> None:
        report = self.detector.check(proposed)
        if report.has_conflicts:
            logger.info(
                "Rejected slot for section %s on %s %s: %d room, %d teacher, %d section conflict(s)",
                proposed.section_id,
                proposed.time_range.day,
                proposed.time_range.label,
                len(report.room),
                len(report.teacher),
                len(report.section),
            )
            raise SlotConflictError(report.model_dump())

    def _slot_out(self, slot_id: str) -> SlotOut:
        row = self.store.get_row(slot_id)
        if row is None:
            raise ResourceNotFoundError("Timetable slot", slot_id, message="Timetable slot not found")
        return SlotOut.model_validate(row)

    def _create(self, data: SlotCreate | Mapping[str, Any]) -> SlotOut:
        data = _parse_payload(SlotCreate, data)

        missing = [field for field in REQUIRED_CREATE_FIELDS if not getattr(data, field)]
        if missing:
            raise ValidationError(", ".join(f"{field} is required" for field in missing))

        time_range = build_time_range(data.day, data.start_time, data.end_time)
        section = self._require_section(data.section_id)
        room_no = clean_room(data.room_no) or section.default_room

        self.store.lock_semester(section.semester_id)
        self._raise_on_conflict(
            ProposedSlot(
                section_id=section.id,
                time_range=time_range,
                semester_id=section.semester_id,
                room_no=room_no,
                teacher_id=section.teacher_id,
            )
        )
        slot = self.store.insert(section_id=section.id, time_range=time_range, room_no=room_no)
        return self._slot_out(slot.id)

    def create_slot(self, data: SlotCreate | Mapping[str, Any], *, actor_id: str | None = None) -> SlotOut:
        with self._transaction():
            created = self._create(data)
            record_slot_activity(
                self.db,
                SlotAction.create,
                actor_id=actor_id,
                entity_id=created.id,
                section_id=created.section_id,
                day=created.day,
                room_no=created.room_no,
            )
        logger.info("Created timetable slot %s for section %s", created.id, created.section_id)
        return created

    def update_slot(
        self, slot_id: str, data: SlotUpdate | Mapping[str, Any], *, actor_id: str | None = None
    ) -> SlotOut:
        changes = _parse_payload(SlotUpdate, data).model_dump(exclude_unset=True)
        with self._transaction():
            current = self.store.get(slot_id)
            if current is None:
                raise ResourceNotFoundError("Timetable slot", slot_id, message="Timetable slot not found")
            section = self._require_section(current.section_id)

            time_range = build_time_range(
                changes.get("day") or current.day,
                changes.get("start_time") or current.start_time,
                changes.get("end_time") or current.end_time,
            )
            # An explicit null clears the room; an omitted field keeps it.
            room_no = clean_room(changes["room_no"]) if "room_no" in changes else current.room_no

            self.store.lock_semester(section.semester_id)
            self._raise_on_conflict(
                ProposedSlot(
                    section_id=section.id,
                    time_range=time_range,
                    semester_id=section.semester_id,
                    room_no=room_no,
                    teacher_id=section.teacher_id,
                    exclude_slot_id=slot_id,
                )
            )
            self.store.update(
                slot_id,
                {
                    "day": time_range.day,
                    "start_time": time_range.start_time,
                    "end_time": time_range.end_time,
                    "room_no": room_no,
                },
            )
            record_slot_activity(self.db, SlotAction.update, actor_id=actor_id, entity_id=slot_id, changes=changes)
            updated = self._slot_out(slot_id)
        logger.info("Updated timetable slot %s", slot_id)
        return updated

    def delete_slot(self, slot_id: str, *, actor_id: str | None = None) -> None:
        with self._transaction():
            if self.store.delete(slot_id) == 0:
                raise ResourceNotFoundError("Timetable slot", slot_id, message="Timetable slot not found")
            record_slot_activity(self.db, SlotAction.delete, actor_id=actor_id, entity_id=slot_id)
        logger.info("Deleted timetable slot %s", slot_id)

    def bulk_create_slots(self, items: list[Any], *, actor_id: str | None = None) -> BulkSlotResult:
        """Create every item independently inside one transaction.

        A rejected item (validation, missing section, conflict) is recorded in
        ``failed`` and the loop continues; the accepted items are committed
        together. Only an unexpected store failure rolls back the whole batch.
        """
        if not items:
            raise ValidationError("Slots array is required")
        if len(items) > self.settings.max_bulk_slots:
            raise ValidationError(f"At most {self.settings.max_bulk_slots} slots can be imported at once")

        success: list[SlotOut] = []
        failed: list[BulkSlotFailure] = []
        with self._transaction():
            for item in items:
                try:
                    success.append(self._create(item))
                except AppError as exc:
                    raw = item if isinstance(item, dict) else {"value": item}
                    failed.append(BulkSlotFailure(slot=raw, error=exc.message))
            record_slot_activity(
                self.db,
                SlotAction.bulk_create,
                actor_id=actor_id,
                created=[slot.id for slot in success],
                failed=len(failed),
            )

        logger.info("Bulk slot import finished: %d created, %d failed", len(success), len(failed))
        return BulkSlotResult(
            message=f"Created {len(success)} slots, {len(failed)} failed",
            success=success,
            failed=failed,
        )

    def clear_section_slots(self, section_id: str, *, actor_id: str | None = None) -> ClearSectionOut:
        with self._transaction():
            deleted = self.store.delete_by_section(section_id)
            record_slot_activity(
                self.db,
                SlotAction.clear_section,
                actor_id=actor_id,
                entity_id=section_id,
                deleted_count=deleted,
            )
        logger.info("Cleared %d timetable slot(s) for section %s", deleted, section_id)
        return ClearSectionOut(message=f"Deleted {deleted} timetable slots", deleted_count=deleted)

    def check_conflicts(self, data: ConflictCheckRequest) -> ConflictReport:
        """Dry run of the create/update gate; nothing is written."""
        time_range = build_time_range(data.day, data.start_time, data.end_time)
        section = self._require_section(data.section_id)
        return self.detector.check(
            ProposedSlot(
                section_id=section.id,
                time_range=time_range,
                semester_id=data.semester_id or section.semester_id,
                room_no=clean_room(data.room_no) or section.default_room,
                teacher_id=data.teacher_id or section.teacher_id,
                exclude_slot_id=data.exclude_slot_id,
            )
        )

    def semester_conflicts(self, semester_id: str | None = None) -> SemesterConflicts:
        return self.detector.all_conflicts(self.resolver.resolve(semester_id))
