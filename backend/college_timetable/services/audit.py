from __future__ import annotations

from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from college_timetable.models.activity_log import ActivityLog


class SlotAction(str, Enum):
    create = "timetable.slot.create"
    update = "timetable.slot.update"
    delete = "timetable.slot.delete"
    bulk_create = "timetable.slot.bulk_create"
    clear_section = "timetable.slot.clear_section"


# Clearing targets the section; every other action targets one slot.
ENTITY_TYPES: dict[SlotAction, str] = {SlotAction.clear_section: "course_section"}


def record_slot_activity(
    db: Session,
    action: SlotAction,
    *,
    actor_id: str | None,
    entity_id: str | None = None,
    **details: Any,
) -> ActivityLog:
    """Stage an audit row in the caller's transaction; it commits or rolls back with the slot write."""
    entry = ActivityLog(
        user_id=actor_id,
        action=action.value,
        entity_type=ENTITY_TYPES.get(action, "timetable_slot"),
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    return entry
