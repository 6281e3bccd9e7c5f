"""Overlap detection along the room, teacher and section dimensions.

``check`` gates a single create or update and runs in O(n) against the slots
already stored for that semester and day. ``all_conflicts`` is the audit sweep
over a whole semester.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from college_timetable.schemas.conflict import (
    ConflictEntry,
    ConflictReport,
    PairConflict,
    PairedSlot,
    SemesterConflicts,
)
from college_timetable.services.intervals import TimeRange, overlaps
from college_timetable.services.slot_store import SlotFilter, SlotStore, slot_range


@dataclass(frozen=True)
class ProposedSlot:
    section_id: str
    time_range: TimeRange
    semester_id: str
    room_no: str | None = None
    teacher_id: str | None = None
    exclude_slot_id: str | None = None


def course_label(row: dict[str, Any]) -> str:
    return f"{row['course_code']} - {row['course_name']}"


def _entry(kind: str, row: dict[str, Any], **extra: Any) -> ConflictEntry:
    return ConflictEntry(
        type=kind,
        slot_id=row["id"],
        section_id=row["section_id"],
        conflicting_course=course_label(row),
        section=row["section_name"],
        day=row["day"],
        time=slot_range(row).label,
        **extra,
    )


class ConflictDetector:
    def __init__(self, store: SlotStore) -> None:
        self.store = store

    def _overlapping(self, proposed: ProposedSlot, filters: SlotFilter) -> list[dict[str, Any]]:
        return [
            row
            for row in self.store.query(filters)
            if row["id"] != proposed.exclude_slot_id and overlaps(slot_range(row), proposed.time_range)
        ]

    def check(self, proposed: ProposedSlot) -> ConflictReport:
        report = ConflictReport()
        day = proposed.time_range.day

        if proposed.room_no:
            rows = self._overlapping(
                proposed,
                SlotFilter(semester_id=proposed.semester_id, day=day, room_no=proposed.room_no),
            )
            # A section reusing its own room is governed by the section pass below.
            report.room = [
                _entry("Room Conflict", row, room=proposed.room_no)
                for row in rows
                if row["section_id"] != proposed.section_id
            ]

        if proposed.teacher_id:
            rows = self._overlapping(
                proposed,
                SlotFilter(semester_id=proposed.semester_id, day=day, teacher_id=proposed.teacher_id),
            )
            report.teacher = [_entry("Teacher Conflict", row, teacher=row["teacher_name"]) for row in rows]

        rows = self._overlapping(proposed, SlotFilter(day=day, section_id=proposed.section_id))
        report.section = [_entry("Section Conflict", row, room=row["room_no"]) for row in rows]

        report.has_conflicts = bool(report.room or report.teacher or report.section)
        return report

    def all_conflicts(self, semester_id: str) -> SemesterConflicts:
        """Pairwise sweep of a semester for room and teacher collisions.

        Section self-overlap is not reported here; ``check`` covers it at write time.
        """
        result = SemesterConflicts(semester_id=semester_id)
        by_day: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for row in self.store.query(SlotFilter(semester_id=semester_id)):
            by_day[row["day"]].append(row)

        for day, rows in by_day.items():
            for i, first in enumerate(rows):
                first_range = slot_range(first)
                for second in rows[i + 1:]:
                    if not overlaps(first_range, slot_range(second)):
                        continue
                    if first["room_no"] and first["room_no"] == second["room_no"]:
                        result.room.append(
                            PairConflict(
                                type="Room Conflict",
                                room=first["room_no"],
                                day=day,
                                slot1=_paired(first),
                                slot2=_paired(second),
                            )
                        )
                    if first["teacher_id"] and first["teacher_id"] == second["teacher_id"]:
                        result.teacher.append(
                            PairConflict(
                                type="Teacher Conflict",
                                teacher=first["teacher_name"],
                                day=day,
                                slot1=_paired(first),
                                slot2=_paired(second),
                            )
                        )

        result.total = len(result.room) + len(result.teacher)
        return result


def _paired(row: dict[str, Any]) -> PairedSlot:
    return PairedSlot(
        slot_id=row["id"],
        course=course_label(row),
        section=row["section_name"],
        time=slot_range(row).label,
    )
