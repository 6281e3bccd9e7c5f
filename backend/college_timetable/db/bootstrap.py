from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import college_timetable.models  # noqa: F401
from college_timetable.db.base import Base
from college_timetable.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "semesters": {"id", "session_id", "is_active"},
    "course_sections": {"id", "course_id", "semester_id", "teacher_id", "room_no"},
    "course_registrations": {"id", "student_id", "section_id", "semester_id", "status"},
    "timetable_slots": {"id", "section_id", "day", "start_time", "end_time", "room_no"},
}


def _ensure_timetable_slot_updated_at_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "timetable_slots" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("timetable_slots")}
        if "updated_at" in column_names:
            return
        if connection.dialect.name == "postgresql":
            connection.execute(text("ALTER TABLE timetable_slots ADD COLUMN updated_at TIMESTAMPTZ"))
            return
        connection.execute(text("ALTER TABLE timetable_slots ADD COLUMN updated_at TIMESTAMP"))


def _ensure_registration_section_column() -> None:
    # Older databases registered students per course only.
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "course_registrations" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("course_registrations")}
        if "section_id" in column_names:
            return
        connection.execute(text("ALTER TABLE course_registrations ADD COLUMN section_id VARCHAR(36)"))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _ensure_timetable_slot_updated_at_column()
        _ensure_registration_section_column()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
