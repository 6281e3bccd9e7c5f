from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from college_timetable.core.exceptions import ResourceNotFoundError
from college_timetable.models.semester import AcademicSession, Semester


@dataclass(frozen=True)
class SemesterLabels:
    session: str
    semester: str


class CurrentSemesterResolver:
    """Resolves an explicit semester id, falling back to the active one.

    Injected into the allocation service and the view builder so tests can
    substitute a fixed semester.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def active_semester_id(self) -> str | None:
        return self.db.execute(
            select(Semester.id)
            .join(AcademicSession, Semester.session_id == AcademicSession.id)
            .where(AcademicSession.is_active.is_(True), Semester.is_active.is_(True))
            .order_by(Semester.start_date.desc())
            .limit(1)
        ).scalar_one_or_none()

    def resolve(self, semester_id: str | None = None) -> str:
        if semester_id:
            return semester_id
        active = self.active_semester_id()
        if active is None:
            raise ResourceNotFoundError("Semester", message="No active semester found")
        return active

    def labels(self, semester_id: str) -> SemesterLabels:
        row = self.db.execute(
            select(Semester.name, AcademicSession.name)
            .join(AcademicSession, Semester.session_id == AcademicSession.id)
            .where(Semester.id == semester_id)
        ).first()
        if row is None:
            return SemesterLabels(session="N/A", semester="N/A")
        return SemesterLabels(session=row[1], semester=row[0])


class FixedSemesterResolver(CurrentSemesterResolver):
    """Resolver pinned to one semester, used by tooling and tests."""

    def __init__(self, db: Session, semester_id: str | None) -> None:
        super().__init__(db)
        self._semester_id = semester_id

    def active_semester_id(self) -> str | None:
        return self._semester_id
