import os
from datetime import date
from types import SimpleNamespace

# The app's default engine points at Postgres; keep the lifespan bootstrap local.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from college_timetable.api.deps import get_db
from college_timetable.core.security import create_access_token
from college_timetable.db.base import Base
from college_timetable.main import app
from college_timetable.models import (
    AcademicSession,
    Course,
    CourseRegistration,
    CourseSection,
    Department,
    RegistrationStatus,
    Semester,
    Student,
    Teacher,
    User,
    UserRole,
)
from college_timetable.services.allocation import AllocationService
from college_timetable.services.semester import FixedSemesterResolver
from college_timetable.services.views import TimetableViewBuilder


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def catalog(db_session):
    """Semester 7 of an active session, its sections and two teachers.

    Section A: CS401, teacher T1, default room R101
    Section B: CS402, teacher T2, no default room
    Section C: CS403, teacher T1, default room R205
    Section D: CS401 in another (inactive) semester, teacher T1
    Section E: CS403, no teacher, no default room
    The student is registered in A and B and has dropped C.
    """
    db = db_session
    department = Department(name="Computer Science", code="CS")
    admin_user = User(name="Registrar", email="admin@college.test", role=UserRole.admin)
    t1_user = User(name="Ayesha Khan", email="ayesha@college.test", role=UserRole.teacher)
    t2_user = User(name="Bilal Ahmed", email="bilal@college.test", role=UserRole.teacher)
    student_user = User(name="Sana Memon", email="sana@college.test", role=UserRole.student)
    db.add_all([department, admin_user, t1_user, t2_user, student_user])
    db.flush()

    t1 = Teacher(user_id=t1_user.id, name="Dr. Ayesha Khan", designation="Professor", department_id=department.id)
    t2 = Teacher(user_id=t2_user.id, name="Mr. Bilal Ahmed", department_id=department.id)
    student = Student(user_id=student_user.id, name="Sana Memon", roll_no="CS-22-014", department_id=department.id)
    session = AcademicSession(
        name="2026-2027", start_date=date(2026, 9, 1), end_date=date(2027, 6, 30), is_active=True
    )
    db.add_all([t1, t2, student, session])
    db.flush()

    semester = Semester(
        session_id=session.id, name="Semester 7", number=7, start_date=date(2026, 9, 1), is_active=True
    )
    other_semester = Semester(
        session_id=session.id, name="Semester 5", number=5, start_date=date(2026, 9, 1), is_active=False
    )
    compilers = Course(code="CS401", name="Compiler Construction", credit_hours=3, department_id=department.id)
    databases = Course(code="CS402", name="Database Systems", credit_hours=3, department_id=department.id)
    networks = Course(code="CS403", name="Computer Networks", credit_hours=3, department_id=department.id)
    db.add_all([semester, other_semester, compilers, databases, networks])
    db.flush()

    section_a = CourseSection(
        course_id=compilers.id, semester_id=semester.id, teacher_id=t1.id, section_name="A", room_no="R101"
    )
    section_b = CourseSection(course_id=databases.id, semester_id=semester.id, teacher_id=t2.id, section_name="B")
    section_c = CourseSection(
        course_id=networks.id, semester_id=semester.id, teacher_id=t1.id, section_name="C", room_no="R205"
    )
    section_d = CourseSection(
        course_id=compilers.id, semester_id=other_semester.id, teacher_id=t1.id, section_name="D", room_no="R101"
    )
    section_e = CourseSection(course_id=networks.id, semester_id=semester.id, section_name="E")
    db.add_all([section_a, section_b, section_c, section_d, section_e])
    db.flush()

    db.add_all(
        [
            CourseRegistration(student_id=student.id, section_id=section_a.id, semester_id=semester.id),
            CourseRegistration(student_id=student.id, section_id=section_b.id, semester_id=semester.id),
            CourseRegistration(
                student_id=student.id,
                section_id=section_c.id,
                semester_id=semester.id,
                status=RegistrationStatus.dropped,
            ),
        ]
    )
    db.commit()

    return SimpleNamespace(
        department=department,
        admin_user=admin_user,
        t1_user=t1_user,
        t2_user=t2_user,
        student_user=student_user,
        t1=t1,
        t2=t2,
        student=student,
        session=session,
        semester=semester,
        other_semester=other_semester,
        section_a=section_a,
        section_b=section_b,
        section_c=section_c,
        section_d=section_d,
        section_e=section_e,
    )


@pytest.fixture()
def allocation(db_session, catalog):
    return AllocationService(db_session, FixedSemesterResolver(db_session, catalog.semester.id))


@pytest.fixture()
def views(db_session, catalog):
    return TimetableViewBuilder(db_session, FixedSemesterResolver(db_session, catalog.semester.id))


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def build(user: User) -> dict[str, str]:
        token = create_access_token(user.id, role=user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return build
