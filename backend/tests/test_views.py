import pytest

from college_timetable.core.exceptions import ResourceNotFoundError, ValidationError
from college_timetable.models.course import CourseRegistration
from college_timetable.services.intervals import DAY_VALUES
from college_timetable.services.semester import CurrentSemesterResolver, FixedSemesterResolver
from college_timetable.services.views import TimetableViewBuilder


def create(allocation, section, day, start, end, room_no=None):
    payload = {"section_id": section.id, "day": day, "start_time": start, "end_time": end}
    if room_no is not None:
        payload["room_no"] = room_no
    return allocation.create_slot(payload)


@pytest.fixture
def weekly_plan(allocation, catalog):
    return {
        "a_mon": create(allocation, catalog.section_a, "Monday", "11:00", "12:00"),
        "a_wed": create(allocation, catalog.section_a, "Wednesday", "09:00", "10:00"),
        "b_mon": create(allocation, catalog.section_b, "Monday", "09:00", "10:00", room_no="R102"),
        "c_tue": create(allocation, catalog.section_c, "Tuesday", "09:00", "10:00"),
        "e_sat": create(allocation, catalog.section_e, "Saturday", "08:00", "09:00", room_no="R101"),
    }


def test_student_timetable_shows_registered_sections_only(views, catalog, weekly_plan):
    view = views.student_timetable(catalog.student_user.id)

    assert view.semester_id == catalog.semester.id
    assert view.student_id == catalog.student.id
    assert list(view.timetable) == list(DAY_VALUES)
    assert [slot.id for slot in view.slots] == [
        weekly_plan["b_mon"].id,
        weekly_plan["a_mon"].id,
        weekly_plan["a_wed"].id,
    ]
    # Section C was dropped.
    assert view.timetable["Tuesday"] == []
    assert [slot.course_code for slot in view.timetable["Monday"]] == ["CS402", "CS401"]


def test_student_without_profile_is_not_found(views, catalog):
    with pytest.raises(ResourceNotFoundError, match="Student profile not found"):
        views.student_timetable(catalog.t1_user.id)


def test_teacher_timetable_annotates_enrollment(views, catalog, weekly_plan, db_session):
    view = views.teacher_timetable(catalog.t1_user.id)

    assert view.teacher_name == "Dr. Ayesha Khan"
    assert {slot.section_name for slot in view.slots} == {"A", "C"}
    counts = {slot.section_name: slot.enrolled_count for slot in view.slots}
    assert counts == {"A": 1, "C": 0}


def test_teacher_without_profile_is_not_found(views, catalog):
    with pytest.raises(ResourceNotFoundError, match="Teacher profile not found"):
        views.teacher_timetable(catalog.student_user.id)


def test_room_timetable_spans_sections(views, catalog, weekly_plan):
    view = views.room_timetable("R101")

    assert view.room_no == "R101"
    assert [slot.id for slot in view.slots] == [
        weekly_plan["a_mon"].id,
        weekly_plan["a_wed"].id,
        weekly_plan["e_sat"].id,
    ]
    assert view.timetable["Saturday"][0].section_name == "E"


def test_room_timetable_requires_room(views):
    with pytest.raises(ValidationError, match="Room number is required"):
        views.room_timetable("  ")


def test_master_timetable_orders_whole_semester(views, catalog, weekly_plan):
    view = views.master_timetable()

    assert [(slot.day, slot.start_time) for slot in view.slots] == [
        ("Monday", "09:00"),
        ("Monday", "11:00"),
        ("Tuesday", "09:00"),
        ("Wednesday", "09:00"),
        ("Saturday", "08:00"),
    ]
    assert sum(len(day_slots) for day_slots in view.timetable.values()) == 5


def test_all_rooms_is_sorted_and_distinct(views, catalog, weekly_plan):
    rooms = views.all_rooms(catalog.semester.id)

    assert rooms.rooms == ["R101", "R102", "R205"]
    assert rooms.count == 3
    assert views.all_rooms(catalog.other_semester.id).rooms == []


def test_active_semester_is_the_default(db_session, catalog, weekly_plan):
    views = TimetableViewBuilder(db_session, CurrentSemesterResolver(db_session))

    assert views.master_timetable().semester_id == catalog.semester.id


def test_missing_active_semester_is_not_found(db_session, catalog):
    views = TimetableViewBuilder(db_session, FixedSemesterResolver(db_session, None))

    with pytest.raises(ResourceNotFoundError, match="No active semester found"):
        views.master_timetable()
    with pytest.raises(ResourceNotFoundError, match="No active semester found"):
        views.room_timetable("R101")


def test_inactive_semester_is_not_picked(db_session, catalog):
    catalog.semester.is_active = False
    db_session.commit()

    with pytest.raises(ResourceNotFoundError):
        CurrentSemesterResolver(db_session).resolve()


def test_export_payload_for_student(views, catalog, weekly_plan):
    payload = views.export_payload("student", catalog.student_user.id)

    assert payload.title == "Student Timetable"
    assert payload.subtitle == "Sana Memon (CS-22-014) - Computer Science"
    assert payload.session == "2026-2027"
    assert payload.semester == "Semester 7"
    assert len(payload.slots) == 3


def test_export_payload_for_teacher_room_and_master(views, catalog, weekly_plan):
    teacher = views.export_payload("teacher", catalog.t2_user.id)
    room = views.export_payload("room", "R205")
    master = views.export_payload("master", None)

    assert teacher.subtitle == "Mr. Bilal Ahmed (Faculty) - Computer Science"
    assert room.subtitle == "Room: R205"
    assert room.title == "Room Timetable"
    assert master.subtitle == "Semester 7"
    assert len(master.slots) == 5


def test_export_rejects_unknown_type(views):
    with pytest.raises(ValidationError, match="Invalid timetable type"):
        views.export_payload("department", None)


def test_registration_in_other_semester_does_not_leak(views, catalog, weekly_plan, db_session):
    db_session.add(
        CourseRegistration(
            student_id=catalog.student.id,
            section_id=catalog.section_c.id,
            semester_id=catalog.other_semester.id,
        )
    )
    db_session.commit()

    view = views.student_timetable(catalog.student_user.id)

    assert all(slot.section_name != "C" for slot in view.slots)


def test_teacher_sections_are_listed_before_any_slot_exists(views, catalog):
    view = views.teacher_timetable(catalog.t1_user.id)

    assert view.slots == []
    assert [(section.course_code, section.section_name) for section in view.sections] == [
        ("CS401", "A"),
        ("CS403", "C"),
    ]
    assert {section.section_name: section.enrolled_count for section in view.sections} == {"A": 1, "C": 0}
    assert all(section.slot_count == 0 for section in view.sections)


def test_teacher_sections_count_their_slots(views, catalog, weekly_plan):
    view = views.teacher_timetable(catalog.t1_user.id)

    assert {section.section_name: section.slot_count for section in view.sections} == {"A": 2, "C": 1}
    # Section D belongs to another semester.
    assert "D" not in {section.section_name for section in view.sections}
