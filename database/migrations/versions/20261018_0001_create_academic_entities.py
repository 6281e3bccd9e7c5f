"""create academic entities

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("admin", "teacher", "student", name="user_role")
registration_status = sa.Enum("registered", "dropped", "completed", name="registration_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
    )
    op.create_index("ix_departments_code", "departments", ["code"], unique=True)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("designation", sa.String(length=50), nullable=True),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=True),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("roll_no", sa.String(length=50), nullable=True),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=True),
        sa.UniqueConstraint("user_id"),
        sa.UniqueConstraint("roll_no"),
    )

    op.create_table(
        "academic_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "semesters",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "session_id",
            sa.String(length=36),
            sa.ForeignKey("academic_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("credit_hours", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("department_id", sa.String(length=36), sa.ForeignKey("departments.id"), nullable=True),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)

    op.create_table(
        "course_sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("section_name", sa.String(length=10), nullable=False, server_default="A"),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("room_no", sa.String(length=20), nullable=True),
    )
    op.create_index("ix_course_sections_course_id", "course_sections", ["course_id"])
    op.create_index("ix_course_sections_semester_id", "course_sections", ["semester_id"])
    op.create_index("ix_course_sections_teacher_id", "course_sections", ["teacher_id"])

    op.create_table(
        "course_registrations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "student_id",
            sa.String(length=36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "section_id",
            sa.String(length=36),
            sa.ForeignKey("course_sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("semester_id", sa.String(length=36), sa.ForeignKey("semesters.id"), nullable=False),
        sa.Column("status", registration_status, nullable=False, server_default="registered"),
    )
    op.create_index("ix_course_registrations_student_id", "course_registrations", ["student_id"])
    op.create_index("ix_course_registrations_section_id", "course_registrations", ["section_id"])


def downgrade() -> None:
    op.drop_index("ix_course_registrations_section_id", table_name="course_registrations")
    op.drop_index("ix_course_registrations_student_id", table_name="course_registrations")
    op.drop_table("course_registrations")
    op.drop_index("ix_course_sections_teacher_id", table_name="course_sections")
    op.drop_index("ix_course_sections_semester_id", table_name="course_sections")
    op.drop_index("ix_course_sections_course_id", table_name="course_sections")
    op.drop_table("course_sections")
    op.drop_index("ix_courses_code", table_name="courses")
    op.drop_table("courses")
    op.drop_table("semesters")
    op.drop_table("academic_sessions")
    op.drop_table("students")
    op.drop_table("teachers")
    op.drop_index("ix_departments_code", table_name="departments")
    op.drop_table("departments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    registration_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
