# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure tables.

School -> AcademicSession, School -> Class -> Section, School -> Subject,
plus the three join tables that carry the consistency rules:

- class_subjects: the class catalog (Class <-> Subject membership)
- section_subject_teachers: Section x Subject -> Teacher assignments
- student_enrollments: Student -> Session/Class/Section membership

Store-level uniqueness lives here as the last line of defense. Partial
indexes are declared for both PostgreSQL and SQLite so the same rules hold
in production and in tests.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolhub.infrastructure.database.models.base import Base, TimestampMixin
from schoolhub.infrastructure.database.models.user import AuthUser


class EnrollmentStatus(str, Enum):
    """Lifecycle states of a student enrollment."""

    ACTIVE = "active"
    TRANSFERRED = "transferred"
    PASSED = "passed"
    FAILED = "failed"
    DROPOUT = "dropout"


class School(Base, TimestampMixin):
    """A tenant. Every other structure row references it by code."""

    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_url: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    principal_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    established_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<School {self.code}>"


class AcademicSession(Base, TimestampMixin):
    """An academic year window. At most one is active per school."""

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("schools.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<AcademicSession {self.id} {self.school_code} active={self.is_active}>"


class Class(Base, TimestampMixin):
    """A grade within a school, ordered by level."""

    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("schools.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Class {self.id} {self.name}>"


class Section(Base, TimestampMixin):
    """A division of a class, e.g. "A"."""

    __tablename__ = "sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("schools.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    class_teacher_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("auth_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    school_class: Mapped[Class] = relationship()
    class_teacher: Mapped[AuthUser | None] = relationship(foreign_keys=[class_teacher_id])

    def __repr__(self) -> str:
        return f"<Section {self.id} {self.name} class={self.class_id}>"


class Subject(Base, TimestampMixin):
    """A subject taught in a school. Code is unique among active subjects."""

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_code: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("schools.code", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Subject {self.id} {self.code or self.name}>"


class ClassSubject(Base, TimestampMixin):
    """Class catalog membership."""

    __tablename__ = "class_subjects"
    __table_args__ = (
        UniqueConstraint("class_id", "subject_id", name="uq_class_subject"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    class_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    school_class: Mapped[Class] = relationship()
    subject: Mapped[Subject] = relationship()


class SectionSubjectTeacher(Base, TimestampMixin):
    """Assignment of a teacher to a (section, subject) pair.

    Inactive rows are kept as history. Only one row per pair may be active.
    """

    __tablename__ = "section_subject_teachers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    section: Mapped[Section] = relationship()
    subject: Mapped[Subject] = relationship()
    teacher: Mapped[AuthUser] = relationship()

    def __repr__(self) -> str:
        return (
            f"<SectionSubjectTeacher {self.id} section={self.section_id} "
            f"subject={self.subject_id} teacher={self.teacher_id}>"
        )


class StudentEnrollment(Base, TimestampMixin):
    """A student's placement in a session, class and section."""

    __tablename__ = "student_enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "session_id", name="uq_enrollment_student_session"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
    )
    section_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    roll_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    admission_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    student: Mapped[AuthUser] = relationship()
    session: Mapped[AcademicSession] = relationship()
    school_class: Mapped[Class] = relationship()
    section: Mapped[Section] = relationship()

    def __repr__(self) -> str:
        return (
            f"<StudentEnrollment {self.id} student={self.student_id} "
            f"session={self.session_id} section={self.section_id}>"
        )


Index(
    "uq_sessions_one_active_per_school",
    AcademicSession.school_code,
    unique=True,
    postgresql_where=AcademicSession.is_active.is_(True),
    sqlite_where=AcademicSession.is_active.is_(True),
)

Index(
    "uq_subjects_active_code_per_school",
    Subject.school_code,
    Subject.code,
    unique=True,
    postgresql_where=Subject.is_active.is_(True) & Subject.code.is_not(None),
    sqlite_where=Subject.is_active.is_(True) & Subject.code.is_not(None),
)

Index(
    "uq_section_subject_one_active_teacher",
    SectionSubjectTeacher.section_id,
    SectionSubjectTeacher.subject_id,
    unique=True,
    postgresql_where=SectionSubjectTeacher.is_active.is_(True),
    sqlite_where=SectionSubjectTeacher.is_active.is_(True),
)

Index(
    "uq_enrollment_roll_number_per_section",
    StudentEnrollment.session_id,
    StudentEnrollment.section_id,
    StudentEnrollment.roll_number,
    unique=True,
    postgresql_where=StudentEnrollment.roll_number.is_not(None),
    sqlite_where=StudentEnrollment.roll_number.is_not(None),
)
