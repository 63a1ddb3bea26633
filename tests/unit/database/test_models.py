# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions and the uniqueness rules the store enforces on
its own, independent of the services.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from schoolhub.infrastructure.database.models import (
    AcademicSession,
    AuthUser,
    Base,
    ClassSubject,
    EnrollmentStatus,
    SectionSubjectTeacher,
    StudentEnrollment,
    Subject,
    TimestampMixin,
    UserRole,
)


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_columns(self):
        """Verify TimestampMixin has created_at and updated_at."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_all_tables_registered(self):
        """Verify every table is part of the metadata."""
        assert set(Base.metadata.tables) == {
            "auth_users",
            "schools",
            "sessions",
            "classes",
            "sections",
            "subjects",
            "class_subjects",
            "section_subject_teachers",
            "student_enrollments",
        }


class TestEnums:
    """Test enumerations stored as strings."""

    def test_user_roles(self):
        """Verify role values."""
        assert UserRole.TEACHER.value == "teacher"
        assert UserRole("principal") is UserRole.PRINCIPAL

    def test_enrollment_status_default(self):
        """Verify enrollment status values."""
        assert EnrollmentStatus.ACTIVE.value == "active"
        assert {s.value for s in EnrollmentStatus} == {
            "active",
            "transferred",
            "passed",
            "failed",
            "dropout",
        }


class TestPartialUniqueIndexes:
    """Uniqueness rules enforced by the store."""

    @pytest.mark.asyncio
    async def test_one_active_session_per_school(self, seed, db):
        """A second active session in the same school is rejected."""
        school = await seed.school()
        await seed.session(school, "2024-25", is_active=True)

        with pytest.raises(IntegrityError):
            await seed.session(school, "2025-26", is_active=True)
        await db.rollback()

    @pytest.mark.asyncio
    async def test_many_inactive_sessions_allowed(self, seed):
        """Inactive sessions are not constrained."""
        school = await seed.school()
        await seed.session(school, "2022-23", is_active=False)
        second = await seed.session(school, "2023-24", is_active=False)

        assert isinstance(second, AcademicSession)

    @pytest.mark.asyncio
    async def test_active_subject_code_unique(self, seed, db):
        """Two active subjects cannot share a code in a school."""
        school = await seed.school()
        await seed.subject(school, "Mathematics", "MATH")

        with pytest.raises(IntegrityError):
            await seed.subject(school, "Maths II", "MATH")
        await db.rollback()

    @pytest.mark.asyncio
    async def test_inactive_subject_code_free(self, seed):
        """Deactivated subjects release their code."""
        school = await seed.school()
        await seed.subject(school, "Old Maths", "MATH", is_active=False)
        subject = await seed.subject(school, "Mathematics", "MATH")

        assert isinstance(subject, Subject)

    @pytest.mark.asyncio
    async def test_one_active_teacher_per_pair(self, seed, db):
        """A (section, subject) pair has at most one active teacher."""
        school = await seed.school()
        section = await seed.section(await seed.class_(school))
        subject = await seed.subject(school)
        t1 = await seed.user(school, "teacher")
        t2 = await seed.user(school, "teacher")
        await seed.assignment(section, subject, t1)

        with pytest.raises(IntegrityError):
            await seed.assignment(section, subject, t2)
        await db.rollback()

    @pytest.mark.asyncio
    async def test_assignment_history_allowed(self, seed):
        """Inactive rows for the pair are kept as history."""
        school = await seed.school()
        section = await seed.section(await seed.class_(school))
        subject = await seed.subject(school)
        t1 = await seed.user(school, "teacher")
        t2 = await seed.user(school, "teacher")
        await seed.assignment(section, subject, t1, is_active=False)
        current = await seed.assignment(section, subject, t2)

        assert isinstance(current, SectionSubjectTeacher)

    @pytest.mark.asyncio
    async def test_class_subject_pair_unique(self, seed, db):
        """A subject joins a class catalog once."""
        school = await seed.school()
        class_ = await seed.class_(school)
        subject = await seed.subject(school)
        await seed.catalog(class_, subject)

        with pytest.raises(IntegrityError):
            await seed.catalog(class_, subject)
        await db.rollback()

    @pytest.mark.asyncio
    async def test_roll_number_unique_in_section(self, seed, db):
        """A roll number is used once per section and session."""
        school = await seed.school()
        session = await seed.session(school)
        section = await seed.section(await seed.class_(school))
        first = await seed.user(school, "student")
        second = await seed.user(school, "student")
        await seed.enrollment(first, session, section, "5")

        with pytest.raises(IntegrityError):
            await seed.enrollment(second, session, section, "5")
        await db.rollback()

    @pytest.mark.asyncio
    async def test_missing_roll_numbers_do_not_collide(self, seed):
        """Enrollments without roll numbers are unconstrained."""
        school = await seed.school()
        session = await seed.session(school)
        section = await seed.section(await seed.class_(school))
        await seed.enrollment(await seed.user(school, "student"), session, section)
        second = await seed.enrollment(await seed.user(school, "student"), session, section)

        assert isinstance(second, StudentEnrollment)

    @pytest.mark.asyncio
    async def test_one_enrollment_per_session(self, seed, db):
        """A student is enrolled once per session."""
        school = await seed.school()
        session = await seed.session(school)
        class_ = await seed.class_(school)
        student = await seed.user(school, "student")
        await seed.enrollment(student, session, await seed.section(class_, "A"))

        with pytest.raises(IntegrityError):
            await seed.enrollment(student, session, await seed.section(class_, "B"))
        await db.rollback()


class TestModelDefaults:
    """Column defaults applied on insert."""

    @pytest.mark.asyncio
    async def test_auth_user_defaults(self, db):
        """A new account is an active student."""
        user = AuthUser(username="plain")
        db.add(user)
        await db.commit()

        assert user.role == UserRole.STUDENT.value
        assert user.is_active is True

    @pytest.mark.asyncio
    async def test_class_subject_active_by_default(self, seed, db):
        """Catalog memberships start active."""
        school = await seed.school()
        class_ = await seed.class_(school)
        subject = await seed.subject(school)
        membership = ClassSubject(class_id=class_.id, subject_id=subject.id)
        db.add(membership)
        await db.commit()

        assert membership.is_active is True
