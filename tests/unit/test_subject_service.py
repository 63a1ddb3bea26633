# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Subject service."""

import pytest
from sqlalchemy import select

from schoolhub.domains.class_ import ClassNotFoundError
from schoolhub.domains.subject import (
    ClassSubjectNotFoundError,
    SubjectCodeExistsError,
    SubjectInUseError,
    SubjectNotFoundError,
    SubjectService,
)
from schoolhub.infrastructure.database.models import ClassSubject, Subject
from schoolhub.models.subject import (
    AssignSubjectsRequest,
    SubjectCreateRequest,
    SubjectUpdateRequest,
)


@pytest.fixture
def subject_service(db):
    """Create subject service over the test database."""
    return SubjectService(db)


class TestSubjectServiceCreate:
    """Tests for subject creation."""

    @pytest.mark.asyncio
    async def test_create_subject_success(self, subject_service, seed):
        """Test successful subject creation."""
        await seed.school()

        subject = await subject_service.create_subject(
            "DPS001",
            SubjectCreateRequest(name="Mathematics", code="MATH"),
        )

        assert subject.id is not None
        assert subject.code == "MATH"
        assert subject.is_active is True
        assert subject.classes == []

    @pytest.mark.asyncio
    async def test_duplicate_active_code(self, subject_service, seed):
        """Test an active code cannot be reused in the school."""
        school = await seed.school()
        await seed.subject(school, "Mathematics", "MATH")

        with pytest.raises(SubjectCodeExistsError):
            await subject_service.create_subject(
                "DPS001",
                SubjectCreateRequest(name="Maths II", code="MATH"),
            )

    @pytest.mark.asyncio
    async def test_code_of_inactive_subject_can_be_reused(self, subject_service, seed):
        """Test only active subjects hold their code."""
        school = await seed.school()
        await seed.subject(school, "Old Maths", "MATH", is_active=False)

        subject = await subject_service.create_subject(
            "DPS001",
            SubjectCreateRequest(name="Mathematics", code="MATH"),
        )

        assert subject.code == "MATH"

    @pytest.mark.asyncio
    async def test_same_code_in_other_school(self, subject_service, seed):
        """Test codes are scoped to the school."""
        await seed.school("DPS001")
        other = await seed.school("KVS002")
        await seed.subject(other, "Mathematics", "MATH")

        subject = await subject_service.create_subject(
            "DPS001",
            SubjectCreateRequest(name="Mathematics", code="MATH"),
        )

        assert subject.school_code == "DPS001"

    @pytest.mark.asyncio
    async def test_subjects_without_code_do_not_collide(self, subject_service, seed):
        """Test a missing code is never a conflict."""
        await seed.school()

        await subject_service.create_subject("DPS001", SubjectCreateRequest(name="Art"))
        second = await subject_service.create_subject("DPS001", SubjectCreateRequest(name="Craft"))

        assert second.code is None


class TestSubjectServiceUpdate:
    """Tests for subject updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, subject_service, seed):
        """Test only supplied fields change."""
        school = await seed.school()
        subject = await seed.subject(school, "Mathematics", "MATH")

        result = await subject_service.update_subject(
            subject.id,
            SubjectUpdateRequest(description="Numbers"),
        )

        assert result.name == "Mathematics"
        assert result.code == "MATH"
        assert result.description == "Numbers"

    @pytest.mark.asyncio
    async def test_update_to_taken_code(self, subject_service, seed):
        """Test changing the code to one in use."""
        school = await seed.school()
        await seed.subject(school, "Mathematics", "MATH")
        science = await seed.subject(school, "Science", "SCI")

        with pytest.raises(SubjectCodeExistsError):
            await subject_service.update_subject(science.id, SubjectUpdateRequest(code="MATH"))

    @pytest.mark.asyncio
    async def test_reactivate_with_taken_code(self, subject_service, seed):
        """Test reactivation cannot create a duplicate active code."""
        school = await seed.school()
        old = await seed.subject(school, "Old Maths", "MATH", is_active=False)
        await seed.subject(school, "Mathematics", "MATH")

        with pytest.raises(SubjectCodeExistsError):
            await subject_service.update_subject(old.id, SubjectUpdateRequest(is_active=True))

    @pytest.mark.asyncio
    async def test_update_unknown(self, subject_service):
        """Test unknown subject raises NotFound."""
        with pytest.raises(SubjectNotFoundError):
            await subject_service.update_subject(999, SubjectUpdateRequest(name="x"))


class TestSubjectServiceDelete:
    """Tests for subject deletion."""

    @pytest.mark.asyncio
    async def test_soft_delete_then_include_inactive(self, subject_service, seed):
        """Test a soft-deleted subject only shows with includeInactive."""
        school = await seed.school()
        subject = await seed.subject(school, "Mathematics", "MATH")

        await subject_service.delete_subject(subject.id)

        assert await subject_service.get_subjects_by_school("DPS001") == []
        listed = await subject_service.get_subjects_by_school("DPS001", include_inactive=True)
        assert [s.id for s in listed] == [subject.id]
        assert listed[0].is_active is False

    @pytest.mark.asyncio
    async def test_hard_delete(self, subject_service, seed, db):
        """Test hard delete removes the row."""
        school = await seed.school()
        subject = await seed.subject(school)

        await subject_service.delete_subject(subject.id, hard_delete=True)

        result = await db.execute(select(Subject).where(Subject.id == subject.id))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_delete_blocked_by_class_and_teacher(self, subject_service, seed):
        """Test a referenced subject reports what still uses it."""
        school = await seed.school()
        class_ = await seed.class_(school)
        section = await seed.section(class_)
        subject = await seed.subject(school)
        teacher = await seed.user(school, "teacher")
        await seed.catalog(class_, subject)
        await seed.assignment(section, subject, teacher)

        with pytest.raises(SubjectInUseError) as exc_info:
            await subject_service.delete_subject(subject.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"assignedClasses": 1, "assignedTeachers": 1}

    @pytest.mark.asyncio
    async def test_delete_unknown(self, subject_service):
        """Test unknown subject raises NotFound."""
        with pytest.raises(SubjectNotFoundError):
            await subject_service.delete_subject(999)


class TestClassCatalog:
    """Tests for class-subject membership."""

    @pytest.mark.asyncio
    async def test_assign_subjects_to_class(self, subject_service, seed):
        """Test subjects join the catalog."""
        school = await seed.school()
        class_ = await seed.class_(school)
        math = await seed.subject(school, "Mathematics", "MATH")
        science = await seed.subject(school, "Science", "SCI")

        catalog = await subject_service.assign_subjects_to_class(
            AssignSubjectsRequest(class_id=class_.id, subject_ids=[science.id, math.id])
        )

        assert catalog.id == class_.id
        assert [s.code for s in catalog.subjects] == ["MATH", "SCI"]

    @pytest.mark.asyncio
    async def test_assign_is_idempotent(self, subject_service, seed, db):
        """Test re-adding a member creates no second row."""
        school = await seed.school()
        class_ = await seed.class_(school)
        math = await seed.subject(school)
        request = AssignSubjectsRequest(class_id=class_.id, subject_ids=[math.id])

        await subject_service.assign_subjects_to_class(request)
        catalog = await subject_service.assign_subjects_to_class(request)

        rows = await db.execute(select(ClassSubject).where(ClassSubject.class_id == class_.id))
        assert len(rows.scalars().all()) == 1
        assert len(catalog.subjects) == 1

    @pytest.mark.asyncio
    async def test_assign_accepts_single_id(self, subject_service, seed):
        """Test a scalar subjectIds value is accepted."""
        school = await seed.school()
        class_ = await seed.class_(school)
        math = await seed.subject(school)

        request = AssignSubjectsRequest.model_validate({"classId": class_.id, "subjectIds": math.id})
        catalog = await subject_service.assign_subjects_to_class(request)

        assert [s.id for s in catalog.subjects] == [math.id]

    @pytest.mark.asyncio
    async def test_assign_rejects_other_school_subject(self, subject_service, seed, db):
        """Test nothing is added when one subject does not resolve."""
        school = await seed.school("DPS001")
        other = await seed.school("KVS002")
        class_ = await seed.class_(school)
        math = await seed.subject(school)
        foreign = await seed.subject(other, "Science", "SCI")

        with pytest.raises(SubjectNotFoundError) as exc_info:
            await subject_service.assign_subjects_to_class(
                AssignSubjectsRequest(class_id=class_.id, subject_ids=[math.id, foreign.id])
            )

        assert exc_info.value.details["missingSubjectIds"] == [foreign.id]
        rows = await db.execute(select(ClassSubject))
        assert rows.scalars().all() == []

    @pytest.mark.asyncio
    async def test_assign_unknown_class(self, subject_service, seed):
        """Test unknown class raises NotFound."""
        school = await seed.school()
        math = await seed.subject(school)

        with pytest.raises(ClassNotFoundError):
            await subject_service.assign_subjects_to_class(
                AssignSubjectsRequest(class_id=999, subject_ids=[math.id])
            )

    @pytest.mark.asyncio
    async def test_remove_blocked_while_teacher_assigned(self, subject_service, seed):
        """Test a subject stays in the catalog while a teacher teaches it."""
        school = await seed.school()
        class_ = await seed.class_(school)
        section = await seed.section(class_)
        math = await seed.subject(school)
        teacher = await seed.user(school, "teacher")
        await seed.catalog(class_, math)
        await seed.assignment(section, math, teacher)

        with pytest.raises(SubjectInUseError) as exc_info:
            await subject_service.remove_subject_from_class(class_.id, math.id)

        assert exc_info.value.details["activeAssignments"] == 1

    @pytest.mark.asyncio
    async def test_remove_after_assignment_deactivated(self, subject_service, seed, db):
        """Test inactive assignments do not block removal."""
        school = await seed.school()
        class_ = await seed.class_(school)
        section = await seed.section(class_)
        math = await seed.subject(school)
        teacher = await seed.user(school, "teacher")
        await seed.catalog(class_, math)
        await seed.assignment(section, math, teacher, is_active=False)

        await subject_service.remove_subject_from_class(class_.id, math.id)

        rows = await db.execute(select(ClassSubject).where(ClassSubject.class_id == class_.id))
        assert rows.scalars().all() == []

    @pytest.mark.asyncio
    async def test_remove_non_member(self, subject_service, seed):
        """Test removing a subject the class does not carry."""
        school = await seed.school()
        class_ = await seed.class_(school)
        math = await seed.subject(school)

        with pytest.raises(ClassSubjectNotFoundError):
            await subject_service.remove_subject_from_class(class_.id, math.id)

    @pytest.mark.asyncio
    async def test_class_subjects_view(self, subject_service, seed):
        """Test sections carry their active subject teachers."""
        school = await seed.school()
        class_ = await seed.class_(school)
        section_a = await seed.section(class_, "A")
        section_b = await seed.section(class_, "B")
        math = await seed.subject(school, "Mathematics", "MATH")
        science = await seed.subject(school, "Science", "SCI")
        teacher = await seed.user(school, "teacher", "Asha Rao")
        await seed.catalog(class_, math, science)
        assignment = await seed.assignment(section_a, math, teacher)
        await seed.assignment(section_b, science, teacher, is_active=False)

        view = await subject_service.get_class_subjects(class_.id)

        assert [s.code for s in view.subjects] == ["MATH", "SCI"]
        assert [s.id for s in view.sections] == [section_a.id, section_b.id]
        entries = view.sections[0].subject_teachers
        assert len(entries) == 1
        assert entries[0].assignment_id == assignment.id
        assert entries[0].teacher.full_name == "Asha Rao"
        assert view.sections[1].subject_teachers == []

    @pytest.mark.asyncio
    async def test_subjects_by_school_lists_classes(self, subject_service, seed):
        """Test each subject lists the active classes carrying it."""
        school = await seed.school()
        class_one = await seed.class_(school, "Class 1", level=1)
        class_two = await seed.class_(school, "Class 2", level=2)
        math = await seed.subject(school, "Mathematics", "MATH")
        await seed.subject(school, "Art", None)
        await seed.catalog(class_two, math)
        await seed.catalog(class_one, math)

        subjects = await subject_service.get_subjects_by_school("DPS001")

        assert [s.name for s in subjects] == ["Art", "Mathematics"]
        assert subjects[0].classes == []
        assert [c.name for c in subjects[1].classes] == ["Class 1", "Class 2"]
