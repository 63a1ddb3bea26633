# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject service for the subject catalog and class catalogs.

This module provides the SubjectService class for:
- Subject CRUD with per-school code uniqueness among active subjects
- Adding subjects to a class catalog (idempotent, all-or-nothing)
- Removing a subject from a class catalog while nobody teaches it there
- Reading a class catalog with its sections' subject teachers

Example:
    >>> service = SubjectService(db)
    >>> math = await service.create_subject("DPS001", SubjectCreateRequest(name="Math", code="MATH"))
    >>> await service.assign_subjects_to_class(AssignSubjectsRequest(class_id=1, subject_ids=[math.id]))
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.domains.class_.service import ClassNotFoundError
from schoolhub.domains.errors import ConflictError, NotFoundError
from schoolhub.domains.school.service import get_school_by_code
from schoolhub.infrastructure.database.models import (
    AuthUser,
    Class,
    ClassSubject,
    Section,
    SectionSubjectTeacher,
    Subject,
)
from schoolhub.models.common import ClassSummary, SubjectSummary, UserContact
from schoolhub.models.subject import (
    AssignSubjectsRequest,
    ClassSectionEntry,
    ClassSubjectsResponse,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectTeacherEntry,
    SubjectUpdateRequest,
)

logger = logging.getLogger(__name__)


class SubjectNotFoundError(NotFoundError):
    """Raised when a subject is not found or inactive."""

    code = "subject_not_found"


class SubjectCodeExistsError(ConflictError):
    """Raised when an active subject with the same code exists in the school."""

    code = "subject_code_exists"


class SubjectInUseError(ConflictError):
    """Raised when a subject is still referenced by classes or assignments."""

    code = "subject_in_use"


class ClassSubjectNotFoundError(NotFoundError):
    """Raised when a subject is not part of a class catalog."""

    code = "class_subject_not_found"


class SubjectService:
    """Service for managing subjects and class catalogs.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize subject service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def create_subject(
        self,
        school_code: str,
        request: SubjectCreateRequest,
        created_by: int | None = None,
    ) -> SubjectResponse:
        """Create a new subject.

        Args:
            school_code: Tenant code.
            request: Subject creation data.
            created_by: ID of user creating the subject.

        Returns:
            Created subject.

        Raises:
            SchoolNotFoundError: If school not found.
            SubjectCodeExistsError: If an active subject already uses the code.
        """
        await get_school_by_code(self.db, school_code)

        if request.code and request.is_active:
            await self._check_code_available(school_code, request.code)

        subject = Subject(
            school_code=school_code,
            name=request.name,
            code=request.code,
            description=request.description,
            is_active=request.is_active,
        )
        self.db.add(subject)

        await self._commit_or_code_conflict(school_code, request.code)
        await self.db.refresh(subject)

        logger.info("Created subject: %s (%s) by %s", subject.name, subject.id, created_by)

        return self._to_response(subject, [])

    async def get_subjects_by_school(
        self,
        school_code: str,
        include_inactive: bool = False,
    ) -> list[SubjectResponse]:
        """List a school's subjects ordered by name.

        Args:
            school_code: Tenant code.
            include_inactive: Include deactivated subjects.

        Returns:
            Subjects, each with the active classes carrying it.
        """
        query = select(Subject).where(Subject.school_code == school_code)
        if not include_inactive:
            query = query.where(Subject.is_active.is_(True))

        result = await self.db.execute(query.order_by(Subject.name, Subject.id))
        subjects = result.scalars().all()
        if not subjects:
            return []

        class_result = await self.db.execute(
            select(ClassSubject.subject_id, Class)
            .join(Class, Class.id == ClassSubject.class_id)
            .where(
                ClassSubject.subject_id.in_([s.id for s in subjects]),
                ClassSubject.is_active.is_(True),
                Class.is_active.is_(True),
            )
            .order_by(Class.level.asc().nulls_last(), Class.name)
        )
        classes_by_subject: dict[int, list[ClassSummary]] = defaultdict(list)
        for subject_id, class_ in class_result.all():
            classes_by_subject[subject_id].append(ClassSummary.model_validate(class_))

        return [self._to_response(s, classes_by_subject[s.id]) for s in subjects]

    async def update_subject(
        self,
        subject_id: int,
        request: SubjectUpdateRequest,
    ) -> SubjectResponse:
        """Update a subject. Only supplied fields change.

        Args:
            subject_id: Subject identifier.
            request: Update data.

        Returns:
            Updated subject.

        Raises:
            SubjectNotFoundError: If subject not found.
            SubjectCodeExistsError: If the new code is taken by another active subject.
        """
        subject = await self._get_by_id(subject_id)

        new_code = request.code if request.code is not None else subject.code
        becomes_active = request.is_active if request.is_active is not None else subject.is_active
        code_changed = request.code is not None and request.code != subject.code
        reactivated = request.is_active is True and not subject.is_active
        if new_code and becomes_active and (code_changed or reactivated):
            await self._check_code_available(subject.school_code, new_code, exclude_id=subject.id)

        if request.name is not None:
            subject.name = request.name
        if request.code is not None:
            subject.code = request.code
        if request.description is not None:
            subject.description = request.description
        if request.is_active is not None:
            subject.is_active = request.is_active

        await self._commit_or_code_conflict(subject.school_code, new_code)
        await self.db.refresh(subject)

        logger.info("Updated subject: %s", subject_id)

        classes = await self._get_active_classes(subject.id)
        return self._to_response(subject, classes)

    async def delete_subject(self, subject_id: int, hard_delete: bool = False) -> None:
        """Deactivate or delete a subject that nothing references.

        Args:
            subject_id: Subject identifier.
            hard_delete: Remove the row instead of deactivating it.

        Raises:
            SubjectNotFoundError: If subject not found.
            SubjectInUseError: If an active class carries it or a teacher
                is actively assigned to it.
        """
        subject = await self._get_by_id(subject_id)

        class_count = await self.db.execute(
            select(func.count())
            .select_from(ClassSubject)
            .join(Class, Class.id == ClassSubject.class_id)
            .where(
                ClassSubject.subject_id == subject_id,
                ClassSubject.is_active.is_(True),
                Class.is_active.is_(True),
            )
        )
        assigned_classes = class_count.scalar() or 0

        teacher_count = await self.db.execute(
            select(func.count())
            .select_from(SectionSubjectTeacher)
            .where(
                SectionSubjectTeacher.subject_id == subject_id,
                SectionSubjectTeacher.is_active.is_(True),
            )
        )
        assigned_teachers = teacher_count.scalar() or 0

        if assigned_classes or assigned_teachers:
            raise SubjectInUseError(
                f"Subject {subject_id} is assigned to active classes or teachers",
                details={
                    "assignedClasses": assigned_classes,
                    "assignedTeachers": assigned_teachers,
                },
            )

        if hard_delete:
            await self.db.delete(subject)
        else:
            subject.is_active = False

        await self.db.commit()

        logger.info(
            "%s subject: %s",
            "Deleted" if hard_delete else "Deactivated",
            subject_id,
        )

    async def assign_subjects_to_class(
        self,
        request: AssignSubjectsRequest,
    ) -> ClassSubjectsResponse:
        """Add subjects to a class catalog.

        All requested subjects must be active and belong to the class's
        school, otherwise nothing is added. Re-adding an existing member
        is a no-op.

        Args:
            request: Class id and subject ids.

        Returns:
            The class catalog view after the change.

        Raises:
            ClassNotFoundError: If the class is missing or inactive.
            SubjectNotFoundError: If any subject does not resolve.
        """
        class_ = await self._get_class(request.class_id)
        class_id = class_.id
        subject_ids = list(dict.fromkeys(request.subject_ids))

        result = await self.db.execute(
            select(Subject.id).where(
                Subject.id.in_(subject_ids),
                Subject.school_code == class_.school_code,
                Subject.is_active.is_(True),
            )
        )
        found = set(result.scalars().all())
        missing = [subject_id for subject_id in subject_ids if subject_id not in found]
        if missing:
            raise SubjectNotFoundError(
                "One or more subjects not found or inactive",
                details={"classId": class_.id, "missingSubjectIds": missing},
            )

        existing_result = await self.db.execute(
            select(ClassSubject).where(
                ClassSubject.class_id == class_.id,
                ClassSubject.subject_id.in_(subject_ids),
            )
        )
        existing = {cs.subject_id: cs for cs in existing_result.scalars().all()}

        added = 0
        for subject_id in subject_ids:
            membership = existing.get(subject_id)
            if membership is None:
                self.db.add(ClassSubject(class_id=class_.id, subject_id=subject_id, is_active=True))
                added += 1
            elif not membership.is_active:
                membership.is_active = True
                added += 1

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                f"Class {class_id} catalog was modified concurrently",
                details={"classId": class_id},
            )

        logger.info("Added %d subject(s) to class %s catalog", added, class_id)

        return await self.get_class_subjects(class_id)

    async def remove_subject_from_class(self, class_id: int, subject_id: int) -> None:
        """Remove a subject from a class catalog.

        Args:
            class_id: Class identifier.
            subject_id: Subject identifier.

        Raises:
            ClassNotFoundError: If class not found.
            SubjectNotFoundError: If subject not found.
            ClassSubjectNotFoundError: If the subject is not in the catalog.
            SubjectInUseError: If a teacher is actively teaching the subject
                in one of the class's sections.
        """
        class_ = await self._get_class(class_id, active_only=False)
        await self._get_by_id(subject_id)

        membership_result = await self.db.execute(
            select(ClassSubject).where(
                ClassSubject.class_id == class_id,
                ClassSubject.subject_id == subject_id,
            )
        )
        membership = membership_result.scalar_one_or_none()
        if membership is None:
            raise ClassSubjectNotFoundError(
                f"Subject {subject_id} is not in class {class_id} catalog",
                details={"classId": class_id, "subjectId": subject_id},
            )

        active_result = await self.db.execute(
            select(func.count())
            .select_from(SectionSubjectTeacher)
            .join(Section, Section.id == SectionSubjectTeacher.section_id)
            .where(
                Section.class_id == class_.id,
                SectionSubjectTeacher.subject_id == subject_id,
                SectionSubjectTeacher.is_active.is_(True),
            )
        )
        active_assignments = active_result.scalar() or 0
        if active_assignments:
            raise SubjectInUseError(
                f"Subject {subject_id} has active teacher assignments in class {class_id}",
                details={
                    "classId": class_id,
                    "subjectId": subject_id,
                    "activeAssignments": active_assignments,
                },
            )

        await self.db.execute(delete(ClassSubject).where(ClassSubject.id == membership.id))
        await self.db.commit()

        logger.info("Removed subject %s from class %s catalog", subject_id, class_id)

    async def get_class_subjects(self, class_id: int) -> ClassSubjectsResponse:
        """Get a class catalog with its sections' active subject teachers.

        Args:
            class_id: Class identifier.

        Returns:
            Class with active subjects and active sections.

        Raises:
            ClassNotFoundError: If class not found.
        """
        class_ = await self._get_class(class_id, active_only=False)

        subject_result = await self.db.execute(
            select(Subject)
            .join(ClassSubject, ClassSubject.subject_id == Subject.id)
            .where(
                ClassSubject.class_id == class_id,
                ClassSubject.is_active.is_(True),
                Subject.is_active.is_(True),
            )
            .order_by(Subject.name, Subject.id)
        )
        subjects = [SubjectSummary.model_validate(s) for s in subject_result.scalars().all()]

        section_result = await self.db.execute(
            select(Section)
            .where(Section.class_id == class_id, Section.is_active.is_(True))
            .order_by(Section.name, Section.id)
        )
        sections = section_result.scalars().all()

        teachers_by_section: dict[int, list[SubjectTeacherEntry]] = defaultdict(list)
        if sections:
            assignment_result = await self.db.execute(
                select(SectionSubjectTeacher, Subject, AuthUser)
                .join(Subject, Subject.id == SectionSubjectTeacher.subject_id)
                .join(AuthUser, AuthUser.id == SectionSubjectTeacher.teacher_id)
                .where(
                    SectionSubjectTeacher.section_id.in_([s.id for s in sections]),
                    SectionSubjectTeacher.is_active.is_(True),
                )
                .order_by(Subject.name)
            )
            for assignment, subject, teacher in assignment_result.all():
                teachers_by_section[assignment.section_id].append(
                    SubjectTeacherEntry(
                        assignment_id=assignment.id,
                        subject=SubjectSummary.model_validate(subject),
                        teacher=UserContact.model_validate(teacher),
                    )
                )

        return ClassSubjectsResponse(
            id=class_.id,
            school_code=class_.school_code,
            name=class_.name,
            level=class_.level,
            subjects=subjects,
            sections=[
                ClassSectionEntry(
                    id=section.id,
                    name=section.name,
                    room=section.room,
                    capacity=section.capacity,
                    subject_teachers=teachers_by_section[section.id],
                )
                for section in sections
            ],
        )

    async def _get_by_id(self, subject_id: int) -> Subject:
        """Get subject by ID regardless of status.

        Raises:
            SubjectNotFoundError: If not found.
        """
        result = await self.db.execute(select(Subject).where(Subject.id == subject_id))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(
                f"Subject {subject_id} not found",
                details={"subjectId": subject_id},
            )

        return subject

    async def _get_class(self, class_id: int, active_only: bool = True) -> Class:
        """Get class by ID.

        Raises:
            ClassNotFoundError: If not found (or inactive when active_only).
        """
        query = select(Class).where(Class.id == class_id)
        if active_only:
            query = query.where(Class.is_active.is_(True))
        result = await self.db.execute(query)
        class_ = result.scalar_one_or_none()

        if not class_:
            raise ClassNotFoundError(
                f"Class {class_id} not found",
                details={"classId": class_id},
            )

        return class_

    async def _get_active_classes(self, subject_id: int) -> list[ClassSummary]:
        """Active classes whose catalog holds the subject."""
        result = await self.db.execute(
            select(Class)
            .join(ClassSubject, ClassSubject.class_id == Class.id)
            .where(
                ClassSubject.subject_id == subject_id,
                ClassSubject.is_active.is_(True),
                Class.is_active.is_(True),
            )
            .order_by(Class.level.asc().nulls_last(), Class.name)
        )
        return [ClassSummary.model_validate(c) for c in result.scalars().all()]

    async def _check_code_available(
        self,
        school_code: str,
        code: str,
        exclude_id: int | None = None,
    ) -> None:
        """Ensure no other active subject of the school uses the code.

        Raises:
            SubjectCodeExistsError: If the code is taken.
        """
        query = select(Subject.id).where(
            Subject.school_code == school_code,
            Subject.code == code,
            Subject.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(Subject.id != exclude_id)

        result = await self.db.execute(query)
        if result.first() is not None:
            raise SubjectCodeExistsError(
                f"Subject with code '{code}' already exists in {school_code}",
                details={"schoolCode": school_code, "code": code},
            )

    async def _commit_or_code_conflict(self, school_code: str, code: str | None) -> None:
        """Commit, surfacing a unique index violation as a code conflict."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise SubjectCodeExistsError(
                f"Subject with code '{code}' already exists in {school_code}",
                details={"schoolCode": school_code, "code": code},
            )

    def _to_response(self, subject: Subject, classes: list[ClassSummary]) -> SubjectResponse:
        """Convert subject model to response DTO."""
        return SubjectResponse(
            id=subject.id,
            school_code=subject.school_code,
            name=subject.name,
            code=subject.code,
            description=subject.description,
            is_active=subject.is_active,
            classes=classes,
        )
