# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service for managing class/section operations.

This module provides the ClassService class for:
- Class creation within a school
- Section creation within a class of the same school
- Class listing with nested active sections and class teachers
- Section listing for one class

Class names are unique among a school's active classes and section names
among a class's active sections, unless StructureSettings turns either
check off.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.config.settings import StructureSettings
from schoolhub.domains.errors import ConflictError, NotFoundError
from schoolhub.domains.identity.service import IdentityDirectory
from schoolhub.domains.school.service import get_school_by_code
from schoolhub.infrastructure.database.models import AuthUser, Class, Section
from schoolhub.models.class_ import (
    ClassCreateRequest,
    ClassResponse,
    SectionCreateRequest,
    SectionDetailResponse,
    SectionResponse,
)
from schoolhub.models.common import ClassSummary, UserContact, UserSummary

logger = logging.getLogger(__name__)


class ClassNotFoundError(NotFoundError):
    """Raised when class is not found."""

    code = "class_not_found"


class SectionNotFoundError(NotFoundError):
    """Raised when section is not found."""

    code = "section_not_found"


class ClassNameExistsError(ConflictError):
    """Raised when an active class with the same name exists in the school."""

    code = "class_name_exists"


class SectionNameExistsError(ConflictError):
    """Raised when an active section with the same name exists in the class."""

    code = "section_name_exists"


class ClassService:
    """Service for managing classes and sections.

    Attributes:
        db: Async database session.
        directory: Identity directory for class teacher validation.
        settings: Structure rules.
    """

    def __init__(
        self,
        db: AsyncSession,
        directory: IdentityDirectory,
        settings: StructureSettings,
    ) -> None:
        """Initialize class service.

        Args:
            db: Async database session.
            directory: Identity directory.
            settings: Structure rule settings.
        """
        self.db = db
        self.directory = directory
        self.settings = settings

    async def create_class(
        self,
        school_code: str,
        request: ClassCreateRequest,
        created_by: int | None = None,
    ) -> ClassResponse:
        """Create a new class.

        Args:
            school_code: Tenant code.
            request: Class creation data.
            created_by: ID of user creating the class.

        Returns:
            Created class response.

        Raises:
            SchoolNotFoundError: If school not found.
            ClassNameExistsError: If the name is taken and uniqueness is enforced.
        """
        await get_school_by_code(self.db, school_code)

        if self.settings.enforce_unique_class_names:
            existing = await self.db.execute(
                select(Class.id).where(
                    Class.school_code == school_code,
                    func.lower(Class.name) == request.name.lower(),
                    Class.is_active.is_(True),
                )
            )
            if existing.first() is not None:
                raise ClassNameExistsError(
                    f"Class '{request.name}' already exists in {school_code}",
                    details={"schoolCode": school_code, "name": request.name},
                )

        class_ = Class(
            school_code=school_code,
            name=request.name,
            level=request.level,
            description=request.description,
            is_active=True,
        )

        self.db.add(class_)
        await self.db.commit()
        await self.db.refresh(class_)

        logger.info("Created class: %s (%s) by %s", class_.name, class_.id, created_by)

        return self._to_response(class_, [])

    async def create_section(
        self,
        school_code: str,
        class_id: int,
        request: SectionCreateRequest,
        created_by: int | None = None,
    ) -> SectionResponse:
        """Create a section inside a class.

        Args:
            school_code: Tenant code the class must belong to.
            class_id: Parent class identifier.
            request: Section creation data.
            created_by: ID of user creating the section.

        Returns:
            Created section.

        Raises:
            ClassNotFoundError: If (class_id, school_code) is not an active class.
            TeacherNotFoundError: If class_teacher_id is not an active user.
            InvalidTeacherRoleError: If class_teacher_id cannot teach.
            SectionNameExistsError: If the name is taken and uniqueness is enforced.
        """
        result = await self.db.execute(
            select(Class).where(
                Class.id == class_id,
                Class.school_code == school_code,
                Class.is_active.is_(True),
            )
        )
        class_ = result.scalar_one_or_none()
        if not class_:
            raise ClassNotFoundError(
                f"Class {class_id} not found in {school_code}",
                details={"classId": class_id, "schoolCode": school_code},
            )

        class_teacher = None
        if request.class_teacher_id is not None:
            class_teacher = await self.directory.require_teacher(request.class_teacher_id)

        if self.settings.enforce_unique_section_names:
            existing = await self.db.execute(
                select(Section.id).where(
                    Section.class_id == class_id,
                    func.lower(Section.name) == request.name.lower(),
                    Section.is_active.is_(True),
                )
            )
            if existing.first() is not None:
                raise SectionNameExistsError(
                    f"Section '{request.name}' already exists in class {class_id}",
                    details={"classId": class_id, "name": request.name},
                )

        section = Section(
            school_code=school_code,
            class_id=class_id,
            name=request.name,
            capacity=request.capacity,
            class_teacher_id=request.class_teacher_id,
            room=request.room,
            is_active=True,
        )

        self.db.add(section)
        await self.db.commit()
        await self.db.refresh(section)

        logger.info(
            "Created section: %s (%s) in class %s by %s",
            section.name,
            section.id,
            class_id,
            created_by,
        )

        return self._section_to_response(section, class_teacher)

    async def get_classes_by_school(self, school_code: str) -> list[ClassResponse]:
        """List active classes by level, each with active sections by name.

        Args:
            school_code: Tenant code.

        Returns:
            Classes with nested sections and class teachers.
        """
        result = await self.db.execute(
            select(Class)
            .where(Class.school_code == school_code, Class.is_active.is_(True))
            .order_by(Class.level.asc().nulls_last(), Class.name, Class.id)
        )
        classes = result.scalars().all()
        if not classes:
            return []

        section_result = await self.db.execute(
            select(Section)
            .where(
                Section.class_id.in_([c.id for c in classes]),
                Section.is_active.is_(True),
            )
            .order_by(Section.name, Section.id)
        )
        sections = section_result.scalars().all()
        teachers = await self._get_users(s.class_teacher_id for s in sections)

        sections_by_class: dict[int, list[SectionResponse]] = defaultdict(list)
        for section in sections:
            sections_by_class[section.class_id].append(
                self._section_to_response(section, teachers.get(section.class_teacher_id))
            )

        return [self._to_response(c, sections_by_class[c.id]) for c in classes]

    async def get_sections_by_class(self, class_id: int) -> list[SectionDetailResponse]:
        """List a class's active sections ordered by name.

        Args:
            class_id: Class identifier.

        Returns:
            Sections with class summary and contactable class teacher.
        """
        result = await self.db.execute(
            select(Section, Class)
            .join(Class, Class.id == Section.class_id)
            .where(Section.class_id == class_id, Section.is_active.is_(True))
            .order_by(Section.name, Section.id)
        )
        rows = result.all()
        teachers = await self._get_users(section.class_teacher_id for section, _ in rows)

        items = []
        for section, class_ in rows:
            teacher = teachers.get(section.class_teacher_id)
            items.append(
                SectionDetailResponse(
                    **self._section_fields(section),
                    class_teacher=UserContact.model_validate(teacher) if teacher else None,
                    class_info=ClassSummary.model_validate(class_),
                )
            )
        return items

    async def _get_users(self, user_ids: Iterable[int | None]) -> dict[int, AuthUser]:
        """Load accounts by id in one query.

        Args:
            user_ids: Account ids; None entries are ignored.

        Returns:
            Mapping of id to account.
        """
        ids = {user_id for user_id in user_ids if user_id is not None}
        if not ids:
            return {}
        result = await self.db.execute(select(AuthUser).where(AuthUser.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    @staticmethod
    def _section_fields(section: Section) -> dict:
        """Scalar fields shared by all section views."""
        return {
            "id": section.id,
            "school_code": section.school_code,
            "class_id": section.class_id,
            "name": section.name,
            "capacity": section.capacity,
            "room": section.room,
            "class_teacher_id": section.class_teacher_id,
            "is_active": section.is_active,
        }

    def _section_to_response(
        self,
        section: Section,
        class_teacher: AuthUser | None,
    ) -> SectionResponse:
        """Convert section model to response DTO."""
        return SectionResponse(
            **self._section_fields(section),
            class_teacher=UserSummary.model_validate(class_teacher) if class_teacher else None,
        )

    def _to_response(
        self,
        class_: Class,
        sections: list[SectionResponse],
    ) -> ClassResponse:
        """Convert class model to response DTO.

        Args:
            class_: Class model instance.
            sections: Already converted sections.

        Returns:
            Class response.
        """
        return ClassResponse(
            id=class_.id,
            school_code=class_.school_code,
            name=class_.name,
            level=class_.level,
            description=class_.description,
            is_active=class_.is_active,
            sections=sections,
        )
