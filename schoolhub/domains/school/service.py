# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service for tenant management.

This module provides the SchoolService that handles:
- School registration (superadmin bootstrap)
- School lookup by code with its sessions
- Complete academic structure of a school

Example:
    >>> school_service = SchoolService(db_session, class_service)
    >>> school = await school_service.create_school(request)
    >>> structure = await school_service.get_school_structure("DPS001")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.domains.errors import ConflictError, NotFoundError
from schoolhub.infrastructure.database.models import AcademicSession, School, Subject
from schoolhub.models.school import (
    SchoolCreateRequest,
    SchoolDetailResponse,
    SchoolResponse,
    SchoolStructureResponse,
)
from schoolhub.models.session import SessionResponse

if TYPE_CHECKING:
    from schoolhub.domains.class_.service import ClassService

logger = logging.getLogger(__name__)


class SchoolNotFoundError(NotFoundError):
    """Raised when a school code does not resolve."""

    code = "school_not_found"


class SchoolCodeExistsError(ConflictError):
    """Raised when trying to create a school with an existing code."""

    code = "school_code_exists"


async def get_school_by_code(db: AsyncSession, school_code: str) -> School:
    """Resolve a school by its tenant code.

    Shared by every service that scopes its work to a school.

    Args:
        db: Async database session.
        school_code: Tenant code.

    Returns:
        School model instance.

    Raises:
        SchoolNotFoundError: If no school has this code.
    """
    result = await db.execute(select(School).where(School.code == school_code))
    school = result.scalar_one_or_none()

    if not school:
        raise SchoolNotFoundError(
            f"School {school_code} not found",
            details={"schoolCode": school_code},
        )

    return school


class SchoolService:
    """Service for managing schools.

    Attributes:
        _db: Async database session.
        _classes: Class service used to assemble the structure view.
    """

    def __init__(self, db: AsyncSession, classes: ClassService) -> None:
        """Initialize the school service.

        Args:
            db: Async database session.
            classes: Class service for class/section listings.
        """
        self._db = db
        self._classes = classes

    async def create_school(
        self,
        request: SchoolCreateRequest,
        created_by: int | None = None,
    ) -> SchoolResponse:
        """Create a new school.

        Args:
            request: School creation request.
            created_by: ID of the principal creating the school.

        Returns:
            Created school response.

        Raises:
            SchoolCodeExistsError: If school code already exists.
        """
        existing = await self._db.execute(select(School.id).where(School.code == request.code))
        if existing.scalar_one_or_none() is not None:
            raise SchoolCodeExistsError(
                f"School with code '{request.code}' already exists",
                details={"schoolCode": request.code},
            )

        school = School(
            code=request.code,
            name=request.name,
            base_url=request.base_url,
            address=request.address,
            phone=request.phone,
            email=request.email,
            principal_name=request.principal_name,
            established_year=request.established_year,
            is_active=True,
        )
        self._db.add(school)

        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise SchoolCodeExistsError(
                f"School with code '{request.code}' already exists",
                details={"schoolCode": request.code},
            )
        await self._db.refresh(school)

        logger.info("Created school: %s (%s) by %s", school.code, school.id, created_by)

        return SchoolResponse.model_validate(school)

    async def get_school_by_code(self, school_code: str) -> SchoolDetailResponse:
        """Get a school with its sessions, newest first.

        Args:
            school_code: Tenant code.

        Returns:
            School details.

        Raises:
            SchoolNotFoundError: If school not found.
        """
        school = await get_school_by_code(self._db, school_code)

        result = await self._db.execute(
            select(AcademicSession)
            .where(AcademicSession.school_code == school_code)
            .order_by(AcademicSession.created_at.desc(), AcademicSession.id.desc())
        )
        sessions = [SessionResponse.model_validate(s) for s in result.scalars().all()]

        return SchoolDetailResponse(
            **SchoolResponse.model_validate(school).model_dump(),
            sessions=sessions,
        )

    async def get_school_structure(self, school_code: str) -> SchoolStructureResponse:
        """Get the complete academic structure of a school.

        Args:
            school_code: Tenant code.

        Returns:
            School, active session, classes with sections and counts.

        Raises:
            SchoolNotFoundError: If school not found.
        """
        school = await get_school_by_code(self._db, school_code)

        active_result = await self._db.execute(
            select(AcademicSession).where(
                AcademicSession.school_code == school_code,
                AcademicSession.is_active.is_(True),
            )
        )
        active_session = active_result.scalar_one_or_none()

        classes = await self._classes.get_classes_by_school(school_code)

        subject_count = await self._db.execute(
            select(func.count())
            .select_from(Subject)
            .where(Subject.school_code == school_code, Subject.is_active.is_(True))
        )

        return SchoolStructureResponse(
            school=SchoolResponse.model_validate(school),
            active_session=(
                SessionResponse.model_validate(active_session) if active_session else None
            ),
            classes=classes,
            total_classes=len(classes),
            total_sections=sum(len(c.sections) for c in classes),
            total_subjects=subject_count.scalar() or 0,
        )
