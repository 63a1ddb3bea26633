# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions from the application's DatabaseManager
- Get authenticated users and enforce role gates
- Enforce that a principal only acts on its own school
- Get service instances

Example:
    @router.get("/{school_code}/classes")
    async def list_classes(
        school_code: str,
        _user: SchoolMember,
        classes: Classes,
    ):
        ...
"""

import logging
from typing import Annotated, Any, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.api.middleware.auth import CurrentUser, get_current_user
from schoolhub.core.config import Settings, get_settings
from schoolhub.domains.assignment import TeacherAssignmentService
from schoolhub.domains.class_ import ClassService
from schoolhub.domains.enrollment import EnrollmentService
from schoolhub.domains.errors import ForbiddenError
from schoolhub.domains.identity import IdentityDirectory
from schoolhub.domains.school import SchoolService
from schoolhub.domains.school.service import get_school_by_code
from schoolhub.domains.session import AcademicSessionService
from schoolhub.domains.subject import SubjectService
from schoolhub.infrastructure.database.connection import DatabaseManager
from schoolhub.infrastructure.database.models import (
    Section,
    SectionSubjectTeacher,
    StudentEnrollment,
)

logger = logging.getLogger(__name__)


# =========================================================================
# Settings and Database Dependencies
# =========================================================================


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    settings = getattr(request.app.state, "settings", None)
    return settings or get_settings()


def get_database(request: Request) -> DatabaseManager:
    """Get the application's database manager.

    Args:
        request: HTTP request.

    Returns:
        DatabaseManager stored on app.state by the lifespan.

    Raises:
        HTTPException: If the database is not initialized.
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


async def get_db(
    database: Annotated[DatabaseManager, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession committed or rolled back when the request ends.
    """
    async with database.get_session() as session:
        yield session


AppSettings = Annotated[Settings, Depends(get_app_settings)]
DB = Annotated[AsyncSession, Depends(get_db)]


# =========================================================================
# Service Dependencies
# =========================================================================


def get_identity_directory(db: DB, settings: AppSettings) -> IdentityDirectory:
    """Get the identity directory for this request."""
    return IdentityDirectory(db, settings.structure.teacher_roles)


Directory = Annotated[IdentityDirectory, Depends(get_identity_directory)]


def get_class_service(db: DB, directory: Directory, settings: AppSettings) -> ClassService:
    """Get class service instance."""
    return ClassService(db, directory, settings.structure)


Classes = Annotated[ClassService, Depends(get_class_service)]


def get_school_service(db: DB, classes: Classes) -> SchoolService:
    """Get school service instance."""
    return SchoolService(db, classes)


def get_session_service(db: DB) -> AcademicSessionService:
    """Get academic session service instance."""
    return AcademicSessionService(db)


def get_subject_service(db: DB) -> SubjectService:
    """Get subject service instance."""
    return SubjectService(db)


def get_assignment_service(db: DB, directory: Directory) -> TeacherAssignmentService:
    """Get teacher assignment service instance."""
    return TeacherAssignmentService(db, directory)


def get_enrollment_service(db: DB, settings: AppSettings) -> EnrollmentService:
    """Get enrollment service instance."""
    return EnrollmentService(db, settings.enrollment)


Schools = Annotated[SchoolService, Depends(get_school_service)]
Sessions = Annotated[AcademicSessionService, Depends(get_session_service)]
Subjects = Annotated[SubjectService, Depends(get_subject_service)]
Assignments = Annotated[TeacherAssignmentService, Depends(get_assignment_service)]
Enrollments = Annotated[EnrollmentService, Depends(get_enrollment_service)]


# =========================================================================
# Authentication Dependencies
# =========================================================================


async def require_auth(request: Request, directory: Directory) -> CurrentUser:
    """Require an authenticated user whose account is still active.

    Args:
        request: HTTP request.
        directory: Identity directory used to confirm the account.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: 401 if not authenticated, 403 if the account is
            missing or inactive.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await directory.get_active_user(user.id) is None:
        logger.warning("Rejected token for missing or inactive account %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive or does not exist",
        )

    return user


AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]


def require_admin(user: AuthenticatedUser) -> CurrentUser:
    """Require admin user (admin or superadmin).

    Raises:
        HTTPException: If not admin.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_superadmin(user: AuthenticatedUser) -> CurrentUser:
    """Require a superadmin.

    Raises:
        HTTPException: If not superadmin.
    """
    if not user.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin access required",
        )
    return user


def require_teacher_or_admin(user: AuthenticatedUser, settings: AppSettings) -> CurrentUser:
    """Require a teaching role or an admin.

    Raises:
        HTTPException: If neither.
    """
    if not (user.is_admin or user.has_any_role(*settings.structure.teacher_roles)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher or admin access required",
        )
    return user


AdminUser = Annotated[CurrentUser, Depends(require_admin)]
SuperAdminUser = Annotated[CurrentUser, Depends(require_superadmin)]
TeacherOrAdmin = Annotated[CurrentUser, Depends(require_teacher_or_admin)]


# =========================================================================
# Tenant Dependencies
# =========================================================================


async def ensure_school_access(db: AsyncSession, user: CurrentUser, school_code: str) -> None:
    """Check that a principal may act on a school.

    Superadmins may act on any school. Everyone else may only act on the
    school whose id matches their token.

    Args:
        db: Async database session.
        user: Current principal.
        school_code: Tenant code being acted on.

    Raises:
        SchoolNotFoundError: If the school does not exist.
        ForbiddenError: If the school belongs to another tenant.
    """
    if user.is_superadmin:
        return

    school = await get_school_by_code(db, school_code)
    if not user.can_access_school(school.id):
        logger.warning("User %s denied access to school %s", user.id, school_code)
        raise ForbiddenError(
            f"Access to school {school_code} denied",
            details={"schoolCode": school_code},
        )


async def school_code_of(db: AsyncSession, model: type[Any], entity_id: int) -> str | None:
    """Find the school code owning an entity.

    Args:
        db: Async database session.
        model: ORM model of the entity.
        entity_id: Entity identifier.

    Returns:
        The owning school code, or None if the entity does not exist.
    """
    if model in (SectionSubjectTeacher, StudentEnrollment):
        query = (
            select(Section.school_code)
            .join(model, model.section_id == Section.id)
            .where(model.id == entity_id)
        )
    else:
        query = select(model.school_code).where(model.id == entity_id)

    result = await db.execute(query)
    return result.scalar_one_or_none()


async def ensure_entity_access(
    db: AsyncSession,
    user: CurrentUser,
    model: type[Any],
    entity_id: int,
) -> None:
    """Check tenant access for an entity addressed by id.

    Missing entities pass; the service reports them as not found.
    """
    if user.is_superadmin:
        return

    school_code = await school_code_of(db, model, entity_id)
    if school_code is not None:
        await ensure_school_access(db, user, school_code)


async def require_school_member(
    school_code: str,
    user: AuthenticatedUser,
    db: DB,
) -> CurrentUser:
    """Require an authenticated principal of the school in the path."""
    await ensure_school_access(db, user, school_code)
    return user


async def require_school_admin(
    school_code: str,
    user: AdminUser,
    db: DB,
) -> CurrentUser:
    """Require an admin of the school in the path."""
    await ensure_school_access(db, user, school_code)
    return user


SchoolMember = Annotated[CurrentUser, Depends(require_school_member)]
SchoolAdmin = Annotated[CurrentUser, Depends(require_school_admin)]


class RequireOwnership:
    """Dependency for id-addressed routes that checks the owning school.

    Example:
        @router.put("/subjects/{subject_id}")
        async def update_subject(
            subject_id: int,
            user: CurrentUser = Depends(RequireOwnership(Subject, "subject_id", admin=True)),
        ):
            ...
    """

    def __init__(self, model: type[Any], param: str, *, admin: bool = False) -> None:
        """Initialize ownership requirement.

        Args:
            model: ORM model addressed by the path parameter.
            param: Name of the path parameter carrying the id.
            admin: Also require an admin role.
        """
        self.model = model
        self.param = param
        self.admin = admin

    async def __call__(
        self,
        request: Request,
        user: AuthenticatedUser,
        db: DB,
    ) -> CurrentUser:
        """Check role and ownership and return user.

        Raises:
            HTTPException: If admin is required and missing.
            ForbiddenError: If the entity belongs to another school.
        """
        if self.admin and not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )

        raw_id = request.path_params.get(self.param, "")
        if raw_id.isdigit():
            await ensure_entity_access(db, user, self.model, int(raw_id))

        return user
