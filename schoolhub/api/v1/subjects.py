# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject and class catalog API endpoints.

Subject endpoints:
- POST /{school_code}/subjects - Create a subject
- GET /{school_code}/subjects - List subjects with the classes carrying them
- PUT /subjects/{subject_id} - Update a subject
- DELETE /subjects/{subject_id} - Deactivate (or delete) a subject

Class catalog endpoints:
- POST /classes/assign-subjects - Add subjects to a class
- DELETE /classes/{class_id}/subjects/{subject_id} - Remove a subject from a class
- GET /classes/{class_id}/subjects - Class catalog with section teachers
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from schoolhub.api.dependencies import (
    DB,
    AdminUser,
    RequireOwnership,
    SchoolAdmin,
    SchoolMember,
    Subjects,
    ensure_entity_access,
)
from schoolhub.api.middleware.auth import CurrentUser
from schoolhub.infrastructure.database.models import Class, Subject
from schoolhub.models.common import ApiResponse
from schoolhub.models.subject import (
    AssignSubjectsRequest,
    ClassSubjectsResponse,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================================================================
# Class catalog
# =========================================================================


@router.post(
    "/classes/assign-subjects",
    response_model=ApiResponse[ClassSubjectsResponse],
    summary="Assign subjects to class",
    description="Add subjects to a class catalog. Existing members are left as they are.",
)
async def assign_subjects_to_class(
    data: AssignSubjectsRequest,
    current_user: AdminUser,
    db: DB,
    subjects: Subjects,
) -> ApiResponse[ClassSubjectsResponse]:
    """Add subjects to a class catalog.

    Args:
        data: Class id and subject ids.
        current_user: Authenticated admin.
        db: Database session.
        subjects: Subject service.

    Returns:
        The class catalog after the change.
    """
    await ensure_entity_access(db, current_user, Class, data.class_id)

    catalog = await subjects.assign_subjects_to_class(data)
    return ApiResponse(data=catalog, message="Subjects assigned successfully")


@router.delete(
    "/classes/{class_id}/subjects/{subject_id}",
    response_model=ApiResponse[None],
    summary="Remove subject from class",
    description="Remove a subject from a class catalog. Blocked while teachers are assigned.",
)
async def remove_subject_from_class(
    class_id: int,
    subject_id: int,
    subjects: Subjects,
    _user: CurrentUser = Depends(RequireOwnership(Class, "class_id", admin=True)),
) -> ApiResponse[None]:
    """Remove a subject from a class catalog."""
    await subjects.remove_subject_from_class(class_id, subject_id)
    return ApiResponse(message="Subject removed from class successfully")


@router.get(
    "/classes/{class_id}/subjects",
    response_model=ApiResponse[ClassSubjectsResponse],
    summary="Get class subjects",
)
async def get_class_subjects(
    class_id: int,
    subjects: Subjects,
    _user: CurrentUser = Depends(RequireOwnership(Class, "class_id")),
) -> ApiResponse[ClassSubjectsResponse]:
    """Get a class with its subjects and per-section subject teachers."""
    return ApiResponse(data=await subjects.get_class_subjects(class_id))


# =========================================================================
# Subjects
# =========================================================================


@router.put(
    "/subjects/{subject_id}",
    response_model=ApiResponse[SubjectResponse],
    summary="Update subject",
)
async def update_subject(
    subject_id: int,
    data: SubjectUpdateRequest,
    subjects: Subjects,
    _user: CurrentUser = Depends(RequireOwnership(Subject, "subject_id", admin=True)),
) -> ApiResponse[SubjectResponse]:
    """Update a subject. Only supplied fields change."""
    subject = await subjects.update_subject(subject_id, data)
    return ApiResponse(data=subject, message="Subject updated successfully")


@router.delete(
    "/subjects/{subject_id}",
    response_model=ApiResponse[None],
    summary="Delete subject",
    description="Deactivate a subject, or delete it with hardDelete=true.",
)
async def delete_subject(
    subject_id: int,
    subjects: Subjects,
    hard_delete: Annotated[bool, Query(alias="hardDelete")] = False,
    _user: CurrentUser = Depends(RequireOwnership(Subject, "subject_id", admin=True)),
) -> ApiResponse[None]:
    """Deactivate or delete a subject that nothing references."""
    await subjects.delete_subject(subject_id, hard_delete=hard_delete)
    return ApiResponse(message="Subject deleted successfully")


@router.post(
    "/{school_code}/subjects",
    response_model=ApiResponse[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
    description="Create a new subject. Requires admin access.",
)
async def create_subject(
    school_code: str,
    data: SubjectCreateRequest,
    current_user: SchoolAdmin,
    subjects: Subjects,
) -> ApiResponse[SubjectResponse]:
    """Create a new subject.

    Args:
        school_code: Tenant code.
        data: Subject creation request.
        current_user: Authenticated admin of the school.
        subjects: Subject service.

    Returns:
        Created subject.
    """
    logger.info("Creating subject: %s in %s by %s", data.name, school_code, current_user.id)

    subject = await subjects.create_subject(school_code, data, created_by=current_user.id)
    return ApiResponse(data=subject, message="Subject created successfully")


@router.get(
    "/{school_code}/subjects",
    response_model=ApiResponse[list[SubjectResponse]],
    summary="List subjects",
)
async def list_subjects(
    school_code: str,
    _user: SchoolMember,
    subjects: Subjects,
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
) -> ApiResponse[list[SubjectResponse]]:
    """List a school's subjects ordered by name."""
    return ApiResponse(
        data=await subjects.get_subjects_by_school(school_code, include_inactive=include_inactive)
    )
