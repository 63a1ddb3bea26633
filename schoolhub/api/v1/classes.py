# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class and section API endpoints.

Endpoints:
- POST /{school_code}/classes - Create a class
- GET /{school_code}/classes - List classes with their sections
- POST /{school_code}/classes/{class_id}/sections - Create a section
- GET /classes/{class_id}/sections - List sections of a class

Creating classes and sections requires admin access to the school.
"""

import logging

from fastapi import APIRouter, Depends, status

from schoolhub.api.dependencies import Classes, RequireOwnership, SchoolAdmin, SchoolMember
from schoolhub.api.middleware.auth import CurrentUser
from schoolhub.infrastructure.database.models import Class
from schoolhub.models.class_ import (
    ClassCreateRequest,
    ClassResponse,
    SectionCreateRequest,
    SectionDetailResponse,
    SectionResponse,
)
from schoolhub.models.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/classes/{class_id}/sections",
    response_model=ApiResponse[list[SectionDetailResponse]],
    summary="List sections",
    description="List active sections of a class ordered by name.",
)
async def list_sections(
    class_id: int,
    classes: Classes,
    _user: CurrentUser = Depends(RequireOwnership(Class, "class_id")),
) -> ApiResponse[list[SectionDetailResponse]]:
    """List a class's active sections with class teacher contact."""
    return ApiResponse(data=await classes.get_sections_by_class(class_id))


@router.post(
    "/{school_code}/classes",
    response_model=ApiResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
    description="Create a new class. Requires admin access.",
)
async def create_class(
    school_code: str,
    data: ClassCreateRequest,
    current_user: SchoolAdmin,
    classes: Classes,
) -> ApiResponse[ClassResponse]:
    """Create a new class.

    Args:
        school_code: Tenant code.
        data: Class creation request.
        current_user: Authenticated admin of the school.
        classes: Class service.

    Returns:
        Created class.
    """
    logger.info("Creating class: %s in school %s by %s", data.name, school_code, current_user.id)

    class_ = await classes.create_class(school_code, data, created_by=current_user.id)
    return ApiResponse(data=class_, message="Class created successfully")


@router.get(
    "/{school_code}/classes",
    response_model=ApiResponse[list[ClassResponse]],
    summary="List classes",
    description="List active classes ordered by level, each with its active sections.",
)
async def list_classes(
    school_code: str,
    _user: SchoolMember,
    classes: Classes,
) -> ApiResponse[list[ClassResponse]]:
    """List a school's active classes."""
    return ApiResponse(data=await classes.get_classes_by_school(school_code))


@router.post(
    "/{school_code}/classes/{class_id}/sections",
    response_model=ApiResponse[SectionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create section",
    description="Create a section inside a class. Requires admin access.",
)
async def create_section(
    school_code: str,
    class_id: int,
    data: SectionCreateRequest,
    current_user: SchoolAdmin,
    classes: Classes,
) -> ApiResponse[SectionResponse]:
    """Create a section inside a class of the school.

    Args:
        school_code: Tenant code.
        class_id: Parent class identifier.
        data: Section creation request.
        current_user: Authenticated admin of the school.
        classes: Class service.

    Returns:
        Created section.
    """
    section = await classes.create_section(
        school_code,
        class_id,
        data,
        created_by=current_user.id,
    )
    return ApiResponse(data=section, message="Section created successfully")
