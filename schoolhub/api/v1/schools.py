# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School API endpoints.

This module provides endpoints for school management:
- POST / - Register a school (superadmin)
- GET /{school_code} - Get school with its sessions
- GET /{school_code}/structure - Get the complete academic structure
"""

import logging

from fastapi import APIRouter, status

from schoolhub.api.dependencies import SchoolMember, Schools, SuperAdminUser
from schoolhub.models.common import ApiResponse
from schoolhub.models.school import (
    SchoolCreateRequest,
    SchoolDetailResponse,
    SchoolResponse,
    SchoolStructureResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[SchoolResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create school",
    description="Register a new school. Requires superadmin access.",
)
async def create_school(
    data: SchoolCreateRequest,
    current_user: SuperAdminUser,
    schools: Schools,
) -> ApiResponse[SchoolResponse]:
    """Register a new school.

    Args:
        data: School creation request.
        current_user: Authenticated superadmin.
        schools: School service.

    Returns:
        Created school.
    """
    logger.info("Creating school: %s by %s", data.code, current_user.id)

    school = await schools.create_school(data, created_by=current_user.id)
    return ApiResponse(data=school, message="School created successfully")


@router.get(
    "/{school_code}",
    response_model=ApiResponse[SchoolDetailResponse],
    summary="Get school",
    description="Get a school by code with its academic sessions.",
)
async def get_school(
    school_code: str,
    _user: SchoolMember,
    schools: Schools,
) -> ApiResponse[SchoolDetailResponse]:
    """Get a school with its sessions, newest first."""
    return ApiResponse(data=await schools.get_school_by_code(school_code))


@router.get(
    "/{school_code}/structure",
    response_model=ApiResponse[SchoolStructureResponse],
    summary="Get school structure",
    description="Get the school with its active session, classes, sections and subject count.",
)
async def get_school_structure(
    school_code: str,
    _user: SchoolMember,
    schools: Schools,
) -> ApiResponse[SchoolStructureResponse]:
    """Get the complete academic structure of a school."""
    return ApiResponse(data=await schools.get_school_structure(school_code))
