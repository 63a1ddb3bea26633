# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student enrollment API endpoints.

Endpoints:
- POST /{school_code}/enrollments - Enroll a student
- POST /{school_code}/enrollments/bulk - Enroll several students atomically
- PUT /enrollments/{enrollment_id} - Update status, roll number or active flag
- GET /sections/{section_id}/students - Students of a section by roll number
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from schoolhub.api.dependencies import (
    Enrollments,
    RequireOwnership,
    SchoolAdmin,
    TeacherOrAdmin,
)
from schoolhub.api.middleware.auth import CurrentUser
from schoolhub.infrastructure.database.models import Section, StudentEnrollment
from schoolhub.models.common import ApiResponse
from schoolhub.models.enrollment import (
    BulkEnrollRequest,
    EnrollmentResponse,
    EnrollmentUpdateRequest,
    EnrollStudentRequest,
    SectionStudentEntry,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put(
    "/enrollments/{enrollment_id}",
    response_model=ApiResponse[EnrollmentResponse],
    summary="Update enrollment",
)
async def update_enrollment(
    enrollment_id: int,
    data: EnrollmentUpdateRequest,
    enrollments: Enrollments,
    _user: CurrentUser = Depends(
        RequireOwnership(StudentEnrollment, "enrollment_id", admin=True)
    ),
) -> ApiResponse[EnrollmentResponse]:
    """Update an enrollment. Only supplied fields change."""
    enrollment = await enrollments.update_enrollment(enrollment_id, data)
    return ApiResponse(data=enrollment, message="Enrollment updated successfully")


@router.get(
    "/sections/{section_id}/students",
    response_model=ApiResponse[list[SectionStudentEntry]],
    summary="List section students",
    description="Active enrollments of a section ordered by roll number.",
)
async def get_students_by_section(
    section_id: int,
    _user: TeacherOrAdmin,
    enrollments: Enrollments,
    session_id: Annotated[int | None, Query(alias="sessionId")] = None,
    _owner: CurrentUser = Depends(RequireOwnership(Section, "section_id")),
) -> ApiResponse[list[SectionStudentEntry]]:
    """List a section's students, optionally for one session."""
    students = await enrollments.get_students_by_section(section_id, session_id=session_id)
    return ApiResponse(data=students)


@router.post(
    "/{school_code}/enrollments",
    response_model=ApiResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="Enroll a student in a session, class and section. Requires admin access.",
)
async def enroll_student(
    school_code: str,
    data: EnrollStudentRequest,
    current_user: SchoolAdmin,
    enrollments: Enrollments,
) -> ApiResponse[EnrollmentResponse]:
    """Enroll a student.

    A student has at most one enrollment per session, and a roll number is
    unique within a section for a session.

    Args:
        school_code: Tenant code.
        data: Enrollment request.
        current_user: Authenticated admin of the school.
        enrollments: Enrollment service.

    Returns:
        Created enrollment.
    """
    logger.info(
        "Enrolling student %s in section %s by %s",
        data.student_id,
        data.section_id,
        current_user.id,
    )

    enrollment = await enrollments.enroll_student(
        school_code,
        data,
        enrolled_by=current_user.id,
    )
    return ApiResponse(data=enrollment, message="Student enrolled successfully")


@router.post(
    "/{school_code}/enrollments/bulk",
    response_model=ApiResponse[list[EnrollmentResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Bulk enroll students",
    description="Enroll several students in one transaction. Any failure rejects the batch.",
)
async def bulk_enroll_students(
    school_code: str,
    data: BulkEnrollRequest,
    current_user: SchoolAdmin,
    enrollments: Enrollments,
) -> ApiResponse[list[EnrollmentResponse]]:
    """Enroll several students atomically."""
    created = await enrollments.bulk_enroll_students(
        school_code,
        data,
        enrolled_by=current_user.id,
    )
    return ApiResponse(
        data=created,
        message=f"{len(created)} student(s) enrolled successfully",
    )
