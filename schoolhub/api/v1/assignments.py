# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher assignment API endpoints.

Assignment endpoints:
- POST /assign-teacher-subject - Assign a teacher to a section/subject
- POST /bulk-assign-teachers - Assign several teachers atomically
- PUT /assignments/{assignment_id} - Reassign or (de)activate
- DELETE /assignments/{assignment_id} - Deactivate (or delete)

Read endpoints:
- GET /teachers/{teacher_id}/schedule - A teacher's schedule and workload
- GET /subjects/{subject_id}/teachers - Teachers of a subject
- GET /sections/{section_id}/teachers - Subject teachers of a section
- GET /{school_code}/available-teachers - Teachers of a school
- GET /{school_code}/unassigned-combinations - Section/subject gaps
- GET /{school_code}/teaching-analytics - School-wide workload and coverage
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from schoolhub.api.dependencies import (
    DB,
    AdminUser,
    Assignments,
    Directory,
    RequireOwnership,
    SchoolAdmin,
    TeacherOrAdmin,
    ensure_entity_access,
    ensure_school_access,
)
from schoolhub.api.middleware.auth import CurrentUser
from schoolhub.domains.errors import ForbiddenError
from schoolhub.infrastructure.database.models import Section, SectionSubjectTeacher, Subject
from schoolhub.models.assignment import (
    AssignmentResponse,
    AssignmentUpdateRequest,
    AssignTeacherRequest,
    BulkAssignTeachersRequest,
    SectionTeachersResponse,
    TeacherScheduleResponse,
    TeachersBySubjectResponse,
    TeachingAnalyticsResponse,
    UnassignedCombinationsResponse,
)
from schoolhub.models.common import ApiResponse, TeacherProfile

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================================================================
# Assignment commands
# =========================================================================


@router.post(
    "/assign-teacher-subject",
    response_model=ApiResponse[AssignmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Assign teacher",
    description="Assign a teacher to a section/subject pair. Requires admin access.",
)
async def assign_teacher(
    data: AssignTeacherRequest,
    current_user: AdminUser,
    db: DB,
    assignments: Assignments,
) -> ApiResponse[AssignmentResponse]:
    """Assign a teacher to a section/subject pair.

    A pair holds at most one active teacher. When it is already taken the
    error carries the current teacher's id.

    Args:
        data: Section, subject and teacher ids.
        current_user: Authenticated admin.
        db: Database session.
        assignments: Assignment service.

    Returns:
        Created assignment.
    """
    await ensure_entity_access(db, current_user, Section, data.section_id)

    assignment = await assignments.assign_teacher(data, assigned_by=current_user.id)
    return ApiResponse(data=assignment, message="Teacher assigned successfully")


@router.post(
    "/bulk-assign-teachers",
    response_model=ApiResponse[list[AssignmentResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Bulk assign teachers",
    description="Assign several teachers in one transaction. Any failure rejects the batch.",
)
async def bulk_assign_teachers(
    data: BulkAssignTeachersRequest,
    current_user: AdminUser,
    db: DB,
    assignments: Assignments,
) -> ApiResponse[list[AssignmentResponse]]:
    """Assign several teachers atomically."""
    for section_id in {item.section_id for item in data.assignments}:
        await ensure_entity_access(db, current_user, Section, section_id)

    created = await assignments.bulk_assign_teachers(data, assigned_by=current_user.id)
    return ApiResponse(
        data=created,
        message=f"{len(created)} teacher assignment(s) created successfully",
    )


@router.put(
    "/assignments/{assignment_id}",
    response_model=ApiResponse[AssignmentResponse],
    summary="Update assignment",
)
async def update_assignment(
    assignment_id: int,
    data: AssignmentUpdateRequest,
    assignments: Assignments,
    _user: CurrentUser = Depends(
        RequireOwnership(SectionSubjectTeacher, "assignment_id", admin=True)
    ),
) -> ApiResponse[AssignmentResponse]:
    """Reassign a teacher or change the active flag."""
    assignment = await assignments.update_assignment(assignment_id, data)
    return ApiResponse(data=assignment, message="Assignment updated successfully")


@router.delete(
    "/assignments/{assignment_id}",
    response_model=ApiResponse[None],
    summary="Remove assignment",
    description="Deactivate an assignment, or delete it with hardDelete=true.",
)
async def remove_assignment(
    assignment_id: int,
    assignments: Assignments,
    hard_delete: Annotated[bool, Query(alias="hardDelete")] = False,
    _user: CurrentUser = Depends(
        RequireOwnership(SectionSubjectTeacher, "assignment_id", admin=True)
    ),
) -> ApiResponse[None]:
    """Deactivate or delete an assignment."""
    await assignments.remove_assignment(assignment_id, hard_delete=hard_delete)
    return ApiResponse(message="Assignment removed successfully")


# =========================================================================
# Read views
# =========================================================================


@router.get(
    "/teachers/{teacher_id}/schedule",
    response_model=ApiResponse[TeacherScheduleResponse],
    summary="Get teacher schedule",
    description="Teachers may view their own schedule; admins may view any in their school.",
)
async def get_teacher_schedule(
    teacher_id: int,
    current_user: TeacherOrAdmin,
    db: DB,
    directory: Directory,
    assignments: Assignments,
    school_code: Annotated[str | None, Query(alias="schoolCode")] = None,
    session_id: Annotated[int | None, Query(alias="sessionId")] = None,
) -> ApiResponse[TeacherScheduleResponse]:
    """Get a teacher's assignments grouped by class-section with workload.

    Args:
        teacher_id: Teacher identifier.
        current_user: Authenticated teacher or admin.
        db: Database session.
        directory: Identity directory.
        assignments: Assignment service.
        school_code: Restrict to one school.
        session_id: Count only enrollments of this session.

    Returns:
        Teacher schedule.

    Raises:
        ForbiddenError: If a teacher asks for someone else's schedule, or
            an admin for a teacher of another school.
    """
    if not current_user.is_admin and current_user.id != teacher_id:
        raise ForbiddenError(
            "Teachers can only view their own schedule",
            details={"teacherId": teacher_id},
        )

    if school_code is not None:
        await ensure_school_access(db, current_user, school_code)

    if not current_user.is_superadmin:
        teacher = await directory.get_user(teacher_id)
        if (
            teacher is not None
            and teacher.school_id is not None
            and not current_user.can_access_school(teacher.school_id)
        ):
            raise ForbiddenError(
                f"Teacher {teacher_id} belongs to another school",
                details={"teacherId": teacher_id},
            )

    schedule = await assignments.get_teacher_schedule(
        teacher_id,
        school_code=school_code,
        session_id=session_id,
    )
    return ApiResponse(data=schedule)


@router.get(
    "/subjects/{subject_id}/teachers",
    response_model=ApiResponse[TeachersBySubjectResponse],
    summary="Get teachers by subject",
)
async def get_teachers_by_subject(
    subject_id: int,
    db: DB,
    assignments: Assignments,
    school_code: Annotated[str | None, Query(alias="schoolCode")] = None,
    session_id: Annotated[int | None, Query(alias="sessionId")] = None,
    current_user: CurrentUser = Depends(RequireOwnership(Subject, "subject_id")),
) -> ApiResponse[TeachersBySubjectResponse]:
    """List teachers actively teaching a subject, with their sections."""
    if school_code is not None:
        await ensure_school_access(db, current_user, school_code)

    teachers = await assignments.get_teachers_by_subject(
        subject_id,
        school_code=school_code,
        session_id=session_id,
    )
    return ApiResponse(data=teachers)


@router.get(
    "/sections/{section_id}/teachers",
    response_model=ApiResponse[SectionTeachersResponse],
    summary="Get section teachers",
)
async def get_section_teachers(
    section_id: int,
    assignments: Assignments,
    _user: CurrentUser = Depends(RequireOwnership(Section, "section_id")),
) -> ApiResponse[SectionTeachersResponse]:
    """Get a section with its class teacher and subject teachers."""
    return ApiResponse(data=await assignments.get_section_teachers(section_id))


@router.get(
    "/{school_code}/available-teachers",
    response_model=ApiResponse[list[TeacherProfile]],
    summary="List available teachers",
)
async def get_available_teachers(
    school_code: str,
    _user: SchoolAdmin,
    assignments: Assignments,
    subject_id: Annotated[int | None, Query(alias="subjectId")] = None,
    exclude_assigned: Annotated[bool, Query(alias="excludeAssigned")] = False,
) -> ApiResponse[list[TeacherProfile]]:
    """List a school's active teachers ordered by name."""
    teachers = await assignments.get_available_teachers(
        school_code,
        subject_id=subject_id,
        exclude_assigned=exclude_assigned,
    )
    return ApiResponse(data=teachers)


@router.get(
    "/{school_code}/unassigned-combinations",
    response_model=ApiResponse[UnassignedCombinationsResponse],
    summary="List unassigned combinations",
)
async def get_unassigned_combinations(
    school_code: str,
    _user: SchoolAdmin,
    assignments: Assignments,
) -> ApiResponse[UnassignedCombinationsResponse]:
    """List section/subject pairs of the school with no active teacher."""
    return ApiResponse(data=await assignments.get_unassigned_combinations(school_code))


@router.get(
    "/{school_code}/teaching-analytics",
    response_model=ApiResponse[TeachingAnalyticsResponse],
    summary="Get teaching analytics",
)
async def get_teaching_analytics(
    school_code: str,
    _user: SchoolAdmin,
    assignments: Assignments,
    session_id: Annotated[int | None, Query(alias="sessionId")] = None,
) -> ApiResponse[TeachingAnalyticsResponse]:
    """Compute workload distribution and subject coverage for a school."""
    analytics = await assignments.get_teaching_analytics(school_code, session_id=session_id)
    return ApiResponse(data=analytics)
