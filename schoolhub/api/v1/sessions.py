# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session API endpoints.

Endpoints:
- POST /{school_code}/sessions - Create a session
- GET /{school_code}/sessions - List sessions, newest first
- POST /sessions/{session_id}/activate - Make a session the active one
"""

import logging

from fastapi import APIRouter, Depends, status

from schoolhub.api.dependencies import RequireOwnership, SchoolAdmin, SchoolMember, Sessions
from schoolhub.api.middleware.auth import CurrentUser
from schoolhub.infrastructure.database.models import AcademicSession
from schoolhub.models.common import ApiResponse
from schoolhub.models.session import SessionCreateRequest, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sessions/{session_id}/activate",
    response_model=ApiResponse[SessionResponse],
    summary="Activate session",
    description="Make a session the school's only active session. Requires admin access.",
)
async def activate_session(
    session_id: int,
    sessions: Sessions,
    current_user: CurrentUser = Depends(
        RequireOwnership(AcademicSession, "session_id", admin=True)
    ),
) -> ApiResponse[SessionResponse]:
    """Activate a session and deactivate its siblings."""
    session = await sessions.activate_session(session_id)
    return ApiResponse(data=session, message="Session activated successfully")


@router.post(
    "/{school_code}/sessions",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create session",
    description="Create an academic session. Requires admin access.",
)
async def create_session(
    school_code: str,
    data: SessionCreateRequest,
    current_user: SchoolAdmin,
    sessions: Sessions,
) -> ApiResponse[SessionResponse]:
    """Create an academic session.

    When isActive is set, every other session of the school is
    deactivated in the same transaction.

    Args:
        school_code: Tenant code.
        data: Session creation request.
        current_user: Authenticated admin of the school.
        sessions: Session service.

    Returns:
        Created session.
    """
    logger.info("Creating session %s in %s by %s", data.name, school_code, current_user.id)

    session = await sessions.create_session(school_code, data)
    return ApiResponse(data=session, message="Session created successfully")


@router.get(
    "/{school_code}/sessions",
    response_model=ApiResponse[list[SessionResponse]],
    summary="List sessions",
)
async def list_sessions(
    school_code: str,
    _user: SchoolMember,
    sessions: Sessions,
) -> ApiResponse[list[SessionResponse]]:
    """List a school's sessions ordered by start date, newest first."""
    return ApiResponse(data=await sessions.get_sessions_by_school(school_code))
