# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session service.

This module provides the AcademicSessionService for:
- Session creation, optionally as the school's active session
- Session activation (exactly one active session per school)
- Session listing, newest first

Activation is a flip-then-write sequence: every other active session of
the school is deactivated and the target becomes active inside one
transaction, after taking a row lock on the school. The partial unique
index on sessions(school_code) WHERE is_active backs this up when two
writers race.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.domains.errors import ConflictError, NotFoundError
from schoolhub.domains.school.service import SchoolNotFoundError
from schoolhub.infrastructure.database.models import AcademicSession, School
from schoolhub.models.session import SessionCreateRequest, SessionResponse

logger = logging.getLogger(__name__)


class SessionNotFoundError(NotFoundError):
    """Raised when a session is not found."""

    code = "session_not_found"


class ActiveSessionConflictError(ConflictError):
    """Raised when another writer activated a session concurrently."""

    code = "active_session_conflict"


class AcademicSessionService:
    """Service for managing academic sessions.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize academic session service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def create_session(
        self,
        school_code: str,
        request: SessionCreateRequest,
    ) -> SessionResponse:
        """Create a new academic session.

        When request.is_active is set, all other sessions of the school are
        deactivated in the same transaction.

        Args:
            school_code: Tenant code.
            request: Session creation data.

        Returns:
            Created session.

        Raises:
            SchoolNotFoundError: If school not found.
            ActiveSessionConflictError: If a concurrent activation won.
        """
        await self._lock_school(school_code)

        if request.is_active:
            await self._deactivate_sessions(school_code)

        session = AcademicSession(
            school_code=school_code,
            name=request.name,
            start_date=request.start_date,
            end_date=request.end_date,
            is_active=request.is_active,
        )
        self.db.add(session)

        await self._commit(school_code)
        await self.db.refresh(session)

        logger.info(
            "Created session: %s (%s) for %s, active=%s",
            session.name,
            session.id,
            school_code,
            session.is_active,
        )

        return SessionResponse.model_validate(session)

    async def activate_session(self, session_id: int) -> SessionResponse:
        """Make a session the only active one of its school.

        Args:
            session_id: Session identifier.

        Returns:
            Activated session.

        Raises:
            SessionNotFoundError: If session not found.
            ActiveSessionConflictError: If a concurrent activation won.
        """
        session = await self._get_by_id(session_id)
        await self._lock_school(session.school_code)

        await self._deactivate_sessions(session.school_code, exclude_id=session.id)
        session.is_active = True

        await self._commit(session.school_code)
        await self.db.refresh(session)

        logger.info("Activated session %s for %s", session_id, session.school_code)

        return SessionResponse.model_validate(session)

    async def get_sessions_by_school(self, school_code: str) -> list[SessionResponse]:
        """List a school's sessions, newest first.

        Args:
            school_code: Tenant code.

        Returns:
            Sessions ordered by creation time descending.
        """
        result = await self.db.execute(
            select(AcademicSession)
            .where(AcademicSession.school_code == school_code)
            .order_by(AcademicSession.created_at.desc(), AcademicSession.id.desc())
        )
        return [SessionResponse.model_validate(s) for s in result.scalars().all()]

    async def get_active_session(self, school_code: str) -> SessionResponse | None:
        """Get the active session of a school, if any."""
        result = await self.db.execute(
            select(AcademicSession).where(
                AcademicSession.school_code == school_code,
                AcademicSession.is_active.is_(True),
            )
        )
        session = result.scalar_one_or_none()
        return SessionResponse.model_validate(session) if session else None

    async def _get_by_id(self, session_id: int) -> AcademicSession:
        """Get session by ID.

        Raises:
            SessionNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(AcademicSession).where(AcademicSession.id == session_id)
        )
        session = result.scalar_one_or_none()

        if not session:
            raise SessionNotFoundError(
                f"Session {session_id} not found",
                details={"sessionId": session_id},
            )

        return session

    async def _lock_school(self, school_code: str) -> School:
        """Load the school row with a write lock.

        Serializes concurrent activations for one school on dialects that
        support SELECT ... FOR UPDATE.

        Raises:
            SchoolNotFoundError: If school not found.
        """
        result = await self.db.execute(
            select(School).where(School.code == school_code).with_for_update()
        )
        school = result.scalar_one_or_none()

        if not school:
            raise SchoolNotFoundError(
                f"School {school_code} not found",
                details={"schoolCode": school_code},
            )

        return school

    async def _deactivate_sessions(
        self,
        school_code: str,
        exclude_id: int | None = None,
    ) -> None:
        """Flip every active session of a school to inactive."""
        stmt = update(AcademicSession).where(
            AcademicSession.school_code == school_code,
            AcademicSession.is_active.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(AcademicSession.id != exclude_id)
        await self.db.execute(stmt.values(is_active=False))

    async def _commit(self, school_code: str) -> None:
        """Commit, mapping a lost activation race to a conflict."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Concurrent session activation for %s", school_code)
            raise ActiveSessionConflictError(
                f"Another session of {school_code} was activated concurrently",
                details={"schoolCode": school_code},
            )
