# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity directory: read-only lookups over accounts.

The academic structure services never write accounts. They ask the
directory whether a user exists, is active, and holds a role allowed for
the operation at hand (teaching, studying, administering).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.domains.errors import ForbiddenError, NotFoundError
from schoolhub.infrastructure.database.models import AuthUser, School

logger = logging.getLogger(__name__)


class UserNotFoundError(NotFoundError):
    """Raised when an account does not exist or is inactive."""

    code = "user_not_found"


class TeacherNotFoundError(UserNotFoundError):
    """Raised when a teacher account does not exist or is inactive."""

    code = "teacher_not_found"


class InvalidTeacherRoleError(ForbiddenError):
    """Raised when an account exists but cannot hold teaching assignments."""

    code = "invalid_teacher_role"


class IdentityDirectory:
    """Read-only view over AuthUser rows.

    Attributes:
        db: Async database session.
        teacher_roles: Roles that may hold teaching assignments.
    """

    def __init__(self, db: AsyncSession, teacher_roles: Sequence[str]) -> None:
        """Initialize the directory.

        Args:
            db: Async database session.
            teacher_roles: Roles accepted by require_teacher().
        """
        self.db = db
        self.teacher_roles = tuple(teacher_roles)

    async def get_user(self, user_id: int) -> AuthUser | None:
        """Get an account by id regardless of status.

        Args:
            user_id: Account identifier.

        Returns:
            The account, or None.
        """
        result = await self.db.execute(select(AuthUser).where(AuthUser.id == user_id))
        return result.scalar_one_or_none()

    async def get_active_user(self, user_id: int) -> AuthUser | None:
        """Get an active account by id."""
        user = await self.get_user(user_id)
        if user is None or not user.is_active:
            return None
        return user

    async def require_teacher(self, teacher_id: int) -> AuthUser:
        """Resolve an account that may hold teaching assignments.

        Args:
            teacher_id: Account identifier.

        Returns:
            The teacher account.

        Raises:
            TeacherNotFoundError: If the account is missing or inactive.
            InvalidTeacherRoleError: If the account's role cannot teach.
        """
        user = await self.get_active_user(teacher_id)
        if user is None:
            raise TeacherNotFoundError(
                f"Teacher {teacher_id} not found",
                details={"teacherId": teacher_id},
            )
        if user.role not in self.teacher_roles:
            logger.debug("User %s has role %s, not a teacher", teacher_id, user.role)
            raise InvalidTeacherRoleError(
                f"User {teacher_id} has role '{user.role}' and cannot be assigned to teach",
                details={"teacherId": teacher_id, "role": user.role},
            )
        return user

    async def list_teachers(
        self,
        school_code: str,
        exclude_ids: Sequence[int] = (),
    ) -> list[AuthUser]:
        """List active teacher-role accounts of a school ordered by name.

        Args:
            school_code: School code.
            exclude_ids: Account ids to leave out.

        Returns:
            Teacher accounts.
        """
        query = (
            select(AuthUser)
            .join(School, School.id == AuthUser.school_id)
            .where(
                School.code == school_code,
                AuthUser.role.in_(self.teacher_roles),
                AuthUser.is_active.is_(True),
            )
            .order_by(AuthUser.full_name, AuthUser.id)
        )
        if exclude_ids:
            query = query.where(AuthUser.id.not_in(list(exclude_ids)))

        result = await self.db.execute(query)
        return list(result.scalars().all())
