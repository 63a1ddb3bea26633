# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the identity directory."""

import pytest

from schoolhub.domains.identity import (
    IdentityDirectory,
    InvalidTeacherRoleError,
    TeacherNotFoundError,
)


class TestUserLookups:
    """Tests for account lookups."""

    @pytest.mark.asyncio
    async def test_get_user_any_status(self, directory, seed):
        """Test inactive accounts are still returned by get_user."""
        user = await seed.user(role="teacher", is_active=False)

        found = await directory.get_user(user.id)

        assert found is not None
        assert found.is_active is False

    @pytest.mark.asyncio
    async def test_get_active_user_skips_inactive(self, directory, seed):
        """Test inactive accounts are hidden from get_active_user."""
        user = await seed.user(role="teacher", is_active=False)

        assert await directory.get_active_user(user.id) is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, directory):
        """Test unknown ids return None."""
        assert await directory.get_user(999) is None
        assert await directory.get_active_user(999) is None


class TestRequireTeacher:
    """Tests for teacher validation."""

    @pytest.mark.asyncio
    async def test_teacher_accepted(self, directory, seed):
        """Test a teacher account passes."""
        user = await seed.user(role="teacher")

        teacher = await directory.require_teacher(user.id)

        assert teacher.id == user.id

    @pytest.mark.asyncio
    async def test_principal_accepted(self, directory, seed):
        """Test principals may teach by default."""
        user = await seed.user(role="principal")

        teacher = await directory.require_teacher(user.id)

        assert teacher.role == "principal"

    @pytest.mark.asyncio
    async def test_student_rejected(self, directory, seed):
        """Test a student cannot teach."""
        user = await seed.user(role="student")

        with pytest.raises(InvalidTeacherRoleError) as exc_info:
            await directory.require_teacher(user.id)

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"teacherId": user.id, "role": "student"}

    @pytest.mark.asyncio
    async def test_missing_teacher(self, directory):
        """Test unknown ids raise TeacherNotFoundError."""
        with pytest.raises(TeacherNotFoundError) as exc_info:
            await directory.require_teacher(999)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_inactive_teacher(self, directory, seed):
        """Test inactive teachers are not found."""
        user = await seed.user(role="teacher", is_active=False)

        with pytest.raises(TeacherNotFoundError):
            await directory.require_teacher(user.id)

    @pytest.mark.asyncio
    async def test_custom_teacher_roles(self, db, seed):
        """Test the accepted roles come from configuration."""
        directory = IdentityDirectory(db, ["teacher"])
        user = await seed.user(role="principal")

        with pytest.raises(InvalidTeacherRoleError):
            await directory.require_teacher(user.id)


class TestListTeachers:
    """Tests for listing a school's teachers."""

    @pytest.mark.asyncio
    async def test_list_teachers(self, directory, seed):
        """Test active teachers of the school ordered by name."""
        school = await seed.school()
        other = await seed.school("KVS002")
        await seed.user(school, "teacher", "Chitra")
        await seed.user(school, "principal", "Anil")
        await seed.user(school, "student", "Bela")
        await seed.user(school, "teacher", "Dev", is_active=False)
        await seed.user(other, "teacher", "Esha")

        teachers = await directory.list_teachers("DPS001")

        assert [t.full_name for t in teachers] == ["Anil", "Chitra"]

    @pytest.mark.asyncio
    async def test_list_teachers_excluding(self, directory, seed):
        """Test excluded ids are left out."""
        school = await seed.school()
        first = await seed.user(school, "teacher", "Anil")
        await seed.user(school, "teacher", "Chitra")

        teachers = await directory.list_teachers("DPS001", exclude_ids=[first.id])

        assert [t.full_name for t in teachers] == ["Chitra"]
