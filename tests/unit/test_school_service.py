# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for School service."""

import pytest

from schoolhub.domains.class_ import ClassService
from schoolhub.domains.school import SchoolCodeExistsError, SchoolNotFoundError, SchoolService
from schoolhub.models.school import SchoolCreateRequest


@pytest.fixture
def school_service(db, directory, structure_settings):
    """Create school service over the test database."""
    return SchoolService(db, ClassService(db, directory, structure_settings))


class TestSchoolServiceCreate:
    """Tests for school creation."""

    @pytest.mark.asyncio
    async def test_create_school_success(self, school_service):
        """Test successful school creation."""
        school = await school_service.create_school(
            SchoolCreateRequest(
                code="DPS001",
                name="Delhi Public School",
                base_url="https://dps.example.com",
                email="office@dps.example.com",
            ),
            created_by=1,
        )

        assert school.id is not None
        assert school.code == "DPS001"
        assert school.is_active is True

    @pytest.mark.asyncio
    async def test_create_school_duplicate_code(self, school_service, seed):
        """Test that an existing code is a conflict."""
        await seed.school("DPS001")

        with pytest.raises(SchoolCodeExistsError) as exc_info:
            await school_service.create_school(
                SchoolCreateRequest(code="DPS001", name="Other", base_url="https://x.example.com")
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"schoolCode": "DPS001"}


class TestSchoolServiceGet:
    """Tests for school lookup."""

    @pytest.mark.asyncio
    async def test_get_school_by_code_with_sessions(self, school_service, seed):
        """Test the school comes back with its sessions, newest first."""
        school = await seed.school()
        first = await seed.session(school, "2023-24", is_active=False)
        second = await seed.session(school, "2024-25", is_active=True)

        result = await school_service.get_school_by_code("DPS001")

        assert result.code == "DPS001"
        assert [s.id for s in result.sessions] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_school_by_code_not_found(self, school_service):
        """Test unknown codes raise NotFound."""
        with pytest.raises(SchoolNotFoundError):
            await school_service.get_school_by_code("NOPE")


class TestSchoolStructure:
    """Tests for the structure view."""

    @pytest.mark.asyncio
    async def test_structure_counts(self, school_service, seed):
        """Test classes, sections and subject counts."""
        school = await seed.school()
        session = await seed.session(school)
        class_one = await seed.class_(school, "Class 1", level=1)
        class_two = await seed.class_(school, "Class 2", level=2)
        await seed.section(class_one, "A")
        await seed.section(class_one, "B")
        await seed.section(class_two, "A")
        await seed.section(class_two, "Z", is_active=False)
        await seed.subject(school, "Mathematics", "MATH")
        await seed.subject(school, "Science", "SCI")
        await seed.subject(school, "Latin", "LAT", is_active=False)

        structure = await school_service.get_school_structure("DPS001")

        assert structure.school.code == "DPS001"
        assert structure.active_session.id == session.id
        assert [c.name for c in structure.classes] == ["Class 1", "Class 2"]
        assert [s.name for s in structure.classes[0].sections] == ["A", "B"]
        assert structure.total_classes == 2
        assert structure.total_sections == 3
        assert structure.total_subjects == 2

    @pytest.mark.asyncio
    async def test_structure_without_active_session(self, school_service, seed):
        """Test a school with nothing set up yet."""
        await seed.school()

        structure = await school_service.get_school_structure("DPS001")

        assert structure.active_session is None
        assert structure.classes == []
        assert structure.total_sections == 0
