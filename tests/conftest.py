# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An async engine and session against TEST_DATABASE_URL
  (in-memory SQLite through aiosqlite by default)
- A Seeder that inserts rows directly, bypassing the services
"""

import os
from datetime import date
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolhub.core.config import EnrollmentSettings, StructureSettings
from schoolhub.domains.identity import IdentityDirectory
from schoolhub.infrastructure.database.models import (
    AcademicSession,
    AuthUser,
    Base,
    Class,
    ClassSubject,
    School,
    Section,
    SectionSubjectTeacher,
    StudentEnrollment,
    Subject,
)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_db_url() -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def db_engine(test_db_url: str):
    """Create async engine with a fresh schema."""
    options: dict[str, Any] = {}
    if test_db_url.startswith("sqlite"):
        # One shared connection, otherwise every checkout sees an empty database
        options = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

    engine = create_async_engine(test_db_url, echo=False, **options)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session configured like DatabaseManager's."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def structure_settings() -> StructureSettings:
    """Structure rules with their defaults."""
    return StructureSettings()


@pytest.fixture
def enrollment_settings() -> EnrollmentSettings:
    """Enrollment rules with their defaults."""
    return EnrollmentSettings()


@pytest.fixture
def directory(db: AsyncSession, structure_settings: StructureSettings) -> IdentityDirectory:
    """Identity directory over the test session."""
    return IdentityDirectory(db, structure_settings.teacher_roles)


# =============================================================================
# Seed Data
# =============================================================================


class Seeder:
    """Inserts fixture rows directly through the ORM.

    Each helper commits so that services under test see the rows exactly as
    they would see rows written by an earlier request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._counter = 0

    async def _save(self, obj: Any) -> Any:
        self.db.add(obj)
        await self.db.commit()
        return obj

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def school(self, code: str = "DPS001", name: str = "Delhi Public School") -> School:
        return await self._save(
            School(code=code, name=name, base_url=f"https://{code.lower()}.example.com")
        )

    async def user(
        self,
        school: School | None = None,
        role: str = "teacher",
        full_name: str | None = None,
        is_active: bool = True,
    ) -> AuthUser:
        n = self._next()
        return await self._save(
            AuthUser(
                username=f"{role}{n}",
                email=f"{role}{n}@example.com",
                full_name=full_name or f"{role.title()} {n}",
                mobile_number=f"98765{n:05d}",
                role=role,
                school_id=school.id if school else None,
                is_active=is_active,
            )
        )

    async def session(
        self,
        school: School,
        name: str = "2024-25",
        is_active: bool = True,
    ) -> AcademicSession:
        return await self._save(
            AcademicSession(
                school_code=school.code,
                name=name,
                start_date=date(2024, 4, 1),
                end_date=date(2025, 3, 31),
                is_active=is_active,
            )
        )

    async def class_(self, school: School, name: str = "Class 1", level: int | None = 1) -> Class:
        return await self._save(Class(school_code=school.code, name=name, level=level))

    async def section(
        self,
        class_: Class,
        name: str = "A",
        class_teacher: AuthUser | None = None,
        is_active: bool = True,
    ) -> Section:
        return await self._save(
            Section(
                school_code=class_.school_code,
                class_id=class_.id,
                name=name,
                capacity=30,
                class_teacher_id=class_teacher.id if class_teacher else None,
                room=f"R-{name}",
                is_active=is_active,
            )
        )

    async def subject(
        self,
        school: School,
        name: str = "Mathematics",
        code: str | None = "MATH",
        is_active: bool = True,
    ) -> Subject:
        return await self._save(
            Subject(school_code=school.code, name=name, code=code, is_active=is_active)
        )

    async def catalog(self, class_: Class, *subjects: Subject) -> None:
        self.db.add_all(ClassSubject(class_id=class_.id, subject_id=s.id) for s in subjects)
        await self.db.commit()

    async def assignment(
        self,
        section: Section,
        subject: Subject,
        teacher: AuthUser,
        is_active: bool = True,
    ) -> SectionSubjectTeacher:
        return await self._save(
            SectionSubjectTeacher(
                section_id=section.id,
                subject_id=subject.id,
                teacher_id=teacher.id,
                is_active=is_active,
            )
        )

    async def enrollment(
        self,
        student: AuthUser,
        session: AcademicSession,
        section: Section,
        roll_number: str | None = None,
    ) -> StudentEnrollment:
        return await self._save(
            StudentEnrollment(
                student_id=student.id,
                session_id=session.id,
                class_id=section.class_id,
                section_id=section.id,
                roll_number=roll_number,
            )
        )


@pytest.fixture
def seed(db: AsyncSession) -> Seeder:
    """Provide a Seeder bound to the test session."""
    return Seeder(db)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
