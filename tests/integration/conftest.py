# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for API integration tests.

The application runs inside TestClient on its own event loop, so the
store is a SQLite file shared by a synchronous seeding engine and the
application's aiosqlite engine.

Seeded world (school DPS001 unless noted):
- accounts: superadmin, admin, teacher (Asha Rao), teacher2 (Binod Das),
  student, inactive (an inactive teacher), other_admin (KVS002)
- active session 2024-25
- Class 1 with section A, subjects MATH and SCI, MATH in the catalog
- KVS002 with its own Class 1, section A and subject MATH
"""

import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from schoolhub.api.app import create_app
from schoolhub.core.config import DatabaseSettings, JWTSettings, Settings
from schoolhub.infrastructure.database.models import (
    AcademicSession,
    AuthUser,
    Base,
    Class,
    ClassSubject,
    School,
    Section,
    Subject,
)

JWT_SECRET = "integration-test-secret"


@dataclass
class World:
    """Ids of the seeded rows."""

    schools: dict[str, int] = field(default_factory=dict)
    users: dict[str, AuthUser] = field(default_factory=dict)
    session_id: int = 0
    class_id: int = 0
    section_id: int = 0
    math_id: int = 0
    science_id: int = 0
    other_class_id: int = 0
    other_section_id: int = 0
    other_math_id: int = 0

    def user_id(self, name: str) -> int:
        return self.users[name].id


def make_token(
    user_id: int,
    role: str,
    school_id: int | None,
    secret: str = JWT_SECRET,
    expires_in: int = 1800,
) -> str:
    """Sign a token the way the identity service does."""
    claims = {"id": user_id, "role": role, "schoolId": school_id}
    claims["exp"] = int(time.time()) + expires_in
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Location of the SQLite file for one test."""
    return tmp_path / "schoolhub.db"


@pytest.fixture
def world(db_path: Path) -> Iterator[World]:
    """Create the schema and seed the world through a synchronous engine."""
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)

    seeded = World()
    with Session(engine, expire_on_commit=False) as session:
        dps = School(code="DPS001", name="Delhi Public School", base_url="https://dps.example.com")
        kvs = School(code="KVS002", name="Kendriya Vidyalaya", base_url="https://kvs.example.com")
        session.add_all([dps, kvs])
        session.flush()
        seeded.schools = {"DPS001": dps.id, "KVS002": kvs.id}

        accounts = {
            "superadmin": ("superadmin", None, "Root Admin", True),
            "admin": ("admin", dps.id, "Meera Iyer", True),
            "teacher": ("teacher", dps.id, "Asha Rao", True),
            "teacher2": ("teacher", dps.id, "Binod Das", True),
            "student": ("student", dps.id, "Chetan Kumar", True),
            "inactive": ("teacher", dps.id, "Former Teacher", False),
            "other_admin": ("admin", kvs.id, "Kavya Nair", True),
        }
        for n, (name, (role, school_id, full_name, is_active)) in enumerate(accounts.items()):
            user = AuthUser(
                username=name,
                email=f"{name}@example.com",
                full_name=full_name,
                mobile_number=f"98000{n:05d}",
                role=role,
                school_id=school_id,
                is_active=is_active,
            )
            session.add(user)
            seeded.users[name] = user

        academic_session = AcademicSession(
            school_code="DPS001",
            name="2024-25",
            start_date=date(2024, 4, 1),
            end_date=date(2025, 3, 31),
            is_active=True,
        )
        class_one = Class(school_code="DPS001", name="Class 1", level=1)
        other_class = Class(school_code="KVS002", name="Class 1", level=1)
        math = Subject(school_code="DPS001", name="Mathematics", code="MATH")
        science = Subject(school_code="DPS001", name="Science", code="SCI")
        other_math = Subject(school_code="KVS002", name="Mathematics", code="MATH")
        session.add_all([academic_session, class_one, other_class, math, science, other_math])
        session.flush()

        section = Section(school_code="DPS001", class_id=class_one.id, name="A", capacity=30)
        other_section = Section(school_code="KVS002", class_id=other_class.id, name="A", capacity=30)
        session.add_all([section, other_section])
        session.add_all([
            ClassSubject(class_id=class_one.id, subject_id=math.id),
            ClassSubject(class_id=other_class.id, subject_id=other_math.id),
        ])
        session.commit()

        seeded.session_id = academic_session.id
        seeded.class_id = class_one.id
        seeded.section_id = section.id
        seeded.math_id = math.id
        seeded.science_id = science.id
        seeded.other_class_id = other_class.id
        seeded.other_section_id = other_section.id
        seeded.other_math_id = other_math.id

    engine.dispose()
    yield seeded


@pytest.fixture
def settings(db_path: Path) -> Settings:
    """Settings pointing the application at the seeded file."""
    return Settings(
        environment="development",
        debug=True,
        log_level="WARNING",
        db=DatabaseSettings(DB_URL=f"sqlite+aiosqlite:///{db_path}"),
        jwt=JWTSettings(secret_key=JWT_SECRET),
    )


@pytest.fixture
def client(settings: Settings, world: World) -> Iterator[TestClient]:
    """Run the application with its lifespan."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth(world: World) -> Callable[[str], dict[str, str]]:
    """Build Authorization headers for a seeded account by name."""

    def headers(name: str) -> dict[str, str]:
        user = world.users[name]
        token = make_token(user.id, user.role, user.school_id)
        return {"Authorization": f"Bearer {token}"}

    return headers


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Expose make_token to tests that craft their own claims."""
    return make_token
