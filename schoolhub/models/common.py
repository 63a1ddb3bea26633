# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared request/response building blocks.

All DTOs use snake_case attributes in Python and camelCase keys on the
wire. Responses are wrapped in ApiResponse:

    {"success": true, "data": {...}, "message": "..."}
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model with camelCase aliases, populated from ORM attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Uniform response envelope."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    error: str | None = None


class UserSummary(CamelModel):
    """Public view of an account (never carries credentials)."""

    id: int
    full_name: str | None = None
    email: str | None = None


class UserContact(UserSummary):
    """Account view with a phone number."""

    mobile_number: str | None = None


class TeacherProfile(UserContact):
    """Teacher view used by assignment listings."""

    qualification: str | None = None


class ClassSummary(CamelModel):
    """Minimal class reference."""

    id: int
    name: str
    level: int | None = None


class SubjectSummary(CamelModel):
    """Minimal subject reference."""

    id: int
    name: str
    code: str | None = None


class SectionSummary(CamelModel):
    """Minimal section reference."""

    id: int
    name: str
    room: str | None = None
