# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School request/response models."""

from datetime import datetime

from pydantic import EmailStr, Field

from schoolhub.models.common import CamelModel
from schoolhub.models.class_ import ClassResponse
from schoolhub.models.session import SessionResponse


class SchoolCreateRequest(CamelModel):
    """Request to register a school (tenant)."""

    code: str = Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(min_length=1, max_length=255)
    base_url: str = Field(min_length=1, max_length=255)
    address: str | None = None
    phone: str | None = Field(default=None, max_length=30)
    email: EmailStr | None = None
    principal_name: str | None = Field(default=None, max_length=200)
    established_year: int | None = Field(default=None, ge=1800, le=2100)


class SchoolResponse(CamelModel):
    """School details."""

    id: int
    code: str
    name: str
    base_url: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    principal_name: str | None = None
    established_year: int | None = None
    is_active: bool
    created_at: datetime | None = None


class SchoolDetailResponse(SchoolResponse):
    """School with its sessions, newest first."""

    sessions: list[SessionResponse] = Field(default_factory=list)


class SchoolStructureResponse(CamelModel):
    """Full academic structure of a school."""

    school: SchoolResponse
    active_session: SessionResponse | None = None
    classes: list[ClassResponse] = Field(default_factory=list)
    total_classes: int = 0
    total_sections: int = 0
    total_subjects: int = 0
