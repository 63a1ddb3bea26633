# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class and section request/response models."""

from pydantic import Field

from schoolhub.models.common import CamelModel, ClassSummary, UserContact, UserSummary


class ClassCreateRequest(CamelModel):
    """Request to create a class."""

    name: str = Field(min_length=1, max_length=100)
    level: int | None = Field(default=None, ge=0)
    description: str | None = None


class SectionCreateRequest(CamelModel):
    """Request to create a section inside a class."""

    name: str = Field(min_length=1, max_length=50)
    capacity: int = Field(default=30, ge=1)
    class_teacher_id: int | None = None
    room: str | None = Field(default=None, max_length=50)


class SectionResponse(CamelModel):
    """Section with its class teacher."""

    id: int
    school_code: str
    class_id: int
    name: str
    capacity: int
    room: str | None = None
    class_teacher_id: int | None = None
    class_teacher: UserSummary | None = None
    is_active: bool


class SectionDetailResponse(SectionResponse):
    """Section with its class and a contactable class teacher."""

    class_teacher: UserContact | None = None
    class_info: ClassSummary = Field(alias="class")


class ClassResponse(CamelModel):
    """Class with its active sections ordered by name."""

    id: int
    school_code: str
    name: str
    level: int | None = None
    description: str | None = None
    is_active: bool
    sections: list[SectionResponse] = Field(default_factory=list)
