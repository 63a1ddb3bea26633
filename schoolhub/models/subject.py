# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject and class catalog request/response models."""

from pydantic import Field, field_validator

from schoolhub.models.common import (
    CamelModel,
    ClassSummary,
    SubjectSummary,
    UserContact,
)


class SubjectCreateRequest(CamelModel):
    """Request to create a subject."""

    name: str = Field(min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = None
    is_active: bool = True


class SubjectUpdateRequest(CamelModel):
    """Partial subject update. Only supplied fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    description: str | None = None
    is_active: bool | None = None


class SubjectResponse(CamelModel):
    """Subject with the active classes carrying it."""

    id: int
    school_code: str
    name: str
    code: str | None = None
    description: str | None = None
    is_active: bool
    classes: list[ClassSummary] = Field(default_factory=list)


class AssignSubjectsRequest(CamelModel):
    """Add subjects to a class catalog.

    subjectIds accepts either one id or a list of ids.
    """

    class_id: int
    subject_ids: list[int] = Field(min_length=1)

    @field_validator("subject_ids", mode="before")
    @classmethod
    def coerce_scalar(cls, value: object) -> object:
        """Wrap a single id in a list."""
        if isinstance(value, (int, str)):
            return [value]
        return value


class SubjectTeacherEntry(CamelModel):
    """Active subject teacher of a section."""

    assignment_id: int
    subject: SubjectSummary
    teacher: UserContact


class ClassSectionEntry(CamelModel):
    """Section of a class with its active subject teachers."""

    id: int
    name: str
    room: str | None = None
    capacity: int
    subject_teachers: list[SubjectTeacherEntry] = Field(default_factory=list)


class ClassSubjectsResponse(CamelModel):
    """Class catalog view."""

    id: int
    school_code: str
    name: str
    level: int | None = None
    subjects: list[SubjectSummary] = Field(default_factory=list)
    sections: list[ClassSectionEntry] = Field(default_factory=list)
