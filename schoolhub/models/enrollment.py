# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student enrollment request/response models."""

from datetime import datetime

from pydantic import Field

from schoolhub.infrastructure.database.models import EnrollmentStatus
from schoolhub.models.common import (
    CamelModel,
    ClassSummary,
    SectionSummary,
    UserContact,
)
from schoolhub.models.session import SessionSummary


class EnrollStudentRequest(CamelModel):
    """Enroll a student into a session, class and section."""

    student_id: int
    session_id: int
    class_id: int
    section_id: int
    roll_number: str | None = Field(default=None, min_length=1, max_length=20)
    admission_number: str | None = Field(default=None, max_length=50)


class BulkEnrollRequest(CamelModel):
    """Enroll several students atomically."""

    enrollments: list[EnrollStudentRequest] = Field(min_length=1)


class EnrollmentUpdateRequest(CamelModel):
    """Partial enrollment update.

    Sending rollNumber as null clears it; omitting it leaves it unchanged.
    """

    status: EnrollmentStatus | None = None
    roll_number: str | None = Field(default=None, min_length=1, max_length=20)
    is_active: bool | None = None


class EnrollmentResponse(CamelModel):
    """Enrollment joined with student, session, class and section."""

    id: int
    student_id: int
    session_id: int
    class_id: int
    section_id: int
    roll_number: str | None = None
    admission_number: str | None = None
    status: str
    is_active: bool
    enrollment_date: datetime | None = None
    student: UserContact
    session: SessionSummary
    class_info: ClassSummary = Field(alias="class")
    section: SectionSummary


class SectionStudentEntry(CamelModel):
    """One line of a section roster."""

    id: int
    roll_number: str | None = None
    admission_number: str | None = None
    status: str
    student: UserContact
    session: SessionSummary
