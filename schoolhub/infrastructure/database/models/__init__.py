# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the SchoolHub relational store."""

from schoolhub.infrastructure.database.models.base import Base, TimestampMixin
from schoolhub.infrastructure.database.models.school import (
    AcademicSession,
    Class,
    ClassSubject,
    EnrollmentStatus,
    School,
    Section,
    SectionSubjectTeacher,
    StudentEnrollment,
    Subject,
)
from schoolhub.infrastructure.database.models.user import AuthUser, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "AuthUser",
    "UserRole",
    "School",
    "AcademicSession",
    "Class",
    "Section",
    "Subject",
    "ClassSubject",
    "SectionSubjectTeacher",
    "StudentEnrollment",
    "EnrollmentStatus",
]
