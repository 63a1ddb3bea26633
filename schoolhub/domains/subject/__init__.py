# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject and class catalog domain."""

from schoolhub.domains.subject.service import (
    ClassSubjectNotFoundError,
    SubjectCodeExistsError,
    SubjectInUseError,
    SubjectNotFoundError,
    SubjectService,
)

__all__ = [
    "SubjectService",
    "SubjectNotFoundError",
    "SubjectCodeExistsError",
    "SubjectInUseError",
    "ClassSubjectNotFoundError",
]
