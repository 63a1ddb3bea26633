# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student enrollment domain."""

from schoolhub.domains.enrollment.service import (
    CrossSchoolEnrollmentError,
    DuplicateEnrollmentError,
    EnrollmentEntitiesNotFoundError,
    EnrollmentNotFoundError,
    EnrollmentService,
    RollNumberTakenError,
)

__all__ = [
    "EnrollmentService",
    "EnrollmentNotFoundError",
    "EnrollmentEntitiesNotFoundError",
    "DuplicateEnrollmentError",
    "RollNumberTakenError",
    "CrossSchoolEnrollmentError",
]
