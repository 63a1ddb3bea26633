# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher assignment domain."""

from schoolhub.domains.assignment.service import (
    AssignmentConflictError,
    AssignmentNotFoundError,
    SubjectNotInCatalogError,
    TeacherAlreadyAssignedError,
    TeacherAssignmentService,
    workload_level,
)

__all__ = [
    "TeacherAssignmentService",
    "AssignmentNotFoundError",
    "AssignmentConflictError",
    "SubjectNotInCatalogError",
    "TeacherAlreadyAssignedError",
    "workload_level",
]
