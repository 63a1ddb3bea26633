# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class and section domain."""

from schoolhub.domains.class_.service import (
    ClassNameExistsError,
    ClassNotFoundError,
    ClassService,
    SectionNameExistsError,
    SectionNotFoundError,
)

__all__ = [
    "ClassService",
    "ClassNotFoundError",
    "SectionNotFoundError",
    "ClassNameExistsError",
    "SectionNameExistsError",
]
