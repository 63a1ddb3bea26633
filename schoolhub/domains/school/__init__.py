# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain."""

from schoolhub.domains.school.service import (
    SchoolCodeExistsError,
    SchoolNotFoundError,
    SchoolService,
    get_school_by_code,
)

__all__ = [
    "SchoolService",
    "SchoolNotFoundError",
    "SchoolCodeExistsError",
    "get_school_by_code",
]
