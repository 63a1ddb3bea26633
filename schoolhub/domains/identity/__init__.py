# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity directory domain."""

from schoolhub.domains.identity.service import (
    IdentityDirectory,
    InvalidTeacherRoleError,
    TeacherNotFoundError,
    UserNotFoundError,
)

__all__ = [
    "IdentityDirectory",
    "UserNotFoundError",
    "TeacherNotFoundError",
    "InvalidTeacherRoleError",
]
