# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session domain."""

from schoolhub.domains.session.service import (
    AcademicSessionService,
    ActiveSessionConflictError,
    SessionNotFoundError,
)

__all__ = [
    "AcademicSessionService",
    "SessionNotFoundError",
    "ActiveSessionConflictError",
]
