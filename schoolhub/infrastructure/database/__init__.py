# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure: connection management and ORM models."""

from schoolhub.infrastructure.database.connection import DatabaseError, DatabaseManager

__all__ = [
    "DatabaseError",
    "DatabaseManager",
]
