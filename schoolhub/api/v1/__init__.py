# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    schools: School registration, lookup and structure.
    sessions: Academic session management.
    classes: Class and section management.
    subjects: Subject catalog and class-subject membership.
    assignments: Section/subject teacher assignments and analytics.
    enrollments: Student enrollment.

Routers are included in this order so that literal path prefixes
(/schools, /sessions, /classes, ...) are matched before the
/{school_code}/... routes.
"""

from fastapi import APIRouter

from schoolhub.api.v1 import assignments, classes, enrollments, schools, sessions, subjects

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(schools.router, prefix="/schools", tags=["Schools"])
router.include_router(sessions.router, tags=["Sessions"])
router.include_router(classes.router, tags=["Classes"])
router.include_router(subjects.router, tags=["Subjects"])
router.include_router(assignments.router, tags=["Assignments"])
router.include_router(enrollments.router, tags=["Enrollments"])

__all__ = ["router"]
