# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolHub.

This package contains domain services that encapsulate the academic
structure consistency rules. Each service receives its store session
(and, where needed, the identity directory) at construction time.

Domains:
    errors: Error taxonomy shared by all services.
    auth: JWT principal decoding.
    identity: Read-only view over users.
    school: School tenancy records.
    session: Academic sessions and activation exclusivity.
    class_: Classes and sections.
    subject: Subject catalog and class-subject membership.
    assignment: Section/subject teacher assignments and workload.
    enrollment: Student enrollment and roll numbers.
"""
