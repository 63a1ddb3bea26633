"""SchoolHub Backend.

Multi-tenant school administration backend: schools, academic sessions,
classes, sections, subjects, teacher assignments and student enrollment.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
