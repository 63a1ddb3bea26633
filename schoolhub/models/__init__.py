# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models for the SchoolHub API."""

from schoolhub.models.common import ApiResponse, CamelModel

__all__ = [
    "ApiResponse",
    "CamelModel",
]
