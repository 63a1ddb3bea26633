# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session request/response models."""

from datetime import date, datetime
from typing import Self

from pydantic import Field, model_validator

from schoolhub.models.common import CamelModel


class SessionCreateRequest(CamelModel):
    """Request to create an academic session.

    Setting is_active makes the new session the school's only active one.
    """

    name: str | None = Field(default=None, max_length=100)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = False

    @model_validator(mode="after")
    def validate_dates(self) -> Self:
        """Ensure the session does not end before it starts."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class SessionResponse(CamelModel):
    """Academic session details."""

    id: int
    school_code: str
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool
    created_at: datetime | None = None


class SessionSummary(CamelModel):
    """Minimal session reference."""

    id: int
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
