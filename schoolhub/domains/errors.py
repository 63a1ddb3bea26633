# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy shared by all domain services.

Services raise these exceptions; the API layer renders them into the
response envelope with a stable machine-readable code and the matching
HTTP status. Each domain module derives its own specific errors from the
taxonomy classes below.

Example:
    >>> raise NotFoundError("Section 7 not found", details={"sectionId": 7})
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        code: Stable machine-readable error code.
        message: Human-readable description.
        details: Context the caller needs to act without a follow-up query.
        status_code: HTTP status the API layer maps this error to.
    """

    code: str = "domain_error"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code


class NotFoundError(DomainError):
    """Referenced entity is absent or inactive."""

    code = "not_found"
    status_code = 404


class ConflictError(DomainError):
    """Uniqueness or exclusivity violation."""

    code = "conflict"
    status_code = 409


class InvalidStateError(DomainError):
    """Operation not permitted given the current relational state."""

    code = "invalid_state"
    status_code = 400


class ForbiddenError(DomainError):
    """Role or ownership check failed."""

    code = "forbidden"
    status_code = 403


class UnexpectedError(DomainError):
    """Store or connection failure."""

    code = "unexpected_error"
    status_code = 500
