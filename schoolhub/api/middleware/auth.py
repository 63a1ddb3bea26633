# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bearer token principal for SchoolHub requests.

Tokens are issued by the identity service; here they are only verified and
turned into a CurrentUser carrying id, role and school id. Role and tenant
gates live in the API dependencies, not in this middleware.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from schoolhub.core.config.settings import JWTSettings
from schoolhub.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)
from schoolhub.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

# Never decoded
PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
})

SUPERADMIN_ROLE = "superadmin"
ADMIN_ROLES = frozenset({"superadmin", "admin"})


class CurrentUser:
    """Principal decoded from a bearer token.

    Attributes:
        id: Account ID.
        role: Account role.
        school_id: School the account belongs to.
    """

    def __init__(self, payload: TokenPayload) -> None:
        self.id = payload.id
        self.role = payload.role
        self.school_id = payload.school_id

    def has_any_role(self, *roles: str) -> bool:
        """Whether the principal holds one of roles."""
        return self.role in roles

    def can_access_school(self, school_id: int) -> bool:
        """Whether the principal may act on the school with this id.

        Superadmins reach every school; everyone else only the school
        named in their token.
        """
        if self.is_superadmin:
            return True
        return self.school_id is not None and self.school_id == school_id

    @property
    def is_superadmin(self) -> bool:
        """Check if user is a superadmin."""
        return self.role == SUPERADMIN_ROLE

    @property
    def is_admin(self) -> bool:
        """Check if user is an admin or superadmin."""
        return self.role in ADMIN_ROLES


class AuthMiddleware(BaseHTTPMiddleware):
    """Decodes the bearer token into request.state.user.

    A missing or invalid token leaves request.state.user as None;
    require_auth turns that into a 401 on routes that need a principal.
    """

    def __init__(self, app: ASGIApp, settings: JWTSettings) -> None:
        super().__init__(app)
        self._jwt_manager = JWTManager(settings)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Attach the principal and its log context, then continue."""
        request.state.user = None
        clear_context()
        bind_context(path=request.url.path, method=request.method)

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        try:
            token = self._extract_token(request)
            if token:
                payload = self._jwt_manager.decode_token(token)
                request.state.user = CurrentUser(payload)
                bind_context(user_id=payload.id, role=payload.role)
                logger.debug("User authenticated: %s", payload.id)

        except TokenExpiredError:
            logger.debug("Expired token on %s", request.url.path)

        except InvalidTokenError as e:
            logger.debug("Rejected token on %s: %s", request.url.path, e)

        try:
            return await call_next(request)
        finally:
            clear_context()

    def _extract_token(self, request: Request) -> str | None:
        """Return the token of an `Authorization: Bearer <token>` header, if any."""
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None

        return parts[1]


def get_current_user(request: Request) -> CurrentUser | None:
    """Principal attached by AuthMiddleware, or None."""
    return getattr(request.state, "user", None)
