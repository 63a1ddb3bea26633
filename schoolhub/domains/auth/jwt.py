# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bearer token decoding.

Decodes bearer tokens issued by the identity service using
python-jose. Tokens carry the principal as {id, role, schoolId}; SchoolHub
never issues tokens itself.

Example:
    >>> from schoolhub.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> claims = jwt_manager.decode_token(token)
    >>> claims.role
    'admin'
"""

import logging

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schoolhub.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Claims SchoolHub reads from a token.

    Attributes:
        id: Account ID.
        role: Account role (superadmin, admin, principal, teacher, ...).
        school_id: School the account belongs to; None for superadmins.
        exp: Expiration timestamp.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    role: str
    school_id: int | None = Field(default=None, alias="schoolId")
    exp: int | None = None


class JWTError(Exception):
    """Base exception for token handling."""


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""


class InvalidTokenError(JWTError):
    """Raised for a bad signature, a malformed token or missing claims."""


class JWTManager:
    """Verifies token signatures against the configured secret."""

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def decode_token(self, token: str) -> TokenPayload:
        """Verify a token and parse its claims.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature or claims are invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        try:
            return TokenPayload.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError(f"Invalid token claims: {e.error_count()} error(s)")
