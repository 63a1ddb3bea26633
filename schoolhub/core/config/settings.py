# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SchoolHub settings.

Each concern reads its own prefixed environment variables (DB_, JWT_,
CORS_, API_, STRUCTURE_, ENROLLMENT_). Settings bundles them, and
get_settings() hands out one cached instance per process.

Example:
    >>> from schoolhub.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full async URL; takes precedence over the components.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "schoolhub"
    password: SecretStr = SecretStr("schoolhub_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "schoolhub"
    url_override: str | None = Field(
        default=None,
        validation_alias="DB_URL",
    )
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured store is SQLite (no pool sizing)."""
        return self.url.startswith("sqlite")


class JWTSettings(BaseSettings):
    """JWT validation configuration.

    Tokens are issued elsewhere; this service only verifies them.

    Attributes:
        secret_key: Secret key used to verify token signatures.
        algorithm: JWT signing algorithm.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS256"


class CORSSettings(BaseSettings):
    """Cross-origin rules for browser clients.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """Uvicorn bind and worker options.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 2
    reload: bool = False


class StructureSettings(BaseSettings):
    """Academic structure rules that are configurable per deployment.

    Attributes:
        enforce_unique_class_names: Reject a second active class with the
            same name in one school.
        enforce_unique_section_names: Reject a second active section with the
            same name in one class.
        teacher_roles: User roles allowed to hold teaching assignments.
    """

    model_config = SettingsConfigDict(
        env_prefix="STRUCTURE_",
        extra="ignore",
    )

    enforce_unique_class_names: bool = True
    enforce_unique_section_names: bool = True
    teacher_roles: list[str] = ["teacher", "principal"]


class EnrollmentSettings(BaseSettings):
    """Enrollment validation configuration.

    Attributes:
        enforce_same_school: Require session, class, section and student to
            belong to the school named in the request. Off by default, which
            keeps enrollment an existence-only check.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENROLLMENT_",
        extra="ignore",
    )

    enforce_same_school: bool = False


class Settings(BaseSettings):
    """Top-level settings.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        jwt: JWT validation settings.
        cors: CORS settings.
        api: API server settings.
        structure: Academic structure rule settings.
        enrollment: Enrollment rule settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Prefixed subsettings
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)
    structure: StructureSettings = Field(default_factory=StructureSettings)
    enrollment: EnrollmentSettings = Field(default_factory=EnrollmentSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Refuse to start production with the placeholder JWT secret.

        Raises:
            ValueError: If the secret is still the default.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached Settings so the next call re-reads the environment."""
    get_settings.cache_clear()
