"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """BRMS settings, read from the environment and an optional .env file."""

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:5174",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./brms.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled (prevents stale connections)"
    )

    # Authentication
    # AUTH_ENABLED: when False, every request acts as the default identity below.
    jwt_secret_key: str = Field(
        default="dev-insecure-key-change-me",
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(
        default=False,
        description="Enable JWT authentication (False for development)"
    )

    # Default identity used when auth is disabled, and seeded on first start.
    default_actor_id: str = Field(
        default="00000000-0000-0000-0000-000000000001",
        description="User id attributed to requests when auth is disabled"
    )
    default_project_id: str = Field(
        default="00000000-0000-0000-0000-000000000010",
        description="Project every request is scoped to when auth is disabled"
    )
    default_organisation_id: str = Field(
        default="00000000-0000-0000-0000-000000000100",
        description="Organisation of the default project"
    )

    # Environments
    default_environment_key: str = Field(
        default="dev",
        description="Environment used for resolution when none is requested"
    )
    environment_header: str = Field(
        default="x-env",
        description="Request header carrying the environment key"
    )
    seed_environments: str = Field(
        default="dev,staging,production",
        description="Environment keys created for the default project on first start"
    )

    # Version numbering
    version_retry_attempts: int = Field(
        default=3,
        description="Attempts made when concurrent writers race for the same version number"
    )

    # Audit Log Retention
    audit_retention_days: int = Field(
        default=365,
        description="Days to keep audit log entries (0 = keep forever)"
    )

    # Rate Limiting
    # RATE_LIMIT_PER_MINUTE: max requests per client per minute. Applies per-IP.
    rate_limit_per_minute: int = Field(
        default=600,
        description="Maximum requests per client per minute"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """Split CORS_ALLOWED_ORIGINS into a list, rejecting wildcards."""
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    def get_seed_environments(self) -> List[str]:
        """Environment keys to create on first start, in workflow order."""
        return [key.strip() for key in self.seed_environments.split(',') if key.strip()]

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('version_retry_attempts')
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("VERSION_RETRY_ATTEMPTS must be at least 1")
        return v

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure defaults.
        In development, logs warnings but allows startup.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        if self.jwt_secret_key == "dev-insecure-key-change-me":
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        if not self.auth_enabled:
            errors.append(
                "AUTH_ENABLED is false. "
                "Every request would act as the fixed default identity."
            )

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
            )

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
