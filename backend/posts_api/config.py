"""
Posts API — Application Configuration
======================================

What:  Typed settings loaded from environment variables (or a `.env` file).
How:   Pydantic Settings coerces and validates every value when the object is
       built. `get_settings()` caches one instance for the process; the app
       factory receives it explicitly so tests can pass their own.
Who:   `posts_api.main.create_app`, Alembic's env.py, and the test suite.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Development-only placeholder; reported at startup when ENVIRONMENT=production.
DEFAULT_JWT_SECRET = "your-super-secret-key-change-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are suitable for local development against a SQLite file.
    Production deployments must override JWT_SECRET and ENVIRONMENT.
    """

    # ── Environment ───────────────────────────────────────────────────────
    # development / test expose exception detail in 500 responses; production never does
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid = {"development", "test", "production"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid environment '{v}'. Must be one of: {valid}")
        return lower

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///./posts.db or postgresql+asyncpg://user:pw@host:5432/db
    # PostgreSQL needs the driver extra: pip install "posts-api[postgres]"
    database_url: str = Field(
        default="sqlite+aiosqlite:///./posts.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing applies to server databases only; SQLite ignores it
    db_pool_size: int = Field(default=20, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create missing tables at startup. Disable when Alembic owns the schema.
    db_create_tables: bool = Field(default=True)

    # ── Credentials ───────────────────────────────────────────────────────
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, min_length=8)
    jwt_algorithm: str = Field(default="HS256")
    token_expiry_hours: int = Field(default=24, ge=1, le=24 * 30)

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only shared-secret HMAC algorithms make sense with a single secret."""
        valid = {"HS256", "HS384", "HS512"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"Invalid jwt_algorithm '{v}'. Must be one of: {valid}")
        return upper

    # Login policy. When false, any non-empty email/password pair is accepted.
    # When true, the pair must match the single pre-provisioned account below.
    auth_verify_password: bool = Field(default=False)
    auth_user_email: str = Field(default="test@example.com")
    auth_user_password: str = Field(default="")

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Comma-separated CORS_ORIGINS as a list, blanks dropped."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Checks settings that are tolerable in development but not in production.
        When:  Called during app startup (lifespan); failures are logged.
        Raises: ValueError listing every problem found.
        """
        errors = []
        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            errors.append("JWT_SECRET is still the development placeholder.")
        if self.auth_verify_password and not self.auth_user_password:
            errors.append(
                "AUTH_VERIFY_PASSWORD is enabled but AUTH_USER_PASSWORD is empty; "
                "every login will be rejected."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first call."""
    return Settings()
