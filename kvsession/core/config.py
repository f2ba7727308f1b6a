"""
Core configuration module for kvsession.

This module provides centralized configuration using Pydantic Settings.
All configuration is loaded from environment variables with the KVSESSION_
prefix, or passed explicitly when the host builds the store itself.

Store options:
- prefix: storage key prefix (default "sess:")
- ttl: expiration override in seconds (default: derive from cookie maxAge)
- disable_ttl: write sessions without expiration
- secret: enables payload encryption when set
- algorithm: cipher used when encryption is enabled
- log_level: install a JSON stdout handler for kvsession logs

Redis connection options are consumed only by the client factory in
kvsession.backends.redis_backend.
"""

import warnings
from functools import lru_cache
from typing import Literal, Optional, Union

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

from kvsession.core.exceptions import ConfigurationWarning
from kvsession.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "sess:"

Algorithm = Literal["aes-256-gcm", "aes-256-ecb"]

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """
    Store settings loaded from environment variables.

    All fields use the KVSESSION_ prefix for environment variables.
    Example: KVSESSION_PREFIX=myapp:sess:
    """

    # =========================================================================
    # Session Store Configuration
    # =========================================================================
    prefix: str = Field(
        default=DEFAULT_PREFIX,
        description="Prefix prepended to every session id to build the storage key",
    )
    ttl: Optional[int] = Field(
        default=None,
        ge=1,
        description="Expiration override in seconds; wins over cookie maxAge",
    )
    disable_ttl: bool = Field(
        default=False,
        description="Write sessions without expiration",
    )

    # =========================================================================
    # Encryption Configuration
    # SecretStr masks values in logs/repr, use .get_secret_value() to access
    # =========================================================================
    secret: Optional[SecretStr] = Field(
        default=None,
        description="Secret enabling payload encryption when non-empty",
    )
    algorithm: Algorithm = Field(
        default="aes-256-gcm",
        description="Cipher for encrypted sessions; aes-256-ecb is the legacy wire format",
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Optional[LogLevel] = Field(
        default=None,
        description="When set, from_settings() sends kvsession logs to stdout at this level",
    )

    # =========================================================================
    # Redis Configuration
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL",
    )
    redis_socket_path: Optional[str] = Field(
        default=None,
        description="Unix socket path; takes precedence over redis_url",
    )
    redis_password: Optional[SecretStr] = Field(
        default=None,
        description="Password sent with AUTH on connect",
    )
    redis_db: Optional[Union[int, str]] = Field(
        default=None,
        description="Database index selected on connect",
    )
    redis_socket_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Socket timeout; a timeout surfaces as BackendError",
    )

    model_config = {
        "env_prefix": "KVSESSION_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("prefix", mode="before")
    @classmethod
    def default_prefix(cls, v: Optional[str]) -> str:
        """Only None falls back to the default; an empty prefix is kept."""
        return DEFAULT_PREFIX if v is None else v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if isinstance(v, str) else v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss:// or unix://")
        return v

    @field_validator("redis_db")
    @classmethod
    def validate_redis_db(cls, v: Optional[Union[int, str]]) -> Optional[int]:
        """
        Coerce the database selector to an int.

        Numeric strings (as read from the environment) are coerced. A
        non-numeric selector is a warning, not an error: it is dropped and
        database 0 is used.
        """
        if v is None or isinstance(v, int):
            return v

        if v.strip().isdigit():
            return int(v)

        message = f'kvsession expects a number for the "redis_db" option, got {v!r}'
        logger.warning("redis_db_not_numeric", value=v)
        warnings.warn(message, ConfigurationWarning, stacklevel=2)
        return None

    @property
    def encryption_enabled(self) -> bool:
        """True when a non-empty secret is configured."""
        return self.secret is not None and bool(self.secret.get_secret_value())


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The settings instance.
    """
    return Settings()
