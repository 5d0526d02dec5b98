"""
Shared configuration management for the bearer token validator.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings.

    Every field can be set from the environment with the
    ``TOKEN_VALIDATOR_`` prefix, e.g. ``TOKEN_VALIDATOR_CACHE_SIZE=500``,
    or from a ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_VALIDATOR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Remote validation resource
    validation_resource: str = "http://localhost:8090/oauth/token_validation"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Positive cache
    cache_size: int = Field(default=1000, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_expiry_mode: Literal["write", "access"] = "write"

    # Negative cache, falls back to the positive cache settings when unset
    negative_cache_size: Optional[int] = Field(default=None, gt=0)
    negative_cache_ttl_seconds: Optional[float] = Field(default=None, gt=0)

    # Identity binding and expiration hints
    identity_binding: bool = False
    expiry_margin_seconds: float = Field(default=5.0, ge=0)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.lower()

    @property
    def effective_negative_cache_size(self) -> int:
        return self.cache_size if self.negative_cache_size is None else self.negative_cache_size

    @property
    def effective_negative_cache_ttl(self) -> float:
        return self.cache_ttl_seconds if self.negative_cache_ttl_seconds is None else self.negative_cache_ttl_seconds


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
