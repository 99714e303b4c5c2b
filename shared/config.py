"""
Shared configuration management for the Search Suggestion Proxy.
"""

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SUGGEST_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream search API
    bing_api_url: str = Field(default="https://www.bingapis.com/api/v7")
    bing_timeout_seconds: float = Field(default=10.0, gt=0)

    # Suggestion cache
    cache_ttl_seconds: int = Field(default=86400, ge=1)
    cache_max_entries: int = Field(default=sys.maxsize, ge=1)
    cache_max_size_mb: float = Field(default=128.0, gt=0)
    cache_maintenance_hour: int = Field(default=0, ge=0, le=23)

    # Lifetime of the public Cache-Control header on fully enhanced responses
    suggest_cache_max_age: int = Field(default=86400, ge=0)


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
