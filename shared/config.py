"""
Shared configuration management for the Content Restriction service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CR_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Host stand-in data (YAML fixtures for products, posts, payments)
    fixtures_file: Optional[str] = Field(default=None)

    # Access evaluation
    community_context: bool = Field(
        default=False,
        description="Running inside a forum/community host; moderators bypass restrictions"
    )
    message_css_class: str = Field(default="")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=8000)
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    ``port`` is the service default; CR_PORT or an explicit ``port``
    override takes precedence.
    """
    config = ServiceConfig(service_name=service_name, **overrides)
    if "port" not in config.model_fields_set:
        config.port = port
    return config
