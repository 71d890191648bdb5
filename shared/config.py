"""
Shared configuration management for the service-account token verifier.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWK_ENDPOINT = "https://www.googleapis.com/service_accounts/v1/jwk/{issuer}"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="VERIFIER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Key distribution; "{issuer}" is replaced with the URL-escaped issuer
    jwk_endpoint: str = DEFAULT_JWK_ENDPOINT
    http_timeout: float = Field(default=10.0, gt=0)

    # Token validation
    clock_leeway: int = Field(default=0, ge=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
