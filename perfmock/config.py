"""
Configuration settings for perfmock.

Uses Pydantic Settings to load environment variables for the HTTP server,
logging, fault injection defaults and the built-in record schema. Runtime
changes to latency/error injection go through `MiddlewareConfigStore`; the
values here only seed its first snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from perfmock.domain.models import (
    AuthConfig,
    ErrorInjectionConfig,
    LatencyConfig,
    MiddlewareConfig,
)


class Settings(BaseSettings):
    # Server
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")

    # Application
    app_env: Literal["development", "production", "test"] = Field(
        "development", alias="APP_ENV"
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Auth
    auth_enabled: bool = Field(False, alias="AUTH_ENABLED")
    api_key: str = Field("test-api-key", alias="API_KEY")

    # Latency injection
    latency_enabled: bool = Field(False, alias="LATENCY_ENABLED")
    latency_min_ms: float = Field(100.0, alias="LATENCY_MIN_MS")
    latency_max_ms: float = Field(500.0, alias="LATENCY_MAX_MS")
    latency_distribution: Literal["uniform", "normal", "exponential"] = Field(
        "uniform", alias="LATENCY_DISTRIBUTION"
    )

    # Error injection
    error_injection_enabled: bool = Field(False, alias="ERROR_INJECTION_ENABLED")
    error_rate: float = Field(0.1, alias="ERROR_RATE")
    timeout_delay_ms: float = Field(30_000.0, alias="TIMEOUT_DELAY_MS")

    # Data generation
    default_total_records: int = Field(10_000, alias="DEFAULT_TOTAL_RECORDS")
    default_seed: int = Field(42, alias="DEFAULT_SEED")
    default_page_size: int = Field(100, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(1_000, alias="MAX_PAGE_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


@dataclass
class StartupCheck:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def check_startup_config(settings: Settings) -> StartupCheck:
    """
    Sanity-check settings before the server starts.

    Errors block start-up; warnings are logged.
    """
    check = StartupCheck()

    if not 1 <= settings.port <= 65535:
        check.errors.append("Server port must be between 1 and 65535")
    if settings.auth_enabled and not settings.api_key:
        check.errors.append("API key is required when authentication is enabled")
    if settings.latency_min_ms < 0 or settings.latency_max_ms < 0:
        check.errors.append("Latency bounds cannot be negative")
    if settings.latency_min_ms > settings.latency_max_ms:
        check.errors.append("Latency min cannot be greater than max")
    if not 0.0 <= settings.error_rate <= 1.0:
        check.errors.append("Error injection rate must be between 0 and 1")
    if settings.default_total_records < 0:
        check.errors.append("Total records cannot be negative")
    if settings.default_page_size <= 0 or settings.default_page_size > settings.max_page_size:
        check.errors.append("Default page size must be between 1 and the max page size")

    if settings.is_production:
        if settings.auth_enabled and settings.api_key == "test-api-key":
            check.warnings.append("Using the default API key in production is not recommended")
        if settings.log_level.upper() == "DEBUG":
            check.warnings.append("Debug logging enabled in production may impact performance")

    return check


def build_middleware_config(settings: Settings) -> MiddlewareConfig:
    """Initial middleware snapshot derived from settings."""
    return MiddlewareConfig(
        auth=AuthConfig(enabled=settings.auth_enabled, api_key=settings.api_key),
        latency=LatencyConfig(
            enabled=settings.latency_enabled,
            min_ms=settings.latency_min_ms,
            max_ms=settings.latency_max_ms,
            distribution=settings.latency_distribution,
        ),
        errors=ErrorInjectionConfig(
            enabled=settings.error_injection_enabled,
            error_rate=settings.error_rate,
        ),
    )


def default_schema() -> Dict[str, Dict[str, Any]]:
    """Built-in user-like record schema served until a client seeds another."""
    return {
        "userId": {"type": "uuid", "required": True},
        "email": {
            "type": "string",
            "required": True,
            "constraints": {"pattern": "email", "length": 25},
        },
        "firstName": {"type": "string", "required": True, "constraints": {"min": 2, "max": 20}},
        "lastName": {"type": "string", "required": True, "constraints": {"min": 2, "max": 30}},
        "age": {
            "type": "number",
            "required": True,
            "constraints": {"min": 18, "max": 100, "format": "integer"},
        },
        "phoneNumber": {"type": "string", "required": False, "constraints": {"pattern": "phone"}},
        "status": {
            "type": "enum",
            "required": True,
            "constraints": {"enum": ["active", "inactive", "pending", "suspended"]},
        },
        "balance": {"type": "number", "required": True, "constraints": {"min": 0, "max": 1_000_000}},
        "createdAt": {
            "type": "iso8601",
            "required": True,
            "constraints": {"min": "2020-01-01T00:00:00Z", "max": "2024-12-31T23:59:59Z"},
        },
        "isVerified": {"type": "boolean", "required": True},
        "metadata": {"type": "string", "required": False, "constraints": {"length": 100}},
    }


__all__ = [
    "Settings",
    "StartupCheck",
    "build_middleware_config",
    "check_startup_config",
    "default_schema",
    "get_settings",
]
