"""Configuration for the API call SDK.

Uses Pydantic v2 for validation with sensible defaults.
"""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from .errors import InvalidConfigError

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_REFRESH_ENDPOINT = "/api/auth/refresh"
DEFAULT_LOGIN_PATH = "/login"


def _default_headers() -> dict[str, str]:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": "api-call-sdk/0.1.0 Python",
    }


class TelemetryConfig(BaseModel):
    """OpenTelemetry and logging configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "api-call-sdk"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        supported = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in supported:
            msg = f"Unsupported log level: {v}. Supported: {sorted(supported)}"
            raise ValueError(msg)
        return v.upper()


class ClientConfig(BaseModel):
    """Main configuration for the API client."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Relative endpoints are resolved against base_url when set
    base_url: HttpUrl | None = None

    # HTTP settings
    timeout_ms: Annotated[int, Field(gt=0, le=300_000)] = DEFAULT_TIMEOUT_MS
    default_headers: dict[str, str] = Field(default_factory=_default_headers)

    # Auth flow
    refresh_endpoint: str = Field(default=DEFAULT_REFRESH_ENDPOINT, min_length=1)
    login_path: str = Field(default=DEFAULT_LOGIN_PATH, min_length=1)

    # Fail before sending when a template placeholder has no value
    strict_path_params: bool = True

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("refresh_endpoint", "login_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths must be absolute."""
        if not v.startswith("/") and "://" not in v:
            msg = f"Path must start with '/': {v}"
            raise ValueError(msg)
        return v

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return str(self.base_url).rstrip("/") if self.base_url else ""

    @property
    def timeout_seconds(self) -> float:
        """Default request timeout in seconds."""
        return self.timeout_ms / 1000

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "API_CLIENT_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        raw_timeout = get_env("TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
        try:
            timeout_ms = int(raw_timeout)
        except ValueError as e:
            msg = f"{prefix}TIMEOUT_MS must be an integer, got {raw_timeout!r}"
            raise InvalidConfigError(msg, field="timeout_ms") from e

        return cls(
            base_url=get_env("BASE_URL") or None,
            timeout_ms=timeout_ms,
            refresh_endpoint=get_env("REFRESH_ENDPOINT", DEFAULT_REFRESH_ENDPOINT),
            login_path=get_env("LOGIN_PATH", DEFAULT_LOGIN_PATH),
            telemetry=TelemetryConfig(log_level=get_env("LOG_LEVEL", "INFO")),
        )
