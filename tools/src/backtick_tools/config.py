"""
Environment configuration for the server and the Cal.com integration.

Values are read from a mapping (``os.environ`` by default) and validated with
pydantic; any invalid value raises ConfigurationError listing every issue.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, model_validator

from backtick_tools.errors import ConfigurationError
from backtick_tools.http_client import RetryPolicy

DEFAULT_CALCOM_API_BASE = "https://api.cal.com"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int = Field(default=8080, ge=1, le=65535, description="HTTP server port")
    log_level: Literal["critical", "error", "warning", "info", "debug"] = "info"
    environment: Literal["development", "production", "test"] = "development"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


class CalcomConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_token: str = Field(min_length=1, description="Cal.com API token")
    api_base: HttpUrl = Field(default=DEFAULT_CALCOM_API_BASE, validate_default=True)
    # /v1/event-types historically took the token as an ``apiKey`` query param
    event_types_auth: Literal["bearer", "query"] = "bearer"
    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, gt=0)
    max_delay: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _check_delays(self) -> CalcomConfig:
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must not be lower than base_delay")
        return self

    @property
    def base_url(self) -> str:
        return str(self.api_base).rstrip("/")

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
        )


def _parse(model: type[ModelT], values: dict[str, str | None], label: str) -> ModelT:
    try:
        return model(**{key: value for key, value in values.items() if value not in (None, "")})
    except ValidationError as e:
        issues = ", ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"{label} configuration error: {issues}") from e


def load_server_config(env: Mapping[str, str] | None = None) -> ServerConfig:
    env = os.environ if env is None else env
    return _parse(
        ServerConfig,
        {
            "port": env.get("PORT"),
            "log_level": (env.get("LOG_LEVEL") or "").lower() or None,
            "environment": env.get("ENVIRONMENT"),
        },
        "Server",
    )


def load_calcom_config(
    api_token: str | None,
    env: Mapping[str, str] | None = None,
) -> CalcomConfig:
    """Build the Cal.com config; the token comes from the credential store."""
    env = os.environ if env is None else env
    return _parse(
        CalcomConfig,
        {
            "api_token": api_token,
            "api_base": env.get("CALCOM_API_BASE"),
            "event_types_auth": env.get("CALCOM_EVENT_TYPES_AUTH"),
            "max_attempts": env.get("CALCOM_MAX_ATTEMPTS"),
            "base_delay": env.get("CALCOM_BASE_DELAY"),
            "max_delay": env.get("CALCOM_MAX_DELAY"),
        },
        "Cal.com",
    )
