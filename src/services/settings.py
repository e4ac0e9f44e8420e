"""Gateway configuration loaded from the process environment."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

LOG_LEVELS = ("debug", "info", "warning", "error")


class GatewaySettings(BaseModel):
    """Runtime settings for the gateway."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 3000
    n8n_base_url: str = "http://n8n-app:5678"
    n8n_api_key: str | None = None
    request_timeout: float = 30.0
    execution_wait_timeout: float = 30.0
    execution_poll_interval: float = 1.0
    debug: bool = False
    redis_url: str | None = None
    cache_ttl: int = 3600
    log_level: str = "info"
    log_dir: str = "logs"

    @field_validator("n8n_base_url")
    @classmethod
    def base_url_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("n8n_base_url is required")
        return v.rstrip("/")

    @field_validator("n8n_api_key", "redis_url", mode="before")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        return v

    @field_validator("port")
    @classmethod
    def port_in_range(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator(
        "request_timeout",
        "execution_wait_timeout",
        "execution_poll_interval",
        "cache_ttl",
    )
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GatewaySettings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        names = {
            "host": "HOST",
            "port": "PORT",
            "n8n_base_url": "N8N_BASE_URL",
            "n8n_api_key": "N8N_API_KEY",
            "request_timeout": "N8N_TIMEOUT",
            "execution_wait_timeout": "EXECUTION_WAIT_TIMEOUT",
            "execution_poll_interval": "EXECUTION_POLL_INTERVAL",
            "debug": "GATEWAY_DEBUG",
            "redis_url": "REDIS_URL",
            "cache_ttl": "CACHE_TTL",
            "log_level": "LOG_LEVEL",
            "log_dir": "LOG_DIR",
        }
        values = {field: env[var] for field, var in names.items() if var in env}
        return cls(**values)
