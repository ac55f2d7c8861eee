from __future__ import annotations

import os
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

from yggauth.logging import get_logger

logger = get_logger(__name__)


def env_field(default: Any, env: str, **kwargs):
    extra = kwargs.pop("json_schema_extra", {}) or {}
    extra = {**extra, "env": env}
    return Field(default, json_schema_extra=extra, **kwargs)


class Settings(BaseModel):
    """Runtime settings for the authority server and client."""

    host: str = env_field("127.0.0.1", "YGG_HOST")
    port: int = env_field(8080, "YGG_PORT")
    server_name: str = env_field(
        "yggauth", "YGG_SERVER_NAME", description="Name reported by the status endpoint"
    )
    preferred_language: str = env_field(
        "en",
        "YGG_PREFERRED_LANGUAGE",
        description="Value of the preferredLanguage user property",
    )
    client_base_url: str = env_field("http://127.0.0.1:8080", "YGG_CLIENT_BASE_URL")
    client_timeout_seconds: float = env_field(10.0, "YGG_CLIENT_TIMEOUT_SECONDS")

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_env(cls) -> "Settings":
        env_file_values = dotenv_values(".env")
        merged: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            extra = field.json_schema_extra or {}
            env_key = extra.get("env") if isinstance(extra, dict) else None
            env_name = env_key or name.upper()
            if env_name in os.environ:
                merged[name] = os.environ[env_name]
            elif env_name in env_file_values:
                merged[name] = env_file_values[env_name]
        return cls(**merged)

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("client_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("client timeout must be positive")
        return value

    @field_validator("preferred_language")
    @classmethod
    def _validate_language(cls, value: str) -> str:
        value = value.strip()
        if not value:
            logger.warning("preferred_language_empty", fallback="en")
            return "en"
        return value


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings.from_env()
    return _settings_cache


_settings_cache: Settings | None = None


def reset_settings_cache() -> None:
    """Clear cached settings so future calls re-read the environment."""

    global _settings_cache
    _settings_cache = None
