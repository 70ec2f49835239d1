"""Centralized application configuration with schema validation.

Flat environment names (for example ``AWS_REGION``, ``GOTIFY_URL``) are the
primary contract because the report is usually deployed with plain env vars.
Nested names (for example ``NOTIFY__GOTIFY_URL``) are accepted as well, and a
local ``.env`` file is read before process env values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _normalize_level(value: object) -> str:
    text = str(value or "").strip().upper()
    if text in _LOG_LEVELS:
        return text
    return "INFO"


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class AWSConfig(BaseModel):
    """AWS credentials and client defaults used by the services factory."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(default="us-east-1")
    access_key_id: str | None = Field(default=None, repr=False)
    secret_access_key: str | None = Field(default=None, repr=False)
    max_retries: int = Field(default=3, ge=1, le=25)
    timeout: int = Field(default=30, ge=1, le=300)
    connect_timeout: int = Field(default=5, ge=1, le=60)

    @field_validator("region", mode="before")
    @classmethod
    def _normalize_region(cls, value: object) -> str:
        return str(value or "").strip() or "us-east-1"

    @field_validator("access_key_id", "secret_access_key", mode="before")
    @classmethod
    def _normalize_keys(cls, value: object) -> str | None:
        return _optional_text(value)


class NotifyConfig(BaseModel):
    """Push channel selection and per-channel credentials."""

    model_config = ConfigDict(frozen=True)

    push_channel: str = Field(default="1")
    gotify_url: str | None = Field(default=None)
    gotify_token: str | None = Field(default=None, repr=False)
    tg_bot_token: str | None = Field(default=None, repr=False)
    tg_chat_id: str | None = Field(default=None)
    timeout: float = Field(default=10.0, gt=0.0, le=120.0)

    @field_validator("push_channel", mode="before")
    @classmethod
    def _normalize_channel(cls, value: object) -> str:
        # Unknown selectors are kept as-is: they simply select no channel.
        return str(value if value is not None else "1").strip()

    @field_validator("gotify_url", "gotify_token", "tg_bot_token", "tg_chat_id", mode="before")
    @classmethod
    def _normalize_optional(cls, value: object) -> str | None:
        return _optional_text(value)


class ReportConfig(BaseModel):
    """What to report on and how to cut the reporting window."""

    model_config = ConfigDict(frozen=True)

    instance_id: str | None = Field(default=None)
    timezone: str = Field(default="UTC")

    @field_validator("instance_id", mode="before")
    @classmethod
    def _normalize_instance(cls, value: object) -> str | None:
        return _optional_text(value)

    @field_validator("timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: object) -> str:
        text = str(value or "").strip() or "UTC"
        try:
            ZoneInfo(text)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {text!r}") from exc
        return text

    def tzinfo(self) -> ZoneInfo:
        """Return the configured zone as a tzinfo object."""
        return ZoneInfo(self.timezone)


class APIConfig(BaseModel):
    """Flask runtime configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> str:
        return _normalize_level(value)


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    aws: AWSConfig = Field(default_factory=AWSConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    aws = {
        "region": _first_non_empty(env, "AWS__REGION", "AWS_REGION", "AWS_DEFAULT_REGION"),
        "access_key_id": _first_non_empty(env, "AWS__ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
        "secret_access_key": _first_non_empty(
            env, "AWS__SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"
        ),
        "max_retries": _first_non_empty(env, "AWS__MAX_RETRIES", "AWS_MAX_RETRIES"),
        "timeout": _first_non_empty(env, "AWS__TIMEOUT", "AWS_TIMEOUT"),
        "connect_timeout": _first_non_empty(env, "AWS__CONNECT_TIMEOUT", "AWS_CONNECT_TIMEOUT"),
    }
    # An empty PUSH_CHANNEL falls back to the default ("1", Gotify only).
    notify = {
        "push_channel": _first_non_empty(env, "NOTIFY__PUSH_CHANNEL", "PUSH_CHANNEL"),
        "gotify_url": _first_non_empty(env, "NOTIFY__GOTIFY_URL", "GOTIFY_URL"),
        "gotify_token": _first_non_empty(env, "NOTIFY__GOTIFY_TOKEN", "GOTIFY_TOKEN"),
        "tg_bot_token": _first_non_empty(env, "NOTIFY__TG_BOT_TOKEN", "TG_BOT_TOKEN"),
        "tg_chat_id": _first_non_empty(env, "NOTIFY__TG_CHAT_ID", "TG_CHAT_ID"),
        "timeout": _first_non_empty(env, "NOTIFY__TIMEOUT", "NOTIFY_TIMEOUT"),
    }
    report = {
        "instance_id": _first_non_empty(env, "REPORT__INSTANCE_ID", "EC2_INSTANCE_ID"),
        "timezone": _first_non_empty(env, "REPORT__TIMEZONE", "REPORT_TIMEZONE"),
    }
    api = {
        "host": _first_non_empty(env, "API__HOST", "API_HOST", "HOST"),
        "port": _first_non_empty(env, "API__PORT", "API_PORT", "PORT"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "TRAFFIC_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "TRAFFIC_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "TRAFFIC_LOG_OVERRIDE"
        ),
    }
    return {
        "aws": {k: v for k, v in aws.items() if v is not None},
        "notify": {k: v for k, v in notify.items() if v is not None},
        "report": {k: v for k, v in report.items() if v is not None},
        "api": {k: v for k, v in api.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "APIConfig",
    "AWSConfig",
    "LoggingSettings",
    "NotifyConfig",
    "ReportConfig",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
