"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UnclassifiedStatusPolicy(str, Enum):
    """What the sender does with statuses outside 2xx/400/401/404/429."""

    RETRY = "retry"
    FAIL = "fail"


class WebhookConfig(BaseModel):
    # Hosts substituted for "discord.com" in the webhook URL, tried in order
    proxies: list[str] = Field(default_factory=lambda: ["discord.com"])
    max_attempts_per_proxy: int = Field(default=2, ge=1)
    timeout: float = 10.0
    flags_byteorder: Literal["little", "big"] = "little"
    unclassified_status_policy: UnclassifiedStatusPolicy = UnclassifiedStatusPolicy.RETRY


class ThumbnailConfig(BaseModel):
    # Formatted with subdomain and path
    proxy_urls: list[str] = Field(
        default_factory=lambda: ["https://{subdomain}.roproxy.com{path}"]
    )
    max_attempts_per_proxy: int = Field(default=2, ge=1)
    fallback_url: str = "https://cdn.discordapp.com/embed/avatars/0.png"
    timeout: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HOOKPOST_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    thumbnails: ThumbnailConfig = Field(default_factory=ThumbnailConfig)
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def get_config_dir() -> Path:
    """Directory holding the default config.yaml for this OS."""
    env = os.environ.get("HOOKPOST_CONFIG_DIR")
    if env:
        return Path(env)
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / "hookpost"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "hookpost"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "hookpost"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config.

    YAML values are passed as init arguments, so they take precedence over
    environment variables; keyword overrides are merged on top of the YAML.
    """
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("HOOKPOST_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    if overrides:
        yaml_data = _deep_merge(yaml_data, overrides)

    return Settings(**yaml_data)
