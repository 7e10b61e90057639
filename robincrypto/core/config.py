"""
Configuration - Loads and validates client configuration.

Merges an optional YAML file with environment variables (a local ``.env``
is loaded first for development). Environment variables take precedence
over YAML values. Every call builds a fresh, validated ``ClientConfig``;
there is no process-wide instance, so callers pass the result explicitly.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_BASE_URL = "https://trading.robinhood.com"


def _as_bool(v: str) -> bool:
    return v.lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------

_ENV_MAPPINGS = {
    "ROBINHOOD_API_KEY": ("robinhood", "api_key"),
    "ROBINHOOD_SIGNING_PRIVATE_B64": ("robinhood", "private_key_b64"),
    "ROBINHOOD_PUBLIC_KEY": ("robinhood", "public_key"),
    "ROBINHOOD_BASE_URL": ("robinhood", "base_url", lambda v: v.strip().rstrip("/")),
    "ROBINHOOD_TIMEOUT_SECONDS": ("robinhood", "timeout_seconds", float),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_DIR": ("logging", "log_dir"),
    "LOG_JSON": ("logging", "json_output", _as_bool),
}


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    """Override YAML values with environment variables where set."""
    for env_key, mapping in _ENV_MAPPINGS.items():
        value = os.getenv(env_key)
        if value is None:
            continue
        section, key = mapping[0], mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str
        try:
            config.setdefault(section, {})[key] = converter(value)
        except (ValueError, TypeError) as e:
            logging.getLogger("config").warning(
                "Env %s failed to convert: %s. Using YAML value.", env_key, e,
            )


# ---------------------------------------------------------------------------
# Pydantic Configuration Models
# ---------------------------------------------------------------------------

class RobinhoodConfig(BaseModel):
    api_key: str = ""
    private_key_b64: str = Field(default="", repr=False)
    public_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 20.0

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        v = (v or "").strip().rstrip("/")
        if not v.startswith(("https://", "http://")):
            raise ValueError("robinhood.base_url must be an http(s) URL")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0 or v > 300:
            raise ValueError("robinhood.timeout_seconds must be between 0 and 300")
        return v

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.private_key_b64 and self.public_key)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: Optional[str] = None
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        v = (v or "INFO").upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return v


class ClientConfig(BaseModel):
    """Master configuration model with full validation."""
    robinhood: RobinhoodConfig = Field(default_factory=RobinhoodConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config_with_overrides(
    config_path: str = "config/config.yaml",
    overrides: Optional[Dict[str, Any]] = None,
) -> ClientConfig:
    """Load a fresh config (YAML + env) with optional deep overrides."""
    load_dotenv()

    yaml_config: Dict[str, Any] = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file, "r") as f:
            yaml_config = yaml.safe_load(f) or {}

    _apply_env_overrides(yaml_config)

    def _deep_update(dst: Dict[str, Any], src: Dict[str, Any]) -> None:
        for key, value in (src or {}).items():
            if isinstance(value, dict) and isinstance(dst.get(key), dict):
                _deep_update(dst[key], value)
            else:
                dst[key] = value

    if overrides:
        _deep_update(yaml_config, overrides)

    return ClientConfig(**yaml_config)
