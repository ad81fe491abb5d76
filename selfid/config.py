"""
SelfID — Configuration System

All configuration is Pydantic-validated and loaded from:
1. An optional YAML file (defaults for a deployment)
2. Environment variables (overrides)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ─── Sub-configs ──────────────────────────────────────────────────


class LedgerConfig(BaseModel):
    chain_id: str = "selfid-local"
    # Prefix mixed into every generated address so separate ledgers never collide
    address_namespace: str = "ledger"


class IdentityConfig(BaseModel):
    # Threshold every new instance starts with; managers may change it later
    approval_threshold: int = 1
    # Per-event-type history kept by each instance's EventBus
    event_buffer_size: int = 100

    @field_validator("approval_threshold")
    @classmethod
    def _threshold_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("approval_threshold must be at least 1")
        return value

    @field_validator("event_buffer_size")
    @classmethod
    def _buffer_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("event_buffer_size must be at least 1")
        return value


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class SelfIDConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="SELFID_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    instance_name: str = "selfid"

    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str | Path | None = None) -> SelfIDConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    overrides: dict[str, Any] = {}
    if threshold := os.environ.get("SELFID_IDENTITY__APPROVAL_THRESHOLD"):
        overrides.setdefault("identity", {})["approval_threshold"] = int(threshold)
    if buffer_size := os.environ.get("SELFID_IDENTITY__EVENT_BUFFER_SIZE"):
        overrides.setdefault("identity", {})["event_buffer_size"] = int(buffer_size)
    if chain_id := os.environ.get("SELFID_LEDGER__CHAIN_ID"):
        overrides.setdefault("ledger", {})["chain_id"] = chain_id
    if log_level := os.environ.get("SELFID_LOGGING__LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level
    if log_format := os.environ.get("SELFID_LOGGING__FORMAT"):
        overrides.setdefault("logging", {})["format"] = log_format
    if instance_name := os.environ.get("SELFID_INSTANCE_NAME"):
        overrides["instance_name"] = instance_name

    return SelfIDConfig(**_deep_merge(raw, overrides))
