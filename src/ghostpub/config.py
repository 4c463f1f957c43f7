"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from ghostpub.exceptions import ConfigurationError


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "GHOSTPUB_"


class Settings(BaseModel):
    ghost_url:    str = Field(default="", description="Base URL of the Ghost site, e.g. https://blog.example.com")
    api_key_env:  str = Field(default="GHOST_ADMIN_API_KEY", description="Env var holding the Admin API key (id:secret)")
    vault_dir:    str = Field(default=".", description="Root directory of the notes vault")
    sync_folder:  str = Field(default="Ghost Posts", description="Vault-relative folder whose notes are synced")
    sync_interval: int = Field(default=15, ge=1, description="Periodic sync interval in minutes")
    yaml_prefix:  str = Field(default="ghost_", description="Key prefix of Ghost properties in the header block")
    show_notifications: bool = Field(default=True, description="Echo user-facing notices during sync")
    debounce_seconds:     float = Field(default=2.0, gt=0, description="Quiet period before a changed note is synced")
    stamp_delay_seconds:  float = Field(default=3.0, gt=0, description="Delay before the id/slug write-back")
    header_retry_seconds: float = Field(default=0.1, ge=0, description="Single wait before re-reading a cold header")
    api_version:     str = Field(default="v5.0", description="Accept-Version header sent to Ghost")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    db_url:          str = Field(default="sqlite:///ghostpub.db", description="Sync ledger database URL")

    @model_validator(mode="after")
    def _stamp_after_debounce(self) -> "Settings":
        if self.stamp_delay_seconds <= self.debounce_seconds:
            raise ValueError("stamp_delay_seconds must be greater than debounce_seconds")
        return self

    def api_key(self) -> str:
        """Resolve the Admin API key from the configured environment variable."""
        key = os.getenv(self.api_key_env, "").strip()
        if not key:
            raise ConfigurationError(f"Admin API key not configured (set {self.api_key_env})")
        return key

    def require_url(self) -> str:
        if not self.ghost_url.strip():
            raise ConfigurationError("Ghost URL not configured (set ghost_url or GHOSTPUB_GHOST_URL)")
        return self.ghost_url.strip().rstrip("/")


def load_config(overrides: Optional[dict[str, Any]] = None) -> Settings:
    """Load Settings from config.yaml, then GHOSTPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
