"""
Configuration loader — reads release.yml into ``EngineSettings``.

Every section is optional; a missing file means "all defaults", which
is what tests and offline CLI runs rely on.

    registry:
      url: https://registry.example.com
      username: ci
      password: secret
      timeout: 15
    helm:
      binary: helm
      timeout: 60
    webhooks:
      timeout: 10
      max_workers: 8
    authorization:
      admin_role: release-admin
    logging:
      level: INFO
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE = "release.yml"


class ConfigError(Exception):
    """Raised when release.yml is unreadable or invalid."""


class RegistrySettings(BaseModel):
    """Container registry (Docker Registry HTTP API v2)."""

    url: str = ""
    username: str = ""
    password: str = ""
    timeout: float = 15.0
    verify_ssl: bool = True


class HelmSettings(BaseModel):
    binary: str = "helm"
    timeout: float = 60.0


class WebhookSettings(BaseModel):
    timeout: float = 10.0
    max_workers: int = Field(default=8, ge=1)


class AuthorizationSettings(BaseModel):
    admin_role: str = "release-admin"


class LoggingSettings(BaseModel):
    level: str | None = None
    file: str | None = None


class EngineSettings(BaseModel):
    """Root of release.yml."""

    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    helm: HelmSettings = Field(default_factory=HelmSettings)
    webhooks: WebhookSettings = Field(default_factory=WebhookSettings)
    authorization: AuthorizationSettings = Field(default_factory=AuthorizationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for release.yml from ``start_dir`` (default: cwd) upward."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    return None


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load and validate release.yml.

    Args:
        path: Explicit config path.  If None, searches upward and falls
            back to defaults when nothing is found.

    Raises:
        ConfigError: If an explicit path is missing or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found — using defaults", CONFIG_FILE)
            return EngineSettings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = EngineSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
