"""
Configuration loading and validation.

Loads portal configuration from a YAML file. The file location and the
database path can be overridden from the environment (``PORTAL_`` prefix,
``.env`` supported).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from portal_shared.schemas.common import DragDirection


class StoreConfig(BaseModel):
    db_path: str = "./data/portal.db"


class LoggingConfig(BaseModel):
    level: str = "info"
    format: Literal["json", "text"] = "text"


class BoardConfig(BaseModel):
    # Used when a drop lands on a card before any drag-over set a direction
    default_direction: DragDirection = DragDirection.BELOW


class PortalConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    board: BoardConfig = Field(default_factory=BoardConfig)


class PortalSettings(BaseSettings):
    """Environment overrides."""

    model_config = SettingsConfigDict(env_prefix="PORTAL_", env_file=".env", extra="ignore")

    config_path: str = "portal.yaml"
    db_path: Optional[str] = None


@lru_cache
def get_settings() -> PortalSettings:
    return PortalSettings()


def load_config(path: str | Path, settings: Optional[PortalSettings] = None) -> PortalConfig:
    """Load and validate portal configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    config = PortalConfig.model_validate(raw)
    if settings is not None and settings.db_path:
        config.store.db_path = settings.db_path
    return config
