from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from lastdone import ARGS_DIR, PROJECT_ROOT

logger = logging.getLogger(__name__)


# =============================================================================
# ActivitiesConfig (args/activities.yaml)
# =============================================================================

class AgingConfig(BaseModel):
    """Fractions of the target interval where fresh ends and stale begins."""

    model_config = ConfigDict(extra="allow")
    fresh_fraction: float = Field(default=0.5, gt=0.0, le=1.0)
    stale_fraction: float = Field(default=1.0, gt=0.0)

    @model_validator(mode="after")
    def _ordered(self) -> "AgingConfig":
        if self.stale_fraction < self.fresh_fraction:
            raise ValueError("stale_fraction must be >= fresh_fraction")
        return self


class RemindersConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    title: str = Field(default="A gentle nudge")
    category: str = Field(default="activity_reminder")


class VoiceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_names: int = Field(default=5, ge=1)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    db_path: str = Field(default="data/activities.db")
    gateway_db_path: str = Field(default="data/notifications.db")

    def resolve(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    level: str = Field(default="INFO")
    format: str = Field(default="console", pattern="^(console|json)$")
    file: str | None = Field(default=None)
    max_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=3, ge=0)


class ActivitiesConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    aging: AgingConfig = Field(default_factory=AgingConfig)
    reminders: RemindersConfig = Field(default_factory=RemindersConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "activities": ActivitiesConfig,
}


def load_and_validate(
    config_name: str,
    model_class: type[BaseModel] | None = None,
    args_dir: Path | None = None,
) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = (args_dir or ARGS_DIR) / f"{config_name}.yaml"

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {config_name}: {e}, using defaults")
        return model_class()


def load_activities_config(args_dir: Path | None = None) -> ActivitiesConfig:
    config = load_and_validate("activities", ActivitiesConfig, args_dir=args_dir)
    assert isinstance(config, ActivitiesConfig)
    return config
