"""Tracker configuration with YAML support."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator

from doubling_core.schemas import BaseSchema, Metric
from store.repository import DEFAULT_METRICS, STORAGE_KEY, default_metrics


class DefaultMetric(BaseSchema):
    name: str
    base_value: float = Field(allow_inf_nan=False)


class TrackerConfig(BaseSchema):
    """Where state lives and what a fresh tracker starts with."""

    db_path: str = "data/tracker.db"
    storage_key: str = STORAGE_KEY
    log_level: str = "WARNING"

    # Seeded when nothing has been persisted yet
    default_metrics: list[DefaultMetric] = Field(
        default_factory=lambda: [
            DefaultMetric(name=name, base_value=base_value)
            for name, base_value in DEFAULT_METRICS
        ]
    )

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def initial_metrics(self) -> list[Metric]:
        return default_metrics([(m.name, m.base_value) for m in self.default_metrics])


def load_config(yaml_path: str | Path) -> TrackerConfig:
    """Load tracker configuration from YAML file.
    
    Args:
        yaml_path: Path to YAML configuration file
        
    Returns:
        TrackerConfig instance
        
    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or missing required fields
    """
    yaml_path = Path(yaml_path)
    
    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")
    
    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Empty or invalid YAML file: {yaml_path}") from e
    
    if not data or not isinstance(data, dict):
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")
    
    try:
        return TrackerConfig.from_dict(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: TrackerConfig, yaml_path: str | Path) -> None:
    """Save tracker configuration to YAML file.
    
    Args:
        config: TrackerConfig to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    
    data = config.model_dump()
    
    with open(yaml_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
