"""Configuration loading for the overlay tracker."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class TrackingConfig:
    match_iou: float
    ttl_ms: float
    smoothing_rate_per_sec: float
    score_weight: float
    max_dt_ms: float


@dataclass(frozen=True)
class DetectorConfig:
    type: str
    api_base: Optional[str]
    timeout_s: float
    jpeg_quality: int
    interval_ms: float
    budget_ms: float
    model_path: Optional[str]
    model_input_size: int
    conf_threshold: float
    labels_path: Optional[str]
    max_consecutive_errors: int


@dataclass(frozen=True)
class RenderConfig:
    refresh_hz: float
    canvas_width: int
    canvas_height: int
    font_scale: float


@dataclass(frozen=True)
class AppConfig:
    tracking: TrackingConfig
    detector: DetectorConfig
    render: RenderConfig


def config_from_dict(data: Optional[Dict[str, Any]]) -> AppConfig:
    """Validate a raw mapping (filling defaults) and build an AppConfig.

    Raises:
        ConfigValidationError: If the mapping fails schema validation
        InvalidConfigError: If the validated data cannot be turned into config
    """
    data = {} if data is None else data
    if not isinstance(data, dict):
        raise InvalidConfigError(f"Configuration root must be a mapping, got {type(data).__name__}")

    validate_config(data)

    try:
        config = AppConfig(
            tracking=TrackingConfig(**data["tracking"]),
            detector=DetectorConfig(**data["detector"]),
            render=RenderConfig(**data["render"]),
        )
    except (KeyError, TypeError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")

    return config


def default_config() -> AppConfig:
    return config_from_dict({})


def load_config(path: Path) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    logger.info(f"Loading configuration from {path}")
    if not path.exists():
        raise InvalidConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    config = config_from_dict(data)
    logger.info(
        f"Configuration loaded: {config.detector.type} detector, "
        f"ttl={config.tracking.ttl_ms:.0f}ms, iou>={config.tracking.match_iou}"
    )
    return config


def load_labels(path: Optional[Path]) -> List[str]:
    """Load class labels from JSON.

    Accepts either a list of names or a mapping of class index to name; gaps in
    a mapping become ``cls <index>``.

    Raises:
        ConfigError: If the file is missing or holds neither shape
    """
    if path is None:
        return []
    if not path.exists():
        raise ConfigError(f"Labels file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Labels file {path} is not valid JSON: {e}")

    if isinstance(data, list):
        return [str(name) for name in data]
    if isinstance(data, dict):
        try:
            indexed = {int(key): str(name) for key, name in data.items()}
        except ValueError as e:
            raise ConfigError(f"Labels file {path} has a non-integer key: {e}")
        if not indexed:
            return []
        return [indexed.get(i, f"cls {i}") for i in range(max(indexed) + 1)]
    raise ConfigError(f"Labels file {path} must hold a list or an object")


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "DetectorConfig",
    "RenderConfig",
    "TrackingConfig",
    "config_from_dict",
    "default_config",
    "load_config",
    "load_labels",
]
