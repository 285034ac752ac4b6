"""Configuration validation using JSON Schema."""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "tracking": {
            "type": "object",
            "default": {},
            "properties": {
                "match_iou": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.3},
                "ttl_ms": {"type": "number", "exclusiveMinimum": 0, "maximum": 10000, "default": 400},
                "smoothing_rate_per_sec": {
                    "type": "number",
                    "exclusiveMinimum": 0,
                    "maximum": 100,
                    "default": 8.0,
                },
                "score_weight": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.3},
                "max_dt_ms": {"type": "number", "exclusiveMinimum": 0, "maximum": 1000, "default": 100},
            },
        },
        "detector": {
            "type": "object",
            "default": {},
            "properties": {
                "type": {"type": "string", "enum": ["remote", "ml", "sim"], "default": "remote"},
                "api_base": {"type": ["string", "null"], "default": None},
                "timeout_s": {"type": "number", "exclusiveMinimum": 0, "maximum": 60, "default": 2.0},
                "jpeg_quality": {"type": "integer", "minimum": 1, "maximum": 100, "default": 75},
                "interval_ms": {"type": "number", "minimum": 0, "maximum": 5000, "default": 80},
                "budget_ms": {"type": "number", "exclusiveMinimum": 0, "default": 200},
                "model_path": {"type": ["string", "null"], "default": None},
                "model_input_size": {"type": "integer", "minimum": 32, "maximum": 2048, "default": 640},
                "conf_threshold": {"type": "number", "minimum": 0.0, "maximum": 1.0, "default": 0.4},
                "labels_path": {"type": ["string", "null"], "default": None},
                "max_consecutive_errors": {"type": "integer", "minimum": 1, "default": 10},
            },
        },
        "render": {
            "type": "object",
            "default": {},
            "properties": {
                "refresh_hz": {"type": "number", "minimum": 1, "maximum": 240, "default": 60},
                "canvas_width": {"type": "integer", "minimum": 16, "maximum": 7680, "default": 1280},
                "canvas_height": {"type": "integer", "minimum": 16, "maximum": 4320, "default": 720},
                "font_scale": {"type": "number", "exclusiveMinimum": 0, "maximum": 10, "default": 4.0},
            },
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    default = subschema["default"]
                    instance.setdefault(prop, dict(default) if isinstance(default, dict) else default)

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema, filling in defaults.

    Args:
        config: Configuration dictionary (mutated in place with defaults)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
