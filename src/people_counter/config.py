"""
Configuration loading and validation.

Configuration is layered:
- ``config/default.yaml`` (checked in)
- ``config/config.yaml`` (local overrides, optional)
- plus any explicitly provided ``--config`` path (treated as overrides)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigError(Exception):
    """Raised when configuration files cannot be read or parsed."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering.

    Args:
        config_path: Explicit config file. Its directory is also searched for
                     ``default.yaml`` and ``config.yaml``.

    Raises:
        ConfigError: If a present file cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")

    try:
        merged: Dict[str, Any] = {}
        if os.path.exists(base_path):
            merged = _read_yaml(base_path)
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        # Finally apply explicit config_path if it's not one of the files above
        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(base_path),
            os.path.abspath(local_overrides_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration: {e}") from e

    logging.debug(f"Loaded configuration from {config_dir or '.'}")
    return merged


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    for section in ("engine", "log_level"):
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    engine = config.get("engine") or {}
    if not isinstance(engine, dict):
        return False, "engine must be a mapping"

    mtc = engine.get("min_tracking_confidence", 0.15)
    if not _is_number(mtc) or not (0 <= mtc < 1):
        return False, "engine.min_tracking_confidence must be a number in [0, 1)"

    phl = engine.get("position_history_limit", 30)
    if not isinstance(phl, int) or isinstance(phl, bool) or phl <= 0:
        return False, "engine.position_history_limit must be a positive integer"

    for key in ("cleanup_interval_ms", "staleness_ms"):
        value = engine.get(key, 1)
        if not _is_number(value) or value <= 0:
            return False, f"engine.{key} must be a positive number"

    dim = engine.get("detection_interval_ms", 30)
    if not _is_number(dim) or dim < 0:
        return False, "engine.detection_interval_ms must be a non-negative number"

    for key in ("canvas_width", "canvas_height"):
        value = engine.get(key, 1)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            return False, f"engine.{key} must be a positive integer"

    smf = engine.get("side_margin_fraction", 0.1)
    if not _is_number(smf) or not (0 <= smf < 0.5):
        return False, "engine.side_margin_fraction must be a number in [0, 0.5)"

    association = engine.get("association", {}) or {}
    if not isinstance(association, dict):
        return False, "engine.association must be a mapping"
    for key in ("match_distance_factor", "time_normalizer_ms"):
        if key in association and (not _is_number(association[key]) or association[key] <= 0):
            return False, f"engine.association.{key} must be a positive number"
    for key in ("size_weight", "time_weight"):
        if key in association and (not _is_number(association[key]) or association[key] < 0):
            return False, f"engine.association.{key} must be a non-negative number"

    line = engine.get("crossing_line")
    if line is not None and not isinstance(line, (list, dict)):
        return False, "engine.crossing_line must be [[x1, y1], [x2, y2]] or a mapping"

    detector = config.get("detector", {}) or {}
    if detector:
        if "model" in detector and (not isinstance(detector["model"], str) or not detector["model"]):
            return False, "detector.model must be a non-empty string"
        for key in ("conf_threshold", "iou_threshold"):
            if key in detector and (not _is_number(detector[key]) or not (0 <= detector[key] <= 1)):
                return False, f"detector.{key} must be a number in [0, 1]"

    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
