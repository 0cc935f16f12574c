"""Configuration loader for the roofing engine."""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 80.0
MIN_CONFIDENCE_THRESHOLD = 50.0
MAX_CONFIDENCE_THRESHOLD = 100.0


@dataclass(frozen=True)
class DetectionConfig:
    min_fingerprint_hits: int = 1       # hits a vendor needs to win
    saturation_hits: int = 2            # hits at which detector confidence reaches 1.0


@dataclass(frozen=True)
class ConfidenceWeights:
    """Tunable confidence scoring constants. Calibrate against real reports."""
    required_fields: Tuple[str, ...] = ("total_squares", "ridge_length", "eave_length")
    optional_fields: Tuple[str, ...] = (
        "total_roof_area", "hip_length", "valley_length",
        "rake_length", "facet_count", "pitch",
    )
    required_share: float = 80.0
    optional_share: float = 20.0
    derived_credit: float = 0.5
    generic_format_penalty: float = 15.0
    unknown_format_penalty: float = 25.0
    weak_detection_penalty: float = 10.0
    consistency_penalty: float = 10.0


@dataclass(frozen=True)
class ParsingConfig:
    mismatch_tolerance: float = 0.10    # relative deviation before a cross-check warns
    max_plausible_squares: float = 500.0
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    weights: ConfidenceWeights = field(default_factory=ConfidenceWeights)


@dataclass(frozen=True)
class RoofingConfig:
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    default_preset: str = "Standard 3-Tab"
    settings_dir: Optional[str] = None


def clamp_threshold(value: float) -> float:
    """Keep a confidence threshold inside the user-editable 50-100 range."""
    return max(MIN_CONFIDENCE_THRESHOLD, min(MAX_CONFIDENCE_THRESHOLD, float(value)))


def _build(cls, raw: Optional[Dict[str, Any]]):
    """Build a frozen dataclass from a dict, ignoring unknown keys."""
    raw = raw or {}
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    kwargs = {k: v for k, v in raw.items() if k in known}
    for key in ("required_fields", "optional_fields"):
        if key in kwargs:
            kwargs[key] = tuple(kwargs[key])
    return cls(**kwargs)


def config_from_dict(raw: Optional[Dict[str, Any]]) -> RoofingConfig:
    raw = raw or {}
    parsing_raw = dict(raw.get("parsing") or {})
    detection = _build(DetectionConfig, parsing_raw.pop("detection", None))
    weights = _build(ConfidenceWeights, parsing_raw.pop("weights", None))
    parsing = replace(_build(ParsingConfig, parsing_raw), detection=detection, weights=weights)
    return RoofingConfig(
        parsing=parsing,
        confidence_threshold=clamp_threshold(
            raw.get("confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD)
        ),
        default_preset=raw.get("default_preset", RoofingConfig.default_preset),
        settings_dir=raw.get("settings_dir"),
    )


def load_config(config_path: Optional[str] = None) -> RoofingConfig:
    """
    Load configuration from YAML, falling back to built-in defaults.

    Args:
        config_path: Path to config file. If None, uses ROOFCALC_CONFIG or
            looks in default locations.

    Returns:
        RoofingConfig object
    """
    load_dotenv()

    if config_path is None:
        config_path = os.environ.get("ROOFCALC_CONFIG")

    if config_path is None:
        search_paths = [
            Path.cwd() / 'config' / 'roofing.yaml',
            Path.home() / '.roofcalc' / 'roofing.yaml',
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    raw: Dict[str, Any] = {}
    if config_path:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        logger.info(f"Loaded config from {config_path}")

    env_threshold = os.environ.get("ROOFCALC_CONFIDENCE_THRESHOLD")
    if env_threshold:
        raw["confidence_threshold"] = float(env_threshold)
    env_settings_dir = os.environ.get("ROOFCALC_SETTINGS_DIR")
    if env_settings_dir:
        raw["settings_dir"] = env_settings_dir

    return config_from_dict(raw)
