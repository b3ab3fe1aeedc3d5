"""
AuraControls — Tunables and Presets

Every threshold the pipeline uses lives here. Mappers never hard-code a
constant; they read it from the Preset they were built with.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from auracontrols.core.types import Handedness, Region

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Invalid configuration value or file."""


class PresetName(str, Enum):
    DEFAULT = "Default"
    PRECISION = "Precision"
    RELAXED = "Relaxed"


@dataclass(frozen=True)
class PinchThresholds:
    # normalized x/y distance between thumb tip and the other fingertip
    index: float = 0.07
    ring: float = 0.07
    pinky: float = 0.10   # coarser: aim gesture


@dataclass(frozen=True)
class SliderTuning:
    sensitivity: float = 0.01        # per-tick motion floor (normalized units)
    vertical_gain: float = -200.0    # up on screen = louder
    horizontal_gain: float = 200.0
    initial_vertical: float = 50.0
    initial_horizontal: float = 70.0
    min_value: float = 0.0
    max_value: float = 100.0


@dataclass(frozen=True)
class ScrollTuning:
    step: float = 2.0   # px per rendered frame


@dataclass(frozen=True)
class SwipeTuning:
    sensitivity: float = 0.03
    cooldown_ms: int = 500
    tab_count: int = 4


DEFAULT_DROP_ZONES: Tuple[Region, ...] = (
    Region(name="drop", x_min=0.6, y_min=0.35, x_max=0.9, y_max=0.55),
)


@dataclass(frozen=True)
class DragTuning:
    object_size: float = 0.15
    object_start: Tuple[float, float] = (0.2, 0.5)
    drop_zones: Tuple[Region, ...] = DEFAULT_DROP_ZONES


@dataclass(frozen=True)
class HandRoles:
    primary: Handedness = Handedness.RIGHT     # cursor, click, drag, slider, scroll
    auxiliary: Handedness = Handedness.LEFT    # tab switching


@dataclass(frozen=True)
class CursorSmoothing:
    # off by default: raw landmark motion drives the cursor
    enabled: bool = False
    min_cutoff_hz: float = 2.0
    beta: float = 0.06
    d_cutoff_hz: float = 1.0


@dataclass(frozen=True)
class CameraConfig:
    index: int = 0
    width: int = 640
    height: int = 480
    mirror: bool = False   # outputs are mirrored by the mappers, not the image


@dataclass(frozen=True)
class DetectorConfig:
    model_path: str = "assets/hand_landmarker.task"
    num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class Preset:
    name: PresetName
    pinch: PinchThresholds = PinchThresholds()
    slider: SliderTuning = SliderTuning()
    scroll: ScrollTuning = ScrollTuning()
    swipe: SwipeTuning = SwipeTuning()
    drag: DragTuning = DragTuning()
    hands: HandRoles = HandRoles()
    smoothing: CursorSmoothing = CursorSmoothing()
    camera: CameraConfig = CameraConfig()
    detector: DetectorConfig = DetectorConfig()
    click_targets: Tuple[Region, ...] = ()


DEFAULT_PRESET = Preset(name=PresetName.DEFAULT)

PRECISION_PRESET = Preset(
    name=PresetName.PRECISION,
    pinch=PinchThresholds(index=0.055, ring=0.055, pinky=0.085),
    slider=SliderTuning(sensitivity=0.006, vertical_gain=-120.0, horizontal_gain=120.0),
    swipe=SwipeTuning(sensitivity=0.04, cooldown_ms=600),
    smoothing=CursorSmoothing(enabled=True, min_cutoff_hz=1.5, beta=0.04),
)

RELAXED_PRESET = Preset(
    name=PresetName.RELAXED,
    pinch=PinchThresholds(index=0.085, ring=0.085, pinky=0.12),
    slider=SliderTuning(sensitivity=0.015),
    swipe=SwipeTuning(sensitivity=0.025, cooldown_ms=400),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.PRECISION: PRECISION_PRESET,
    PresetName.RELAXED: RELAXED_PRESET,
}


def validate_preset(preset: Preset) -> Preset:
    p = preset.pinch
    for name in ("index", "ring", "pinky"):
        v = getattr(p, name)
        if not 0.0 < v < 1.0:
            raise ConfigError(f"pinch.{name} must be in (0, 1), got {v!r}")
    s = preset.slider
    if s.sensitivity < 0.0:
        raise ConfigError("slider.sensitivity must be >= 0")
    if s.min_value >= s.max_value:
        raise ConfigError("slider.min_value must be below slider.max_value")
    if preset.swipe.sensitivity <= 0.0:
        raise ConfigError("swipe.sensitivity must be positive")
    if preset.swipe.cooldown_ms < 0:
        raise ConfigError("swipe.cooldown_ms must be >= 0")
    if preset.swipe.tab_count < 1:
        raise ConfigError("swipe.tab_count must be at least 1")
    if preset.drag.object_size <= 0.0:
        raise ConfigError("drag.object_size must be positive")
    if preset.hands.primary == preset.hands.auxiliary:
        logger.warning("primary and auxiliary hand are both %s", preset.hands.primary.value)
    for r in preset.drag.drop_zones + preset.click_targets:
        if r.x_min >= r.x_max or r.y_min >= r.y_max:
            raise ConfigError(f"region {r.name!r} has inverted bounds")
    return preset


# ============================================================
# YAML overrides
# ============================================================

def _region(data: Mapping[str, Any]) -> Region:
    try:
        if "size" in data:
            return Region.centered(str(data["name"]), float(data["x"]), float(data["y"]), float(data["size"]))
        return Region(
            name=str(data["name"]),
            x_min=float(data["x_min"]),
            y_min=float(data["y_min"]),
            x_max=float(data["x_max"]),
            y_max=float(data["y_max"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"bad region entry {dict(data)!r}: {e}") from e


def _overlay(section: str, current: Any, data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigError(f"section {section!r} must be a mapping")
    known = {f.name: f for f in dataclasses.fields(current)}
    changes: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"unknown key {section}.{key}")
        old = getattr(current, key)
        if key == "drop_zones":
            value = tuple(_region(r) for r in value)
        elif isinstance(old, Handedness):
            try:
                value = Handedness(str(value).capitalize())
            except ValueError as e:
                raise ConfigError(f"{section}.{key}: {e}") from e
        elif isinstance(old, tuple):
            value = tuple(value)
        elif isinstance(old, bool):
            value = bool(value)
        elif isinstance(old, (int, float)):
            try:
                value = type(old)(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{section}.{key}: {e}") from e
        changes[key] = value
    return dataclasses.replace(current, **changes)


def preset_from_dict(data: Mapping[str, Any], base: Preset = DEFAULT_PRESET) -> Preset:
    """Overlay a nested mapping onto `base`. Only keys present are changed."""
    preset = base
    if "preset" in data:
        try:
            preset = PRESETS[PresetName(data["preset"])]
        except ValueError as e:
            raise ConfigError(f"unknown preset {data['preset']!r}") from e

    sections = {f.name for f in dataclasses.fields(Preset)} - {"name", "click_targets"}
    changes: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "preset":
            continue
        if key == "click_targets":
            changes[key] = tuple(_region(r) for r in (value or ()))
        elif key in sections:
            changes[key] = _overlay(key, getattr(preset, key), value or {})
        else:
            raise ConfigError(f"unknown config section {key!r}")
    return validate_preset(dataclasses.replace(preset, **changes))


def load_config(path: Union[str, Path], base: Preset = DEFAULT_PRESET) -> Preset:
    """
    Load a YAML config file on top of a preset.

    Example:
        preset: Precision
        swipe:
          cooldown_ms: 650
        click_targets:
          - {name: play, x: 0.5, y: 0.5, size: 0.2}
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path}: {e}") from e

    if not isinstance(data, Mapping):
        raise ConfigError(f"{config_path}: top level must be a mapping")
    preset = preset_from_dict(data, base=base)
    logger.info("loaded config %s (preset=%s)", config_path, preset.name.value)
    return preset


def apply_profile(preset: Preset, profile: Optional[Mapping[str, Any]]) -> Preset:
    """Apply calibrated pinch thresholds saved by the calibration wizard."""
    if not profile:
        return preset
    pinch = preset.pinch
    try:
        pinch = dataclasses.replace(
            pinch,
            index=float(profile.get("pinch_index", pinch.index)),
            ring=float(profile.get("pinch_ring", pinch.ring)),
            pinky=float(profile.get("pinch_pinky", pinch.pinky)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"bad calibration profile: {e}") from e
    return validate_preset(dataclasses.replace(preset, pinch=pinch))
