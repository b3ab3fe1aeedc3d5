import pytest

from auracontrols.core.config import (
    ConfigError, DEFAULT_PRESET, PRESETS, PresetName, PinchThresholds,
    apply_profile, load_config, preset_from_dict, validate_preset,
)
from auracontrols.core.types import Handedness, Region


def test_presets_are_valid_and_named():
    for name, preset in PRESETS.items():
        assert preset.name == name
        assert validate_preset(preset) is preset


def test_default_tunables():
    p = DEFAULT_PRESET
    assert (p.pinch.index, p.pinch.ring, p.pinch.pinky) == (0.07, 0.07, 0.10)
    assert p.swipe.cooldown_ms == 500 and p.swipe.sensitivity == 0.03
    assert p.slider.sensitivity == 0.01
    assert p.hands.primary == Handedness.RIGHT
    assert not p.smoothing.enabled


def test_yaml_overlay(tmp_path):
    cfg = tmp_path / "aura.yaml"
    cfg.write_text(
        "preset: Precision\n"
        "swipe:\n"
        "  cooldown_ms: 650\n"
        "hands:\n"
        "  primary: left\n"
        "  auxiliary: right\n"
        "click_targets:\n"
        "  - {name: play, x: 0.5, y: 0.5, size: 0.2}\n"
        "drag:\n"
        "  object_start: [0.3, 0.4]\n"
        "  drop_zones:\n"
        "    - {name: bin, x_min: 0.7, y_min: 0.1, x_max: 0.9, y_max: 0.3}\n"
    )
    p = load_config(cfg)
    assert p.name == PresetName.PRECISION
    assert p.swipe.cooldown_ms == 650
    assert p.swipe.sensitivity == PRESETS[PresetName.PRECISION].swipe.sensitivity
    assert p.hands.primary == Handedness.LEFT
    assert p.click_targets == (Region.centered("play", 0.5, 0.5, 0.2),)
    assert p.drag.object_start == (0.3, 0.4)
    assert [z.name for z in p.drag.drop_zones] == ["bin"]


def test_empty_file_gives_base(tmp_path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("")
    assert load_config(cfg) == DEFAULT_PRESET


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize("data", [
    {"swipe": {"cooldwon_ms": 10}},
    {"gestures": {}},
    {"preset": "Turbo"},
    {"pinch": {"index": 1.5}},
    {"pinch": {"ring": "wide"}},
    {"slider": {"min_value": 100, "max_value": 0}},
    {"swipe": "fast"},
    {"click_targets": [{"name": "x", "x": 0.5}]},
])
def test_bad_config_is_rejected(data):
    with pytest.raises(ConfigError):
        preset_from_dict(data)


def test_inverted_region_rejected():
    with pytest.raises(ConfigError):
        preset_from_dict({"click_targets": [
            {"name": "bad", "x_min": 0.5, "y_min": 0.1, "x_max": 0.2, "y_max": 0.3},
        ]})


def test_top_level_must_be_mapping(tmp_path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_apply_profile():
    p = apply_profile(DEFAULT_PRESET, {"pinch_index": 0.05, "pinch_pinky": 0.09})
    assert p.pinch == PinchThresholds(index=0.05, ring=0.07, pinky=0.09)
    assert apply_profile(DEFAULT_PRESET, None) is DEFAULT_PRESET
    with pytest.raises(ConfigError):
        apply_profile(DEFAULT_PRESET, {"pinch_ring": "x"})
