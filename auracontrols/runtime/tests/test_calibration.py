import pytest

from auracontrols.core.config import DEFAULT_PRESET, PinchThresholds, apply_profile
from auracontrols.runtime.calibration import (
    CalibResult, Calibrator, load_profile, percentile, save_profile,
)
from auracontrols.interpreter.tests.hands import make_hand

OPEN = ["index", "middle", "ring", "pinky"]


def run_wizard(cal, pinches=True):
    for t in range(0, 110, 10):
        cal.update(make_hand(t=t, extended=OPEN), t)
    cal.update(None, 110)   # step boundary
    assert cal.step == 1
    cycle = ["index", "ring", "pinky"]
    for i, t in enumerate(range(120, 220, 10)):
        hand = make_hand(t=t, pinch=[cycle[i % 3]], gap=0.02) if pinches else None
        cal.update(hand, t)
    cal.update(None, 220)


def test_percentile():
    assert percentile([], 10) is None
    assert percentile([5.0, 1.0, 3.0], 0) == 1.0
    assert percentile([5.0, 1.0, 3.0], 100) == 5.0


def test_wizard_walks_both_steps():
    cal = Calibrator(step_ms=100)
    assert cal.instruction().startswith("Calibration 1/2")
    run_wizard(cal)
    assert cal.done
    assert cal.instruction() == "Calibration complete."

    r = cal.finalize()
    # halfway between the open-hand distance and the pinched 0.02
    assert r.pinch_index == pytest.approx((0.18028 + 0.02) / 2, abs=1e-4)
    assert r.pinch_ring == pytest.approx((0.31765 + 0.02) / 2, abs=1e-4)
    assert r.pinch_pinky == pytest.approx((0.42720 + 0.02) / 2, abs=1e-4)


def test_no_pinch_samples_fall_back_to_defaults():
    defaults = PinchThresholds(index=0.06, ring=0.065, pinky=0.09)
    cal = Calibrator(step_ms=100, defaults=defaults)
    run_wizard(cal, pinches=False)
    assert cal.finalize() == CalibResult(pinch_index=0.06, pinch_ring=0.065, pinch_pinky=0.09)


def test_updates_after_done_are_ignored():
    cal = Calibrator(step_ms=100)
    run_wizard(cal)
    before = {k: list(v) for k, v in cal.samples.items()}
    cal.update(make_hand(pinch=["index"]), 300)
    assert cal.samples == before

    cal.start()
    assert not cal.done and cal.step == 0
    assert all(v == [] for v in cal.samples.values())


def test_profile_round_trip(tmp_path):
    path = tmp_path / "profile.json"
    assert load_profile(path) is None
    save_profile(CalibResult(pinch_index=0.05, pinch_ring=0.06, pinch_pinky=0.08), path)
    profile = load_profile(path)
    assert profile == {"pinch_index": 0.05, "pinch_ring": 0.06, "pinch_pinky": 0.08}
    assert apply_profile(DEFAULT_PRESET, profile).pinch.ring == 0.06


def test_corrupt_profile_is_ignored(tmp_path):
    path = tmp_path / "profile.json"
    path.write_text("{not json")
    assert load_profile(path) is None
