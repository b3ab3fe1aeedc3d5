from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional

from auracontrols.core.config import PinchThresholds
from auracontrols.core.types import HandFrame, THUMB_TIP, INDEX_TIP, RING_TIP, PINKY_TIP
from auracontrols.interpreter.classifiers import pinch_distance

logger = logging.getLogger(__name__)

FINGERS = {"index": INDEX_TIP, "ring": RING_TIP, "pinky": PINKY_TIP}


@dataclass
class CalibResult:
    pinch_index: float
    pinch_ring: float
    pinch_pinky: float


def profile_path() -> Path:
    p = Path.home() / ".config" / "auracontrols"
    p.mkdir(parents=True, exist_ok=True)
    return p / "profile.json"


def save_profile(r: CalibResult, path: Optional[Path] = None) -> Path:
    path = path or profile_path()
    path.write_text(json.dumps(asdict(r), indent=2))
    logger.info("calibration profile saved to %s", path)
    return path


def load_profile(path: Optional[Path] = None) -> Optional[dict]:
    p = path or profile_path()
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text())
    except json.JSONDecodeError:
        logger.warning("ignoring unreadable calibration profile %s", p)
        return None


def percentile(xs, q):
    if not xs:
        return None
    xs = sorted(xs)
    k = int(round((q / 100.0) * (len(xs) - 1)))
    return xs[max(0, min(len(xs) - 1, k))]


class Calibrator:
    """
    Two-step wizard driven by tick time:
      1. open hand (fingertips far from the thumb)
      2. pinch each finger to the thumb a few times
    Each threshold lands halfway between the low tail (10th percentile) of
    the open-hand distances and the low tail of the pinch-step distances,
    i.e. the moments that finger actually touched the thumb.
    """

    STEPS = (
        "Calibration 1/2: Hold your hand open, fingers spread.",
        "Calibration 2/2: Pinch thumb to index, ring and pinky a few times.",
    )

    def __init__(self, step_ms: int = 4000, defaults: PinchThresholds = PinchThresholds()):
        self.step_ms = step_ms
        self.defaults = defaults
        self.step = 0
        self.step_start: Optional[int] = None
        self.done = False
        self.samples: Dict[str, List[float]] = {}
        self.start()

    def start(self) -> None:
        self.step = 0
        self.step_start = None
        self.done = False
        self.samples = {f"{phase}_{name}": [] for phase in ("open", "pinch") for name in FINGERS}

    def instruction(self) -> str:
        return self.STEPS[self.step] if self.step < len(self.STEPS) else "Calibration complete."

    def update(self, hand: Optional[HandFrame], t_ms: int) -> None:
        if self.done:
            return
        if self.step_start is None:
            self.step_start = t_ms

        if (t_ms - self.step_start) > self.step_ms:
            self.step += 1
            self.step_start = t_ms
            if self.step >= len(self.STEPS):
                self.done = True
            return

        if hand is None:
            return

        for name, tip in FINGERS.items():
            d = pinch_distance(hand, THUMB_TIP, tip)
            if d is None:
                return
            if self.step == 0:
                self.samples[f"open_{name}"].append(d)
            else:
                self.samples[f"pinch_{name}"].append(d)

    def _threshold(self, name: str) -> float:
        default = getattr(self.defaults, name)
        open_d = percentile(self.samples[f"open_{name}"], 10)
        # pinched samples are the low tail of step 2
        pinch_d = percentile(self.samples[f"pinch_{name}"], 10)
        if open_d is None or pinch_d is None or pinch_d >= open_d:
            return default
        return (open_d + pinch_d) / 2.0

    def finalize(self) -> CalibResult:
        return CalibResult(
            pinch_index=float(self._threshold("index")),
            pinch_ring=float(self._threshold("ring")),
            pinch_pinky=float(self._threshold("pinky")),
        )
