"""
AuraControls — CORE CONTRACTS

Landmark frames flow in from the tracker, interaction outputs flow out to
whatever UI or injector subscribes. Every stage of the pipeline speaks only
these types.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union


# ============================================================
# Tracker → Pipeline (Camera / Vision → Logic)
# ============================================================

# MediaPipe hand landmark indices (fixed anatomical contract)
WRIST = 0
THUMB_TIP = 4
INDEX_PIP = 6
INDEX_TIP = 8
MIDDLE_PIP = 10
MIDDLE_TIP = 12
RING_PIP = 14
RING_TIP = 16
PINKY_PIP = 18
PINKY_TIP = 20
NUM_LANDMARKS = 21


class Handedness(str, Enum):
    LEFT = "Left"
    RIGHT = "Right"


@dataclass(frozen=True)
class LandmarkPoint:
    """x/y normalized to [0, 1] of the frame, z is relative depth."""
    x: float
    y: float
    z: float = 0.0

    def is_finite(self) -> bool:
        try:
            return all(math.isfinite(v) for v in (self.x, self.y, self.z))
        except TypeError:
            return False


@dataclass(frozen=True)
class HandFrame:
    """
    One hand's snapshot for one tick.

    landmarks MUST keep the detector's order; index i is landmark i.
    A frame straight from a detector may be malformed (wrong count, NaN);
    consumers check is_well_formed() instead of trusting it.
    """
    handedness: Handedness
    landmarks: Tuple[LandmarkPoint, ...]
    t_ms: int

    def is_well_formed(self) -> bool:
        return len(self.landmarks) == NUM_LANDMARKS and all(
            isinstance(p, LandmarkPoint) and p.is_finite() for p in self.landmarks
        )

    def __getitem__(self, i: int) -> LandmarkPoint:
        return self.landmarks[i]


@dataclass(frozen=True)
class DualHandFrame:
    """Both hands for a single tick. Either side is None when not detected."""
    t_ms: int
    left: Optional[HandFrame] = None
    right: Optional[HandFrame] = None

    @classmethod
    def empty(cls, t_ms: int) -> "DualHandFrame":
        return cls(t_ms=t_ms)

    def hand(self, handedness: Handedness) -> Optional[HandFrame]:
        return self.left if handedness == Handedness.LEFT else self.right

    @property
    def is_empty(self) -> bool:
        return self.left is None and self.right is None


# ============================================================
# Gesture state
# ============================================================

class GestureKind(str, Enum):
    PINCH_INDEX = "PINCH_INDEX"      # thumb ↔ index  (slider)
    PINCH_RING = "PINCH_RING"        # thumb ↔ ring   (click / grab)
    PINCH_PINKY = "PINCH_PINKY"      # thumb ↔ pinky  (aim / cursor)
    PALM_OPEN = "PALM_OPEN"
    POINTING_INDEX = "POINTING_INDEX"
    POINTING_MIDDLE = "POINTING_MIDDLE"


class GesturePhase(str, Enum):
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    JUST_ENTERED = "JUST_ENTERED"
    JUST_EXITED = "JUST_EXITED"


@dataclass(frozen=True)
class GestureState:
    kind: GestureKind
    phase: GesturePhase = GesturePhase.IDLE
    metric: Optional[float] = None   # e.g. pinch distance, for threshold tuning

    @property
    def active(self) -> bool:
        return self.phase in (GesturePhase.ACTIVE, GesturePhase.JUST_ENTERED)

    @property
    def entered(self) -> bool:
        return self.phase == GesturePhase.JUST_ENTERED

    @property
    def exited(self) -> bool:
        return self.phase == GesturePhase.JUST_EXITED

    @property
    def was_active(self) -> bool:
        """Whether the gesture was active on the previous tick."""
        return self.phase in (GesturePhase.ACTIVE, GesturePhase.JUST_EXITED)


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in mirrored, normalized display space."""
    name: str
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def centered(cls, name: str, cx: float, cy: float, size: float) -> "Region":
        h = size / 2.0
        return cls(name=name, x_min=cx - h, y_min=cy - h, x_max=cx + h, y_max=cy + h)

    def contains(self, x: float, y: float) -> bool:
        # strict interior, same as a bounding-rect hit test
        return self.x_min < x < self.x_max and self.y_min < y < self.y_max


# ============================================================
# Pipeline → Consumers (Logic → UI / Injector)
# ============================================================

class OutputKind(str, Enum):
    CURSOR_MOVE = "CURSOR_MOVE"
    CURSOR_HIDDEN = "CURSOR_HIDDEN"
    SLIDER_DELTA = "SLIDER_DELTA"
    CLICK = "CLICK"
    DRAG = "DRAG"
    SCROLL_TICK = "SCROLL_TICK"
    TAB_SWITCH = "TAB_SWITCH"
    TAB_SELECTED = "TAB_SELECTED"


class SliderAxis(str, Enum):
    VERTICAL = "VERTICAL"       # e.g. volume
    HORIZONTAL = "HORIZONTAL"   # e.g. brightness


class DragPhase(str, Enum):
    START = "START"
    MOVE = "MOVE"
    END = "END"


class ScrollDirection(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class CursorMove:
    t_ms: int
    x: float
    y: float
    kind: OutputKind = field(default=OutputKind.CURSOR_MOVE, init=False)


@dataclass(frozen=True)
class CursorHidden:
    t_ms: int
    kind: OutputKind = field(default=OutputKind.CURSOR_HIDDEN, init=False)


@dataclass(frozen=True)
class SliderDelta:
    t_ms: int
    axis: SliderAxis
    amount: float
    kind: OutputKind = field(default=OutputKind.SLIDER_DELTA, init=False)


@dataclass(frozen=True)
class ClickEvent:
    t_ms: int
    target: str
    x: float
    y: float
    kind: OutputKind = field(default=OutputKind.CLICK, init=False)


@dataclass(frozen=True)
class DragEvent:
    t_ms: int
    phase: DragPhase
    x: float
    y: float
    dropped_on: Optional[str] = None   # END only: drop zone containing the object
    kind: OutputKind = field(default=OutputKind.DRAG, init=False)


@dataclass(frozen=True)
class ScrollTick:
    t_ms: int
    direction: ScrollDirection
    amount: float
    kind: OutputKind = field(default=OutputKind.SCROLL_TICK, init=False)


@dataclass(frozen=True)
class TabSwitch:
    t_ms: int
    delta: int   # +1 | -1
    index: int   # highlighted tab after the switch
    clamped: bool = False   # already at the first/last tab; index unchanged
    kind: OutputKind = field(default=OutputKind.TAB_SWITCH, init=False)


@dataclass(frozen=True)
class TabSelected:
    t_ms: int
    index: int
    kind: OutputKind = field(default=OutputKind.TAB_SELECTED, init=False)


InteractionOutput = Union[
    CursorMove, CursorHidden, SliderDelta, ClickEvent,
    DragEvent, ScrollTick, TabSwitch, TabSelected,
]


class SourceStatus(str, Enum):
    STOPPED = "STOPPED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
    DETECTOR_UNAVAILABLE = "DETECTOR_UNAVAILABLE"

    @property
    def is_error(self) -> bool:
        return self in (SourceStatus.CAMERA_UNAVAILABLE, SourceStatus.DETECTOR_UNAVAILABLE)


def clamp(x: float, lo: float, hi: float) -> float:
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x
