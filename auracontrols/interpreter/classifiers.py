"""
Pure gesture classifiers: HandFrame -> bool (or distance).

All of them fail closed. A missing hand, a frame without exactly 21 points,
or a NaN coordinate reads as "gesture not present" instead of raising, so a
single bad detector frame cannot break the tick loop.

Known limitation: finger extension compares tip.y against the PIP joint,
which assumes an upright hand facing the camera. A rotated hand or a camera
mounted sideways gives undefined results.
"""

from __future__ import annotations

import math
from typing import Dict, Optional, Tuple

from auracontrols.core.config import PinchThresholds
from auracontrols.core.types import (
    HandFrame, GestureKind,
    THUMB_TIP, INDEX_TIP, INDEX_PIP, MIDDLE_TIP, MIDDLE_PIP,
    RING_TIP, RING_PIP, PINKY_TIP, PINKY_PIP,
)

Reading = Tuple[bool, Optional[float]]

# (tip, pip) per finger
INDEX = (INDEX_TIP, INDEX_PIP)
MIDDLE = (MIDDLE_TIP, MIDDLE_PIP)
RING = (RING_TIP, RING_PIP)
PINKY = (PINKY_TIP, PINKY_PIP)


def _usable(hand: Optional[HandFrame]) -> bool:
    return hand is not None and hand.is_well_formed()


def pinch_distance(hand: Optional[HandFrame], a: int, b: int) -> Optional[float]:
    """Distance between landmarks a and b in the x/y plane, normalized units."""
    if not _usable(hand):
        return None
    pa, pb = hand[a], hand[b]
    return math.hypot(pa.x - pb.x, pa.y - pb.y)


def pinch(hand: Optional[HandFrame], a: int, b: int, threshold: float) -> bool:
    # exactly-at-threshold is not a pinch
    d = pinch_distance(hand, a, b)
    return d is not None and d < threshold


def finger_extended(hand: Optional[HandFrame], tip: int, pip: int) -> bool:
    if not _usable(hand):
        return False
    return hand[tip].y < hand[pip].y


def finger_curled(hand: Optional[HandFrame], tip: int, pip: int) -> bool:
    # tip level with the joint is neither extended nor curled
    if not _usable(hand):
        return False
    return hand[tip].y > hand[pip].y


def palm_open(hand: Optional[HandFrame]) -> bool:
    return all(finger_extended(hand, *f) for f in (INDEX, MIDDLE, RING, PINKY))


def pointing_index(hand: Optional[HandFrame]) -> bool:
    return finger_extended(hand, *INDEX) and all(
        finger_curled(hand, *f) for f in (MIDDLE, RING, PINKY)
    )


def pointing_middle(hand: Optional[HandFrame]) -> bool:
    return finger_extended(hand, *MIDDLE) and all(
        finger_curled(hand, *f) for f in (INDEX, RING, PINKY)
    )


def _pinch_reading(hand: Optional[HandFrame], tip: int, threshold: float) -> Reading:
    d = pinch_distance(hand, THUMB_TIP, tip)
    return (d is not None and d < threshold), d


def classify(hand: Optional[HandFrame], thresholds: PinchThresholds) -> Dict[GestureKind, Reading]:
    """Run every classifier on one hand."""
    return {
        GestureKind.PINCH_INDEX: _pinch_reading(hand, INDEX_TIP, thresholds.index),
        GestureKind.PINCH_RING: _pinch_reading(hand, RING_TIP, thresholds.ring),
        GestureKind.PINCH_PINKY: _pinch_reading(hand, PINKY_TIP, thresholds.pinky),
        GestureKind.PALM_OPEN: (palm_open(hand), None),
        GestureKind.POINTING_INDEX: (pointing_index(hand), None),
        GestureKind.POINTING_MIDDLE: (pointing_middle(hand), None),
    }
