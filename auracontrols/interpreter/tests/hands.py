"""Synthetic hands for tests: an upright hand with fingers curled or extended."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from auracontrols.core.types import (
    DualHandFrame, HandFrame, Handedness, LandmarkPoint,
    WRIST, THUMB_TIP, INDEX_TIP, INDEX_PIP, MIDDLE_TIP, MIDDLE_PIP,
    RING_TIP, RING_PIP, PINKY_TIP, PINKY_PIP, NUM_LANDMARKS,
)

FINGERS: Dict[str, Tuple[int, int, float]] = {
    # name: (tip, pip, x)
    # spaced so touching one fingertip never pinches a neighbour
    "index": (INDEX_TIP, INDEX_PIP, 0.40),
    "middle": (MIDDLE_TIP, MIDDLE_PIP, 0.48),
    "ring": (RING_TIP, RING_PIP, 0.58),
    "pinky": (PINKY_TIP, PINKY_PIP, 0.70),
}


def with_points(hand: HandFrame, points: Dict[int, Tuple[float, float]]) -> HandFrame:
    """Copy of `hand` with some landmarks moved to exact (x, y)."""
    lms = list(hand.landmarks)
    for i, (x, y) in points.items():
        lms[i] = LandmarkPoint(x, y, lms[i].z)
    return HandFrame(handedness=hand.handedness, landmarks=tuple(lms), t_ms=hand.t_ms)


def make_hand(
    t: int = 0,
    extended: Iterable[str] = (),
    pinch: Iterable[str] = (),
    gap: float = 0.0,
    cursor: Optional[Tuple[float, float]] = None,
    wrist_x: Optional[float] = None,
    side: Handedness = Handedness.RIGHT,
) -> HandFrame:
    """
    extended: fingers whose tip sits above its PIP joint (others are curled)
    pinch:    fingertips the thumb tip touches (thumb goes to their centroid)
    gap:      extra x distance between thumb and that centroid
    cursor:   shift the whole hand so the mirrored thumb/pinky midpoint lands here
    """
    extended = set(extended)
    pts = [[0.5, 0.5, 0.0] for _ in range(NUM_LANDMARKS)]
    pts[WRIST] = [0.5, 0.8, 0.0]
    for name, (tip, pip, x) in FINGERS.items():
        pts[pip] = [x, 0.5, 0.0]
        pts[tip] = [x, 0.4 if name in extended else 0.6, 0.0]

    pinch = list(pinch)
    if pinch:
        tips = [pts[FINGERS[n][0]] for n in pinch]
        cx = sum(p[0] for p in tips) / len(tips)
        cy = sum(p[1] for p in tips) / len(tips)
        pts[THUMB_TIP] = [cx + gap, cy, 0.0]
    else:
        pts[THUMB_TIP] = [0.3, 0.55, 0.0]

    if cursor is not None:
        mx = (pts[THUMB_TIP][0] + pts[PINKY_TIP][0]) / 2.0
        my = (pts[THUMB_TIP][1] + pts[PINKY_TIP][1]) / 2.0
        ox, oy = (1.0 - cursor[0]) - mx, cursor[1] - my
        for p in pts:
            p[0] += ox
            p[1] += oy

    if wrist_x is not None:
        ox = wrist_x - pts[WRIST][0]
        for p in pts:
            p[0] += ox

    return HandFrame(handedness=side, landmarks=tuple(LandmarkPoint(*p) for p in pts), t_ms=t)


def dual(t: int, right: Optional[HandFrame] = None, left: Optional[HandFrame] = None) -> DualHandFrame:
    return DualHandFrame(t_ms=t, left=left, right=right)
