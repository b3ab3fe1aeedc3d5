from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from auracontrols.core.types import GestureKind, GesturePhase, GestureState, Handedness

Reading = Tuple[bool, Optional[float]]


def _phase(prev: bool, now: bool) -> GesturePhase:
    if now:
        return GesturePhase.ACTIVE if prev else GesturePhase.JUST_ENTERED
    return GesturePhase.JUST_EXITED if prev else GesturePhase.IDLE


class EdgeTracker:
    """
    Level -> edge conversion, per hand and per gesture kind.

    No time-based hysteresis: the only memory is last tick's boolean. It is
    updated every tick for both hands, so an absent hand always falls back
    to Idle (through exactly one JUST_EXITED) instead of staying Active.
    """

    def __init__(self) -> None:
        self._prev: Dict[Tuple[Handedness, GestureKind], bool] = {}

    def update(self, handedness: Handedness, readings: Mapping[GestureKind, Reading]) -> Dict[GestureKind, GestureState]:
        states: Dict[GestureKind, GestureState] = {}
        for kind in GestureKind:
            now, metric = readings.get(kind, (False, None))
            key = (handedness, kind)
            prev = self._prev.get(key, False)
            self._prev[key] = bool(now)
            states[kind] = GestureState(kind=kind, phase=_phase(prev, bool(now)), metric=metric)
        return states

    def update_absent(self, handedness: Handedness) -> Dict[GestureKind, GestureState]:
        return self.update(handedness, {})

    def reset(self) -> None:
        self._prev.clear()
