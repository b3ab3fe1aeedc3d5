"""
Interaction mappers: gesture states + raw landmarks -> interaction outputs.

Each mapper reads one hand (through a TickContext) and keeps only the memory
it needs for continuous motion. `update` runs once per tick; `reset` returns
whatever outputs are needed to leave a clean state (cursor hidden, drag
ended) and forgets everything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from auracontrols.core.config import (
    CursorSmoothing, DragTuning, ScrollTuning, SliderTuning, SwipeTuning,
)
from auracontrols.core.one_euro import OneEuro
from auracontrols.core.types import (
    HandFrame, GestureKind, GestureState, Region,
    InteractionOutput, CursorMove, CursorHidden, SliderDelta, SliderAxis,
    ClickEvent, DragEvent, DragPhase, ScrollTick, ScrollDirection,
    TabSwitch, TabSelected,
    THUMB_TIP, INDEX_TIP, RING_TIP, PINKY_TIP, WRIST,
    clamp,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickContext:
    """What a mapper sees for one tick: its hand (None if absent) and its gesture states."""
    t_ms: int
    hand: Optional[HandFrame]
    states: Mapping[GestureKind, GestureState]

    def state(self, kind: GestureKind) -> GestureState:
        return self.states.get(kind) or GestureState(kind=kind)


def mirrored_midpoint(hand: HandFrame, a: int, b: int) -> Tuple[float, float]:
    """Midpoint of two landmarks with x flipped to match a mirrored display."""
    pa, pb = hand[a], hand[b]
    return 1.0 - (pa.x + pb.x) / 2.0, (pa.y + pb.y) / 2.0


class CursorMapper:
    """Thumb↔pinky pinch summons the cursor; releasing it hides the cursor."""

    def __init__(self, smoothing: CursorSmoothing = CursorSmoothing()) -> None:
        self.smoothing = smoothing
        self._fx = OneEuro(smoothing.min_cutoff_hz, smoothing.beta, smoothing.d_cutoff_hz)
        self._fy = OneEuro(smoothing.min_cutoff_hz, smoothing.beta, smoothing.d_cutoff_hz)
        self.visible = False
        self.position: Optional[Tuple[float, float]] = None

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        if ctx.hand is None or not ctx.state(GestureKind.PINCH_PINKY).active:
            return self.reset(ctx.t_ms)

        x, y = mirrored_midpoint(ctx.hand, THUMB_TIP, PINKY_TIP)
        if self.smoothing.enabled:
            x = self._fx.apply(x, ctx.t_ms)
            y = self._fy.apply(y, ctx.t_ms)
        self.visible = True
        self.position = (x, y)
        return [CursorMove(t_ms=ctx.t_ms, x=x, y=y)]

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        self._fx.reset()
        self._fy.reset()
        self.position = None
        if not self.visible:
            return []
        self.visible = False
        return [CursorHidden(t_ms=t_ms)]


class SliderMapper:
    """
    Thumb↔index pinch drags two sliders: vertical motion first, else horizontal.

    Only one axis is emitted per tick. The last position is dropped whenever
    the pinch is not held, so a re-pinch never produces a jump from stale data.
    """

    def __init__(self, tuning: SliderTuning = SliderTuning()) -> None:
        self.tuning = tuning
        self.vertical_value = tuning.initial_vertical
        self.horizontal_value = tuning.initial_horizontal
        self._last: Optional[Tuple[float, float]] = None

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        if ctx.hand is None or not ctx.state(GestureKind.PINCH_INDEX).active:
            self._last = None
            return []

        tip = ctx.hand[INDEX_TIP]
        current = (tip.x, tip.y)
        last, self._last = self._last, current
        if last is None:
            return []

        t = self.tuning
        dx = current[0] - last[0]
        dy = current[1] - last[1]
        if abs(dy) > abs(dx) and abs(dy) > t.sensitivity:
            amount = dy * t.vertical_gain
            self.vertical_value = clamp(self.vertical_value + amount, t.min_value, t.max_value)
            return [SliderDelta(t_ms=ctx.t_ms, axis=SliderAxis.VERTICAL, amount=amount)]
        if abs(dx) > t.sensitivity:
            amount = dx * t.horizontal_gain
            self.horizontal_value = clamp(self.horizontal_value + amount, t.min_value, t.max_value)
            return [SliderDelta(t_ms=ctx.t_ms, axis=SliderAxis.HORIZONTAL, amount=amount)]
        return []

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        self._last = None
        return []


class ClickMapper:
    """Thumb↔ring tap clicks whatever registered region sits under the reticle."""

    def __init__(self, targets: Tuple[Region, ...] = ()) -> None:
        self._targets: Dict[str, Region] = {r.name: r for r in targets}

    def register(self, region: Region) -> None:
        self._targets[region.name] = region

    def unregister(self, name: str) -> None:
        self._targets.pop(name, None)

    @property
    def targets(self) -> Tuple[Region, ...]:
        return tuple(self._targets.values())

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        # rising edge only: holding the pinch never repeats the click
        if ctx.hand is None or not ctx.state(GestureKind.PINCH_RING).entered:
            return []
        x, y = mirrored_midpoint(ctx.hand, THUMB_TIP, RING_TIP)
        hits = [r for r in self._targets.values() if r.contains(x, y)]
        if not hits:
            logger.debug("click at (%.3f, %.3f) hit nothing", x, y)
        return [ClickEvent(t_ms=ctx.t_ms, target=r.name, x=x, y=y) for r in hits]

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        return []


class DragMapper:
    """
    Two-stage drag: aim with thumb↔pinky, grab with thumb↔ring while aiming.

    A drag starts only on the grab rising edge with the aim cursor over the
    object. It ends on the grab falling edge or when the hand disappears;
    either way exactly one END is emitted.
    """

    def __init__(self, tuning: DragTuning = DragTuning()) -> None:
        self.tuning = tuning
        self.object_position: Tuple[float, float] = tuning.object_start
        self.dragging = False

    def place_object(self, x: float, y: float) -> None:
        self.object_position = (x, y)

    def over_object(self, x: float, y: float) -> bool:
        ox, oy = self.object_position
        half = self.tuning.object_size / 2.0
        return abs(x - ox) < half and abs(y - oy) < half

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        if ctx.hand is None:
            return self.reset(ctx.t_ms)

        aim = ctx.state(GestureKind.PINCH_PINKY)
        grip = ctx.state(GestureKind.PINCH_RING)
        grabbing = aim.active and grip.active
        was_grabbing = aim.was_active and grip.was_active

        if not grabbing:
            return self.reset(ctx.t_ms)

        x, y = mirrored_midpoint(ctx.hand, THUMB_TIP, PINKY_TIP)
        if self.dragging:
            self.object_position = (x, y)
            return [DragEvent(t_ms=ctx.t_ms, phase=DragPhase.MOVE, x=x, y=y)]
        if not was_grabbing and self.over_object(x, y):
            self.dragging = True
            return [DragEvent(t_ms=ctx.t_ms, phase=DragPhase.START, x=x, y=y)]
        return []

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        if not self.dragging:
            return []
        self.dragging = False
        x, y = self.object_position
        zone = next((z.name for z in self.tuning.drop_zones if z.contains(x, y)), None)
        if zone is not None:
            # a delivered object respawns at its start
            self.object_position = self.tuning.object_start
        return [DragEvent(t_ms=t_ms, phase=DragPhase.END, x=x, y=y, dropped_on=zone)]


class ScrollMapper:
    """Index pointing up scrolls up, middle pointing up scrolls down; level-triggered."""

    def __init__(self, tuning: ScrollTuning = ScrollTuning()) -> None:
        self.tuning = tuning

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        if ctx.hand is None:
            return []
        if ctx.state(GestureKind.POINTING_INDEX).active:
            return [ScrollTick(t_ms=ctx.t_ms, direction=ScrollDirection.UP, amount=self.tuning.step)]
        if ctx.state(GestureKind.POINTING_MIDDLE).active:
            return [ScrollTick(t_ms=ctx.t_ms, direction=ScrollDirection.DOWN, amount=self.tuning.step)]
        return []

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        return []


class TabSwitchMapper:
    """
    Open palm of the auxiliary hand enters tab switching; wrist swipes move
    the highlight, closing the palm commits the highlighted tab.
    """

    def __init__(self, tuning: SwipeTuning = SwipeTuning()) -> None:
        self.tuning = tuning
        self.index = 0
        self.switching = False
        self._last_x: Optional[float] = None
        self._last_swipe_ms: Optional[int] = None

    def _cooled_down(self, t_ms: int) -> bool:
        return self._last_swipe_ms is None or (t_ms - self._last_swipe_ms) > self.tuning.cooldown_ms

    def update(self, ctx: TickContext) -> List[InteractionOutput]:
        if ctx.hand is None or not ctx.state(GestureKind.PALM_OPEN).active:
            self._last_x = None
            if not self.switching:
                return []
            self.switching = False
            return [TabSelected(t_ms=ctx.t_ms, index=self.index)]

        self.switching = True
        x = ctx.hand[WRIST].x
        last, self._last_x = self._last_x, x
        if last is None or not self._cooled_down(ctx.t_ms):
            return []

        dx = x - last
        if abs(dx) <= self.tuning.sensitivity:
            return []

        # display is mirrored: physical right swipe moves the highlight left
        delta = -1 if dx > 0 else 1
        previous = self.index
        self.index = int(clamp(self.index + delta, 0, self.tuning.tab_count - 1))
        self._last_swipe_ms = ctx.t_ms
        return [TabSwitch(t_ms=ctx.t_ms, delta=delta, index=self.index, clamped=self.index == previous)]

    def reset(self, t_ms: int) -> List[InteractionOutput]:
        # cancelling is not a commit: no TabSelected
        self.switching = False
        self._last_x = None
        return []
