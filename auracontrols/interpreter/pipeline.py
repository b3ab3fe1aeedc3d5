from __future__ import annotations

import logging
from typing import Dict, List, Optional

from auracontrols.core.config import Preset, DEFAULT_PRESET
from auracontrols.core.types import (
    DualHandFrame, HandFrame, Handedness,
    GestureKind, GestureState, InteractionOutput,
)
from auracontrols.interpreter.bus import EventBus
from auracontrols.interpreter.classifiers import classify
from auracontrols.interpreter.edges import EdgeTracker
from auracontrols.interpreter.mappers import (
    TickContext,
    CursorMapper, SliderMapper, ClickMapper, DragMapper, ScrollMapper, TabSwitchMapper,
)

logger = logging.getLogger(__name__)


class GesturePipeline:
    """
    Deterministic gesture pipeline.
    Converts DualHandFrame -> list[InteractionOutput], one call per tick.

    Classifiers -> edge tracker -> mappers -> bus. All mutable state lives in
    this object and is touched only from tick() and cancel(), which must be
    called from a single thread.
    """

    def __init__(self, preset: Preset = DEFAULT_PRESET, bus: Optional[EventBus] = None) -> None:
        self.preset = preset
        self.bus = bus if bus is not None else EventBus()

        self.edges = EdgeTracker()
        self.cursor = CursorMapper(preset.smoothing)
        self.slider = SliderMapper(preset.slider)
        self.click = ClickMapper(preset.click_targets)
        self.drag = DragMapper(preset.drag)
        self.scroll = ScrollMapper(preset.scroll)
        self.tabs = TabSwitchMapper(preset.swipe)

        # order matters only for output ordering within a tick
        self._primary = (self.cursor, self.slider, self.click, self.drag, self.scroll)
        self._auxiliary = (self.tabs,)

        self._states: Dict[Handedness, Dict[GestureKind, GestureState]] = {}
        self._last_t_ms: Optional[int] = None

    def states(self, handedness: Handedness) -> Dict[GestureKind, GestureState]:
        """Latest gesture states for one hand (all Idle before the first tick)."""
        return dict(self._states.get(handedness) or {k: GestureState(kind=k) for k in GestureKind})

    def _hand(self, frame: DualHandFrame, handedness: Handedness) -> Optional[HandFrame]:
        hand = frame.hand(handedness)
        if hand is not None and not hand.is_well_formed():
            logger.debug("dropping malformed %s hand at t=%d (%d points)",
                         handedness.value, frame.t_ms, len(hand.landmarks))
            return None
        return hand

    def tick(self, frame: DualHandFrame) -> List[InteractionOutput]:
        t_ms = frame.t_ms
        if self._last_t_ms is not None and t_ms < self._last_t_ms:
            logger.warning("frame time went backwards (%d < %d)", t_ms, self._last_t_ms)
        self._last_t_ms = t_ms

        contexts: Dict[Handedness, TickContext] = {}
        for handedness in Handedness:
            hand = self._hand(frame, handedness)
            if hand is None:
                states = self.edges.update_absent(handedness)
            else:
                states = self.edges.update(handedness, classify(hand, self.preset.pinch))
            self._states[handedness] = states
            contexts[handedness] = TickContext(t_ms=t_ms, hand=hand, states=states)

        outputs: List[InteractionOutput] = []
        primary = contexts[self.preset.hands.primary]
        for mapper in self._primary:
            outputs.extend(mapper.update(primary))
        auxiliary = contexts[self.preset.hands.auxiliary]
        for mapper in self._auxiliary:
            outputs.extend(mapper.update(auxiliary))

        self.bus.publish_all(outputs)
        return outputs

    def cancel(self, t_ms: int) -> List[InteractionOutput]:
        """
        Stop everything in progress (drag, cursor) and forget all edges.
        Idempotent: a second call emits nothing.
        """
        outputs: List[InteractionOutput] = []
        for mapper in self._primary + self._auxiliary:
            outputs.extend(mapper.reset(t_ms))
        self.edges.reset()
        self._states.clear()
        if outputs:
            logger.info("pipeline cancelled at t=%d (%d clean-up outputs)", t_ms, len(outputs))
        self.bus.publish_all(outputs)
        return outputs
