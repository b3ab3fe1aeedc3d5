from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Protocol, Tuple

from auracontrols.core.types import (
    InteractionOutput, OutputKind, DragPhase, ScrollDirection, SliderAxis,
)
from auracontrols.interpreter.bus import EventBus

logger = logging.getLogger(__name__)


class InputDevice(Protocol):
    def move(self, dx: int, dy: int) -> None: ...
    def scroll(self, dx: int, dy: int) -> None: ...
    def button_left(self, down: bool) -> None: ...
    def tap(self, *names: str) -> None: ...


_SLIDER_KEYS = {
    SliderAxis.VERTICAL: ("VOLUMEUP", "VOLUMEDOWN"),
    SliderAxis.HORIZONTAL: ("BRIGHTNESSUP", "BRIGHTNESSDOWN"),
}


class MouseSink:
    """
    Drives the OS from interaction outputs.

    The pipeline speaks absolute normalized positions; a uinput mouse only
    moves relatively, so the sink tracks the last cursor target and sends
    pixel deltas. Scroll and slider amounts are accumulated and sent in
    whole wheel notches / key presses.
    """

    def __init__(
        self,
        device: InputDevice,
        screen_size: Tuple[int, int] = (1920, 1080),
        px_per_notch: float = 40.0,
        slider_step: float = 5.0,
        allow: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.device = device
        self.screen_w, self.screen_h = screen_size
        self.px_per_notch = px_per_notch
        self.slider_step = slider_step
        self.allow = allow or (lambda: True)

        self._cursor_px: Optional[Tuple[int, int]] = None
        self._left_down = False
        self._scroll_acc = 0.0
        self._slider_acc: Dict[SliderAxis, float] = {a: 0.0 for a in SliderAxis}

    def attach(self, bus: EventBus) -> Callable[[], None]:
        return bus.subscribe(self.apply)

    def _to_px(self, x: float, y: float) -> Tuple[int, int]:
        return int(round(x * self.screen_w)), int(round(y * self.screen_h))

    def _move_to(self, x: float, y: float) -> None:
        target = self._to_px(x, y)
        if self._cursor_px is not None:
            dx = target[0] - self._cursor_px[0]
            dy = target[1] - self._cursor_px[1]
            if dx or dy:
                self.device.move(dx, dy)
        self._cursor_px = target

    def apply(self, ev: InteractionOutput) -> None:
        if not self.allow():
            return

        if ev.kind == OutputKind.CURSOR_MOVE:
            self._move_to(ev.x, ev.y)
        elif ev.kind == OutputKind.CURSOR_HIDDEN:
            # next summon re-anchors instead of jumping
            self._cursor_px = None
        elif ev.kind == OutputKind.CLICK:
            self.device.button_left(True)
            self.device.button_left(False)
        elif ev.kind == OutputKind.DRAG:
            if ev.phase == DragPhase.START and not self._left_down:
                self._left_down = True
                self.device.button_left(True)
            elif ev.phase == DragPhase.END and self._left_down:
                self._left_down = False
                self.device.button_left(False)
        elif ev.kind == OutputKind.SCROLL_TICK:
            sign = 1 if ev.direction == ScrollDirection.UP else -1
            self._scroll_acc += sign * ev.amount
            notches = int(self._scroll_acc / self.px_per_notch)
            if notches:
                self._scroll_acc -= notches * self.px_per_notch
                self.device.scroll(0, notches)
        elif ev.kind == OutputKind.SLIDER_DELTA:
            acc = self._slider_acc[ev.axis] + ev.amount
            up, down = _SLIDER_KEYS[ev.axis]
            while abs(acc) >= self.slider_step:
                self.device.tap(up if acc > 0 else down)
                acc -= self.slider_step if acc > 0 else -self.slider_step
            self._slider_acc[ev.axis] = acc
        elif ev.kind == OutputKind.TAB_SWITCH:
            if ev.clamped:
                # highlight did not move; keep the OS tab in step
                return
            if ev.delta > 0:
                self.device.tap("CTRL", "TAB")
            else:
                self.device.tap("CTRL", "SHIFT", "TAB")
        elif ev.kind == OutputKind.TAB_SELECTED:
            logger.info("tab %d selected", ev.index)

    def release_all(self) -> None:
        # make absolutely sure nothing is stuck down
        if self._left_down:
            self.device.button_left(False)
        self._left_down = False
        self._cursor_px = None
        self._scroll_acc = 0.0
        self._slider_acc = {a: 0.0 for a in SliderAxis}
