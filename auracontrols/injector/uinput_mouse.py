from __future__ import annotations

from dataclasses import dataclass
from evdev import UInput, ecodes as e

# key names accepted by tap(); kept symbolic so the sink never imports evdev
KEYS = {
    "CTRL": e.KEY_LEFTCTRL,
    "SHIFT": e.KEY_LEFTSHIFT,
    "TAB": e.KEY_TAB,
    "VOLUMEUP": e.KEY_VOLUMEUP,
    "VOLUMEDOWN": e.KEY_VOLUMEDOWN,
    "BRIGHTNESSUP": e.KEY_BRIGHTNESSUP,
    "BRIGHTNESSDOWN": e.KEY_BRIGHTNESSDOWN,
}


@dataclass
class UInputMouse:
    """
    Virtual mouse + the handful of keys the gestures need, via Linux uinput.
    Keep it boring. The pipeline is the brain.
    """
    ui: UInput

    @classmethod
    def create(cls) -> "UInputMouse":
        caps = {
            e.EV_KEY: [e.BTN_LEFT, e.BTN_RIGHT, *KEYS.values()],
            e.EV_REL: [e.REL_X, e.REL_Y, e.REL_WHEEL, e.REL_HWHEEL],
        }
        ui = UInput(caps, name="AuraControls Virtual Input")
        return cls(ui=ui)

    def move(self, dx: int, dy: int) -> None:
        if dx:
            self.ui.write(e.EV_REL, e.REL_X, int(dx))
        if dy:
            self.ui.write(e.EV_REL, e.REL_Y, int(dy))
        self.ui.syn()

    def scroll(self, dx: int, dy: int) -> None:
        # positive REL_WHEEL scrolls up
        if dx:
            self.ui.write(e.EV_REL, e.REL_HWHEEL, int(dx))
        if dy:
            self.ui.write(e.EV_REL, e.REL_WHEEL, int(dy))
        self.ui.syn()

    def button_left(self, down: bool) -> None:
        self.ui.write(e.EV_KEY, e.BTN_LEFT, 1 if down else 0)
        self.ui.syn()

    def tap(self, *names: str) -> None:
        """Press the keys in order, release in reverse (a chord)."""
        codes = [KEYS[n] for n in names]
        for c in codes:
            self.ui.write(e.EV_KEY, c, 1)
        self.ui.syn()
        for c in reversed(codes):
            self.ui.write(e.EV_KEY, c, 0)
        self.ui.syn()

    def close(self) -> None:
        self.ui.close()
