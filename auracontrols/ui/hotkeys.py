from __future__ import annotations

import logging
import threading

from pynput import keyboard

from auracontrols.core.control import ControlState

logger = logging.getLogger(__name__)


def run_hotkeys(state: ControlState, stop_flag: threading.Event) -> None:
    """
    Global hotkeys (X11):
    - Ctrl+Alt+Space: Toggle ON/OFF
    - Ctrl+Alt+Esc:   Panic OFF
    Only ControlState is touched; the tick loop notices on its next guard().
    """

    pressed = set()

    CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
    ALT_KEYS = {keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r}

    def chord() -> bool:
        return any(k in pressed for k in CTRL_KEYS) and any(k in pressed for k in ALT_KEYS)

    def on_press(k):
        pressed.add(k)
        if not chord():
            return
        if k == keyboard.Key.space:
            enabled = state.toggle()
            print(f"[AuraControls] {'ON' if enabled else 'OFF'} (Ctrl+Alt+Space)")
        elif k == keyboard.Key.esc:
            state.set_enabled(False)
            print("[AuraControls] OFF (PANIC) (Ctrl+Alt+Esc)")

    def on_release(k):
        pressed.discard(k)
        if stop_flag.is_set():
            return False

    with keyboard.Listener(on_press=on_press, on_release=on_release) as listener:
        listener.join()
    logger.debug("hotkey listener exited")
