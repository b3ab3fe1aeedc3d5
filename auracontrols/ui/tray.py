from __future__ import annotations

import logging
import threading

import pystray
from PIL import Image, ImageDraw

from auracontrols.core.control import ControlState
from auracontrols.core.types import SourceStatus

logger = logging.getLogger(__name__)


def _make_icon(enabled: bool, status: SourceStatus) -> Image.Image:
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)

    # ring turns amber when the camera or detector is unavailable
    ring = (255, 180, 0, 230) if status.is_error else (255, 255, 255, 220)
    d.ellipse((16, 16, 48, 48), outline=ring, width=3)

    dot = (255, 255, 255, 255) if enabled else (255, 255, 255, 80)
    d.ellipse((28, 28, 36, 36), fill=dot)
    return img


def run_tray(state: ControlState, stop_flag: threading.Event) -> None:
    icon = pystray.Icon("AuraControls")

    def update_icon():
        enabled, status = state.is_enabled(), state.status()
        icon.icon = _make_icon(enabled, status)
        icon.title = f"AuraControls ({'ON' if enabled else 'OFF'}, {status.value.lower()})"

    def on_toggle(_icon, _item):
        state.toggle()
        update_icon()

    def on_off(_icon, _item):
        state.set_enabled(False)
        update_icon()

    def on_on(_icon, _item):
        state.set_enabled(True)
        update_icon()

    def on_quit(_icon, _item):
        stop_flag.set()
        icon.stop()

    icon.menu = pystray.Menu(
        pystray.MenuItem("Toggle (ON/OFF)", on_toggle),
        pystray.MenuItem("Turn ON", on_on),
        pystray.MenuItem("Turn OFF", on_off),
        pystray.Menu.SEPARATOR,
        pystray.MenuItem("Quit", on_quit),
    )
    update_icon()

    # keeps the icon fresh when hotkeys or the tick loop change state
    def watcher():
        last = None
        while not stop_flag.wait(0.2):
            cur = (state.is_enabled(), state.status())
            if cur != last:
                update_icon()
                last = cur
        icon.stop()

    threading.Thread(target=watcher, daemon=True).start()
    try:
        icon.run()
    except Exception:
        # tray backends can be fragile; hotkeys and the camera window keep working
        logger.exception("tray backend crashed")
