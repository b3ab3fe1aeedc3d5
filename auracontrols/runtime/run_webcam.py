from __future__ import annotations

import argparse
import dataclasses
import logging
import threading
from typing import List, Optional, Sequence

import cv2
import numpy as np

from auracontrols.core.config import (
    CameraConfig, DEFAULT_PRESET, PRESETS, PresetName, Preset, apply_profile, load_config,
)
from auracontrols.core.control import ControlState
from auracontrols.core.types import Handedness, InteractionOutput, OutputKind, SourceStatus
from auracontrols.interpreter.bus import EventBus
from auracontrols.interpreter.pipeline import GesturePipeline
from auracontrols.runtime.calibration import Calibrator, load_profile, save_profile
from auracontrols.runtime.kill_switch import KillSwitch
from auracontrols.sensor.frame_source import FrameSource, monotonic_ms
from auracontrols.sensor.webcam_mp import MediaPipeHandDetector, OpenCvCamera, draw_hand
from auracontrols.tools.frame_log import FrameLogWriter, default_log_path

logger = logging.getLogger(__name__)

WINDOW = "AuraControls (Webcam)"
STALE_MS = 500   # no fresh detection for this long: feed is stale


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Hand-gesture control from a webcam.")
    ap.add_argument("--config", help="YAML config file (overrides the preset)")
    ap.add_argument("--preset", choices=[p.value for p in PresetName], default=PresetName.DEFAULT.value)
    ap.add_argument("--camera", type=int, help="camera index")
    ap.add_argument("--model", help="path to hand_landmarker.task")
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--record", nargs="?", const="", help="write a JSONL frame log (default path if no value)")
    ap.add_argument("--no-inject", action="store_true", help="do not drive the OS mouse")
    ap.add_argument("--no-tray", action="store_true")
    return ap.parse_args(argv)


def build_preset(args: argparse.Namespace) -> Preset:
    preset = PRESETS.get(PresetName(args.preset), DEFAULT_PRESET)
    if args.config:
        preset = load_config(args.config, base=preset)
    preset = apply_profile(preset, load_profile())
    if args.camera is not None:
        preset = dataclasses.replace(preset, camera=dataclasses.replace(preset.camera, index=args.camera))
    if args.model:
        preset = dataclasses.replace(preset, detector=dataclasses.replace(preset.detector, model_path=args.model))
    return preset


class Overlay:
    """Remembers the latest outputs so the debug window can draw them."""

    def __init__(self) -> None:
        self.cursor = None
        self.last: List[str] = []

    def __call__(self, out: InteractionOutput) -> None:
        if out.kind == OutputKind.CURSOR_MOVE:
            self.cursor = (out.x, out.y)
        elif out.kind == OutputKind.CURSOR_HIDDEN:
            self.cursor = None
        if out.kind not in (OutputKind.CURSOR_MOVE, OutputKind.SCROLL_TICK):
            self.last = (self.last + [out.kind.value])[-4:]

    def draw(self, image, frame, status: str, calib: Optional[str]) -> None:
        for side in Handedness:
            hand = frame.hand(side)
            if hand is not None:
                draw_hand(image, hand.landmarks)
        h, w = image.shape[:2]
        if self.cursor is not None:
            # cursor is in mirrored display space
            cx, cy = int((1.0 - self.cursor[0]) * w), int(self.cursor[1] * h)
            cv2.circle(image, (cx, cy), 10, (255, 255, 0), 2)
        cv2.rectangle(image, (10, 10), (w - 10, 70), (0, 0, 0), -1)
        cv2.putText(image, f"{status}  {' '.join(self.last)}", (20, 48),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
        if calib:
            cv2.putText(image, calib, (20, h - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (200, 200, 200), 2)


def status_label(source: FrameSource, now_ms: int, stale_ms: int = STALE_MS) -> str:
    """Source status for the overlay; a running feed with no recent detection reads STALE."""
    if source.status == SourceStatus.RUNNING and source.is_stale(now_ms, stale_ms):
        return "STALE"
    return source.status.value


def paused_screen(camera: CameraConfig, enabled: bool, status: SourceStatus) -> np.ndarray:
    """Placeholder frame so the window exists (and sees keys) while input is off or unavailable."""
    img = np.zeros((camera.height, camera.width, 3), dtype=np.uint8)
    title = status.value if enabled else "OFF"
    color = (0, 180, 255) if status.is_error else (255, 255, 255)
    cv2.putText(img, f"AuraControls: {title}", (20, 60),
                cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2, cv2.LINE_AA)
    cv2.putText(img, "space = toggle   ESC = quit", (20, 100),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (200, 200, 200), 1, cv2.LINE_AA)
    return img


def _start_ui(state: ControlState, stop: threading.Event, tray: bool) -> None:
    try:
        from auracontrols.ui.hotkeys import run_hotkeys
        threading.Thread(target=run_hotkeys, args=(state, stop), daemon=True).start()
        print("  Hotkeys: Ctrl+Alt+Space = toggle, Ctrl+Alt+Esc = panic off")
    except ImportError as e:
        print(f"  Hotkeys: unavailable ({e})")

    if not tray:
        return
    try:
        from auracontrols.ui.tray import run_tray
        threading.Thread(target=run_tray, args=(state, stop), daemon=True).start()
        print("  Tray: Toggle / ON / OFF / Quit")
    except ImportError as e:
        print(f"  Tray: unavailable ({e})")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    preset = build_preset(args)

    state = ControlState(_enabled=True)
    stop = threading.Event()
    bus = EventBus()
    pipeline = GesturePipeline(preset, bus=bus)
    source = FrameSource(video=OpenCvCamera(preset.camera), detector=MediaPipeHandDetector(preset.detector))

    sink = None
    if not args.no_inject:
        try:
            from auracontrols.injector.mouse_sink import MouseSink
            from auracontrols.injector.uinput_mouse import UInputMouse
            sink = MouseSink(UInputMouse.create())
        except (ImportError, OSError) as e:
            print(f"[AuraControls] OS injection unavailable ({e}); running view-only")
            sink = None
    ks = KillSwitch(state=state, pipeline=pipeline, source=source, sink=sink)
    if sink is not None:
        sink.allow = ks.allow
        sink.attach(bus)

    overlay = Overlay()
    bus.subscribe(overlay)

    recorder = None
    if args.record is not None:
        recorder = FrameLogWriter(args.record or default_log_path())

    cal = Calibrator(defaults=preset.pinch)
    calibrating = False

    print(f"[AuraControls] Webcam runtime (preset={preset.name.value}). ESC to quit, c = calibrate, space = toggle.")
    _start_ui(state, stop, tray=not args.no_tray)

    try:
        while not stop.is_set():
            t_ms = monotonic_ms()
            ks.guard(t_ms)

            if not ks.allow() or source.status.is_error:
                # input off or unavailable: stay paused, keep the UI responsive
                cv2.imshow(WINDOW, paused_screen(preset.camera, ks.allow(), source.status))
                key = cv2.waitKey(50) & 0xFF
                if key == 27:
                    break
                if key == ord(" "):
                    state.toggle()
                continue

            frame = source.next_frame()
            outputs = pipeline.tick(frame)
            if recorder is not None:
                recorder.write(frame, outputs)

            if calibrating:
                cal.update(frame.hand(preset.hands.primary), frame.t_ms)
                if cal.done:
                    r = cal.finalize()
                    save_profile(r)
                    pipeline = _rebuild(pipeline, apply_profile(preset, vars(r)), ks)
                    print("[Calibration] saved profile:", r)
                    calibrating = False

            image = source.image
            if image is not None:
                overlay.draw(image, frame, status_label(source, frame.t_ms),
                             cal.instruction() if calibrating else None)
                cv2.imshow(WINDOW, image)
            key = cv2.waitKey(1) & 0xFF
            if key == 27:  # ESC
                break
            if key in (ord("c"), ord("C")):
                calibrating = True
                cal.start()
            elif key == ord(" "):
                state.toggle()
    except KeyboardInterrupt:
        print("\n[AuraControls] exiting")
    finally:
        stop.set()
        ks.shutdown(monotonic_ms())
        if recorder is not None:
            recorder.close()
        if sink is not None:
            sink.device.close()
        cv2.destroyAllWindows()
    return 0


def _rebuild(old: GesturePipeline, preset: Preset, ks: KillSwitch) -> GesturePipeline:
    """Swap in a pipeline with new thresholds; the old one is cancelled first."""
    old.cancel(monotonic_ms())
    new = GesturePipeline(preset, bus=old.bus)
    ks.pipeline = new
    return new


if __name__ == "__main__":
    raise SystemExit(main())
