"""
Frame source: camera + hand-landmark detector -> one DualHandFrame per tick.

The camera and detector are capabilities (see VideoInput / HandDetector).
The source never raises into the tick loop and never blocks: while the
camera or detector is unavailable it returns empty frames and reports why
through a sticky `status`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from auracontrols.core.types import (
    DualHandFrame, HandFrame, Handedness, LandmarkPoint, SourceStatus,
)

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class RawHand:
    """One detected hand as the detector reports it."""
    handedness: str                 # "Left" | "Right" (anything else is dropped)
    landmarks: Sequence[Vec3]


class VideoInput(Protocol):
    def open(self) -> bool: ...
    def read(self) -> Tuple[bool, Any, Optional[int]]: ...   # ok, image, video timestamp (ms)
    def release(self) -> None: ...


class HandDetector(Protocol):
    def load(self) -> None: ...
    def detect(self, image: Any, t_ms: int) -> List[RawHand]: ...
    def close(self) -> None: ...


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def to_hand_frame(raw: RawHand, t_ms: int) -> Optional[HandFrame]:
    try:
        handedness = Handedness(raw.handedness)
    except ValueError:
        logger.debug("ignoring hand with label %r", raw.handedness)
        return None
    try:
        points = tuple(
            LandmarkPoint(float(p[0]), float(p[1]), float(p[2]) if len(p) > 2 else 0.0)
            for p in raw.landmarks
        )
    except (IndexError, TypeError, ValueError) as e:
        logger.debug("dropping %s hand with unreadable landmarks (%s)", raw.handedness, e)
        return None
    return HandFrame(handedness=handedness, landmarks=points, t_ms=t_ms)


def to_dual_frame(hands: Sequence[RawHand], t_ms: int) -> DualHandFrame:
    left = right = None
    for raw in hands:
        hand = to_hand_frame(raw, t_ms)
        if hand is None:
            continue
        # duplicate labels: first wins
        if hand.handedness == Handedness.LEFT and left is None:
            left = hand
        elif hand.handedness == Handedness.RIGHT and right is None:
            right = hand
    return DualHandFrame(t_ms=t_ms, left=left, right=right)


@dataclass
class FrameSource:
    video: VideoInput
    detector: HandDetector
    clock: Callable[[], int] = monotonic_ms

    status: SourceStatus = SourceStatus.STOPPED
    image: Any = field(default=None, repr=False)      # last camera image, for overlays
    last_detect_ms: Optional[int] = None               # monotonic "last seen" clock
    _last_video_ms: Optional[int] = field(default=None, repr=False)
    _last_hands: Tuple[RawHand, ...] = field(default=(), repr=False)
    _detector_ready: bool = field(default=False, repr=False)

    def start(self) -> SourceStatus:
        if self.status == SourceStatus.RUNNING:
            return self.status
        self.status = SourceStatus.STARTING

        try:
            opened = self.video.open()
        except Exception:
            logger.exception("camera open failed")
            opened = False
        if not opened:
            logger.error("camera unavailable; source paused")
            self.status = SourceStatus.CAMERA_UNAVAILABLE
            return self.status

        if not self._detector_ready:
            try:
                self.detector.load()
                self._detector_ready = True
            except Exception:
                logger.exception("hand detector failed to load")
                self.video.release()
                self.status = SourceStatus.DETECTOR_UNAVAILABLE
                return self.status

        self.status = SourceStatus.RUNNING
        logger.info("frame source running")
        return self.status

    def stop(self) -> None:
        """Release the camera and detector. Safe to call repeatedly."""
        if self.status == SourceStatus.STOPPED:
            return
        try:
            self.video.release()
        finally:
            if self._detector_ready:
                self.detector.close()
            self._detector_ready = False
            self.status = SourceStatus.STOPPED
            self.image = None
            self.last_detect_ms = None
            self._last_video_ms = None
            self._last_hands = ()
            logger.info("frame source stopped")

    def is_stale(self, now_ms: int, max_age_ms: int) -> bool:
        return self.last_detect_ms is None or (now_ms - self.last_detect_ms) > max_age_ms

    def next_frame(self) -> DualHandFrame:
        now = self.clock()
        if self.status != SourceStatus.RUNNING:
            return DualHandFrame.empty(now)

        ok, image, video_ms = self.video.read()
        if not ok or image is None:
            # camera not ready yet
            return DualHandFrame.empty(now)
        self.image = image
        if video_ms is None:
            video_ms = now

        # stalled feed: repeat the last reading instead of re-running detection
        if self._last_video_ms is not None and video_ms <= self._last_video_ms:
            return to_dual_frame(self._last_hands, now)
        self._last_video_ms = video_ms

        try:
            hands = tuple(self.detector.detect(image, now))
        except Exception:
            logger.exception("hand detection failed at t=%d", now)
            self._last_hands = ()
            return DualHandFrame.empty(now)

        self.last_detect_ms = now
        self._last_hands = hands
        return to_dual_frame(hands, now)

    def __enter__(self) -> "FrameSource":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
