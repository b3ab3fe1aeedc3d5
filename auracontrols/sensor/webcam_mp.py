from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import cv2
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from auracontrols.core.config import CameraConfig, DetectorConfig
from auracontrols.sensor.frame_source import RawHand

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)

# skeleton for the debug overlay
HAND_CONNECTIONS = (
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
)


@dataclass
class OpenCvCamera:
    config: CameraConfig = CameraConfig()
    cap: Any = field(default=None, repr=False)

    def open(self) -> bool:
        if self.cap is not None and self.cap.isOpened():
            return True
        self.cap = cv2.VideoCapture(self.config.index)
        if not self.cap.isOpened():
            logger.error("failed to open camera %d", self.config.index)
            self.cap = None
            return False
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        logger.info("camera %d opened (%dx%d)", self.config.index, self.config.width, self.config.height)
        return True

    def read(self) -> Tuple[bool, Any, Optional[int]]:
        if self.cap is None:
            return False, None, None
        ok, frame = self.cap.read()
        if not ok:
            return False, None, None
        if self.config.mirror:
            frame = cv2.flip(frame, 1)
        # live webcams usually report 0 here; the source then uses its own clock
        pos = self.cap.get(cv2.CAP_PROP_POS_MSEC)
        video_ms = int(pos) if pos and pos > 0 else int(time.monotonic() * 1000)
        return True, frame, video_ms

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None


@dataclass
class MediaPipeHandDetector:
    """MediaPipe Tasks HandLandmarker in VIDEO mode (timestamps must increase)."""
    config: DetectorConfig = DetectorConfig()
    landmarker: Any = field(default=None, repr=False)
    _last_ts: int = field(default=-1, repr=False)

    def load(self) -> None:
        model = Path(self.config.model_path)
        if not model.exists():
            raise FileNotFoundError(f"hand landmarker model not found at {model} (download it from {MODEL_URL})")
        options = vision.HandLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(model)),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.config.num_hands,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        self.landmarker = vision.HandLandmarker.create_from_options(options)
        self._last_ts = -1
        logger.info("hand landmarker loaded from %s (%d hands)", model, self.config.num_hands)

    def detect(self, image: Any, t_ms: int) -> List[RawHand]:
        if self.landmarker is None:
            return []
        ts = max(int(t_ms), self._last_ts + 1)
        self._last_ts = ts

        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        result = self.landmarker.detect_for_video(mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb), ts)

        hands: List[RawHand] = []
        for landmarks, handedness in zip(result.hand_landmarks or [], result.handedness or []):
            if not handedness:
                continue
            hands.append(RawHand(
                handedness=handedness[0].category_name,
                landmarks=[(lm.x, lm.y, lm.z) for lm in landmarks],
            ))
        return hands

    def close(self) -> None:
        if self.landmarker is not None:
            self.landmarker.close()
            self.landmarker = None


def draw_hand(image: Any, landmarks, color=(0, 255, 120)) -> None:
    """Overlay one hand's skeleton on a BGR image."""
    h, w = image.shape[:2]
    pts = [(int(p.x * w), int(p.y * h)) for p in landmarks]
    if len(pts) < 21:
        return
    for a, b in HAND_CONNECTIONS:
        cv2.line(image, pts[a], pts[b], (220, 220, 220), 1)
    for p in pts:
        cv2.circle(image, p, 3, color, -1)
