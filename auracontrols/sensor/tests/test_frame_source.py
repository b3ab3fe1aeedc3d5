import pytest

from auracontrols.core.types import Handedness, SourceStatus
from auracontrols.sensor.frame_source import FrameSource, RawHand, to_dual_frame

POINTS = [(0.5, 0.5, 0.0)] * 21


class FakeVideo:
    def __init__(self, opens=True):
        self.opens = opens
        self.opened = False
        self.released = 0
        self.video_ms = 0
        self.ready = True

    def open(self):
        self.opened = self.opens
        return self.opens

    def read(self):
        if not self.opened or not self.ready:
            return False, None, None
        return True, "image", self.video_ms

    def release(self):
        self.opened = False
        self.released += 1


class FakeDetector:
    def __init__(self, hands=(), fail_load=False):
        self.hands = list(hands)
        self.fail_load = fail_load
        self.calls = []
        self.closed = 0
        self.raise_next = False

    def load(self):
        if self.fail_load:
            raise FileNotFoundError("no model")

    def detect(self, image, t_ms):
        self.calls.append(t_ms)
        if self.raise_next:
            self.raise_next = False
            raise RuntimeError("graph error")
        return self.hands

    def close(self):
        self.closed += 1


class Clock:
    def __init__(self):
        self.t = 1000

    def __call__(self):
        return self.t


def make_source(video=None, detector=None):
    return FrameSource(video=video or FakeVideo(), detector=detector or FakeDetector(), clock=Clock())


def test_not_started_returns_empty_frames():
    src = make_source()
    frame = src.next_frame()
    assert frame.is_empty and frame.t_ms == 1000
    assert src.detector.calls == []


def test_camera_unavailable_is_sticky_and_never_raises():
    src = make_source(video=FakeVideo(opens=False))
    assert src.start() == SourceStatus.CAMERA_UNAVAILABLE
    assert src.next_frame().is_empty
    assert src.status == SourceStatus.CAMERA_UNAVAILABLE


def test_detector_unavailable_releases_camera():
    video = FakeVideo()
    src = make_source(video=video, detector=FakeDetector(fail_load=True))
    assert src.start() == SourceStatus.DETECTOR_UNAVAILABLE
    assert video.released == 1
    assert src.next_frame().is_empty


def test_camera_not_ready_yields_empty_frame():
    video = FakeVideo()
    src = make_source(video=video)
    src.start()
    video.ready = False
    assert src.next_frame().is_empty


def test_zero_one_two_hands():
    src = make_source(detector=FakeDetector())
    src.start()
    assert src.next_frame().is_empty

    src.video.video_ms += 33
    src.detector.hands = [RawHand("Right", POINTS)]
    f = src.next_frame()
    assert f.right is not None and f.left is None
    assert f.right.is_well_formed()

    src.video.video_ms += 33
    src.detector.hands = [RawHand("Left", POINTS), RawHand("Right", POINTS)]
    f = src.next_frame()
    assert f.left.handedness == Handedness.LEFT and f.right.handedness == Handedness.RIGHT


def test_stalled_video_skips_detection():
    src = make_source(detector=FakeDetector([RawHand("Right", POINTS)]))
    src.start()
    src.next_frame()
    src.clock.t += 16
    frame = src.next_frame()   # same video timestamp
    assert len(src.detector.calls) == 1
    assert frame.right is not None and frame.t_ms == 1016

    src.video.video_ms += 33
    src.clock.t += 16
    src.next_frame()
    assert src.detector.calls == [1000, 1032]
    assert src.last_detect_ms == 1032
    assert not src.is_stale(1100, 100)
    assert src.is_stale(1200, 100)


def test_detector_error_gives_empty_frame_then_recovers():
    det = FakeDetector([RawHand("Right", POINTS)])
    src = make_source(detector=det)
    src.start()
    det.raise_next = True
    assert src.next_frame().is_empty
    src.video.video_ms += 33
    assert src.next_frame().right is not None


def test_stop_is_idempotent_and_releases_everything():
    video, det = FakeVideo(), FakeDetector([RawHand("Right", POINTS)])
    with make_source(video=video, detector=det) as src:
        assert src.status == SourceStatus.RUNNING
        src.next_frame()
    assert src.status == SourceStatus.STOPPED
    src.stop()
    assert video.released == 1 and det.closed == 1
    assert src.next_frame().is_empty
    assert src.last_detect_ms is None


@pytest.mark.parametrize("bad_point", [(0.5,), (None, 0.1, 0.0), ("x", 0.1, 0.0), None])
def test_unreadable_landmarks_drop_only_that_hand(bad_point):
    broken = list(POINTS)
    broken[3] = bad_point
    det = FakeDetector([RawHand("Right", broken), RawHand("Left", POINTS)])
    src = make_source(detector=det)
    src.start()
    frame = src.next_frame()
    assert frame.right is None
    assert frame.left is not None and frame.left.is_well_formed()

    # stalled video repeats the same reading without raising
    assert src.next_frame().right is None


def test_unknown_and_duplicate_labels():
    frame = to_dual_frame([
        RawHand("Right", POINTS),
        RawHand("Right", [(0.1, 0.1, 0.0)] * 21),
        RawHand("Unknown", POINTS),
    ], t_ms=5)
    assert frame.left is None
    assert frame.right.landmarks[0].x == pytest.approx(0.5)
