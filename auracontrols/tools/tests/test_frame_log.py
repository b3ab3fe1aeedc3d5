import json
import logging

from auracontrols.core.config import DEFAULT_PRESET
from auracontrols.core.types import DragPhase, Handedness, OutputKind
from auracontrols.interpreter.pipeline import GesturePipeline
from auracontrols.interpreter.tests.hands import make_hand, dual
from auracontrols.tools.frame_log import FrameLogWriter, frame_from_json, frame_to_json, main, read_frames, replay


def session():
    yield dual(0)
    yield dual(16, right=make_hand(pinch=["ring", "pinky"], cursor=(0.2, 0.5)))
    yield dual(32, right=make_hand(pinch=["ring", "pinky"], cursor=(0.7, 0.45)))
    yield dual(48, right=make_hand(pinch=["pinky"], cursor=(0.7, 0.45)))
    yield dual(64, left=make_hand(extended=["index", "middle", "ring", "pinky"], side=Handedness.LEFT))


def record(path):
    pipeline = GesturePipeline(DEFAULT_PRESET)
    live = []
    with FrameLogWriter(path) as log:
        for frame in session():
            out = pipeline.tick(frame)
            live.extend(out)
            log.write(frame, out)
    return live


def test_replay_reproduces_live_outputs(tmp_path):
    path = tmp_path / "frames.jsonl"
    live = record(path)
    assert any(o.kind == OutputKind.DRAG and o.phase == DragPhase.END for o in live)
    assert replay(path) == live


def test_frame_json_keeps_landmarks():
    frame = dual(5, right=make_hand(extended=["index"]))
    back = frame_from_json(json.loads(json.dumps(frame_to_json(frame))))
    assert back == frame


def test_bad_lines_are_skipped(tmp_path, caplog):
    path = tmp_path / "frames.jsonl"
    record(path)
    with open(path, "a") as f:
        f.write("{broken\n\n")
        f.write(json.dumps({"left": None}) + "\n")
    with caplog.at_level(logging.WARNING):
        frames = list(read_frames(path))
    assert len(frames) == 5
    assert caplog.text.count("skipping bad record") == 2


def test_cli_prints_outputs(tmp_path, capsys):
    path = tmp_path / "frames.jsonl"
    live = record(path)
    assert main([str(path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == len(live)
    assert json.loads(lines[0])["kind"] == live[0].kind.value
