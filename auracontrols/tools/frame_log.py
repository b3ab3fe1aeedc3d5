"""
AuraControls Frame Log
Writes JSONL logs, one line = one tick's DualHandFrame + emitted outputs.
Logs can be replayed through a fresh pipeline without a camera:

    python -m auracontrols.tools.frame_log ~/.cache/auracontrols/frame_logs/frames_<ts>.jsonl
"""

from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from auracontrols.core.config import DEFAULT_PRESET, Preset, load_config
from auracontrols.core.types import (
    DualHandFrame, HandFrame, Handedness, LandmarkPoint, InteractionOutput,
)
from auracontrols.interpreter.pipeline import GesturePipeline

logger = logging.getLogger(__name__)


def default_log_path() -> Path:
    outdir = Path.home() / ".cache" / "auracontrols" / "frame_logs"
    outdir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    return outdir / f"frames_{ts}.jsonl"


def _hand_to_json(hand: Optional[HandFrame]) -> Optional[List[List[float]]]:
    if hand is None:
        return None
    return [[p.x, p.y, p.z] for p in hand.landmarks]


def _output_to_json(out: InteractionOutput) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in asdict(out).items()}


def frame_to_json(frame: DualHandFrame, outputs: Sequence[InteractionOutput] = ()) -> Dict[str, Any]:
    return {
        "t_ms": frame.t_ms,
        "left": _hand_to_json(frame.left),
        "right": _hand_to_json(frame.right),
        "outputs": [_output_to_json(o) for o in outputs],
    }


def frame_from_json(rec: Dict[str, Any]) -> DualHandFrame:
    t_ms = int(rec["t_ms"])

    def hand(side: Handedness) -> Optional[HandFrame]:
        pts = rec.get(side.value.lower())
        if pts is None:
            return None
        return HandFrame(
            handedness=side,
            landmarks=tuple(LandmarkPoint(*map(float, p)) for p in pts),
            t_ms=t_ms,
        )

    return DualHandFrame(t_ms=t_ms, left=hand(Handedness.LEFT), right=hand(Handedness.RIGHT))


class FrameLogWriter:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._f = open(self.path, "a", buffering=1)
        logger.info("frame log: writing %s", self.path)

    def write(self, frame: DualHandFrame, outputs: Sequence[InteractionOutput] = ()) -> None:
        self._f.write(json.dumps(frame_to_json(frame, outputs)) + "\n")

    def close(self) -> None:
        if not self._f.closed:
            self._f.close()

    def __enter__(self) -> "FrameLogWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def read_frames(path: Union[str, Path]) -> Iterator[DualHandFrame]:
    with open(Path(path).expanduser(), "r") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield frame_from_json(json.loads(line))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("%s:%d: skipping bad record (%s)", path, lineno, e)


def replay(path: Union[str, Path], preset: Preset = DEFAULT_PRESET) -> List[InteractionOutput]:
    pipeline = GesturePipeline(preset)
    outputs: List[InteractionOutput] = []
    for frame in read_frames(path):
        outputs.extend(pipeline.tick(frame))
    return outputs


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Replay a recorded frame log through the gesture pipeline.")
    ap.add_argument("log", help="JSONL frame log")
    ap.add_argument("--config", help="YAML config to replay with")
    args = ap.parse_args(argv)

    preset = load_config(args.config) if args.config else DEFAULT_PRESET
    for out in replay(args.log, preset):
        print(json.dumps(_output_to_json(out)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
