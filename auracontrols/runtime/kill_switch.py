from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from auracontrols.core.control import ControlState
from auracontrols.core.types import InteractionOutput, SourceStatus
from auracontrols.injector.mouse_sink import MouseSink
from auracontrols.interpreter.pipeline import GesturePipeline
from auracontrols.sensor.frame_source import FrameSource

logger = logging.getLogger(__name__)


@dataclass
class KillSwitch:
    """
    Central safety gate.
    If ControlState goes OFF, we:
      - cancel the pipeline (drag ended, cursor hidden)
      - release held buttons
      - release the camera
    Going back ON restarts the camera.
    """
    state: ControlState
    pipeline: GesturePipeline
    source: FrameSource
    sink: Optional[MouseSink] = None

    _last_enabled: Optional[bool] = None

    def guard(self, t_ms: int) -> List[InteractionOutput]:
        enabled = self.state.is_enabled()
        if enabled == self._last_enabled:
            return []
        self._last_enabled = enabled

        if not enabled:
            return self.shutdown(t_ms)

        status = self.source.start()
        self.state.set_status(status)
        if status.is_error:
            logger.error("input unavailable: %s", status.value)
        return []

    def shutdown(self, t_ms: int) -> List[InteractionOutput]:
        """Hard stop. Idempotent."""
        # cancel first so sinks still see the clean-up outputs
        outputs = self.pipeline.cancel(t_ms)
        if self.sink is not None:
            self.sink.release_all()
        self.source.stop()
        self.state.set_status(SourceStatus.STOPPED)
        return outputs

    def allow(self) -> bool:
        return self.state.is_enabled()
