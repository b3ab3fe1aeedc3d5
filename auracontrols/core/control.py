from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock

from auracontrols.core.types import SourceStatus


@dataclass
class ControlState:
    """
    Shared control plane between the tick loop, hotkeys and tray.
    enabled=False means the camera is released and the pipeline is cancelled.
    """
    _enabled: bool = True
    _status: SourceStatus = SourceStatus.STOPPED
    _lock: Lock = field(default_factory=Lock, repr=False)

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = value

    def toggle(self) -> bool:
        with self._lock:
            self._enabled = not self._enabled
            return self._enabled

    # status is written by the tick loop and read by the tray
    def status(self) -> SourceStatus:
        with self._lock:
            return self._status

    def set_status(self, status: SourceStatus) -> None:
        with self._lock:
            self._status = status
