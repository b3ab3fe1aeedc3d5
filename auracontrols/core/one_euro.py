from __future__ import annotations
import math


def _alpha(cutoff_hz: float, dt: float) -> float:
    # smoothing factor from cutoff frequency
    tau = 1.0 / (2.0 * math.pi * cutoff_hz)
    return 1.0 / (1.0 + tau / max(dt, 1e-6))


class LowPass:
    def __init__(self) -> None:
        self.x = 0.0
        self.initialized = False

    def reset(self) -> None:
        self.initialized = False

    def apply(self, x: float, a: float) -> float:
        if not self.initialized:
            self.x = x
            self.initialized = True
            return x
        self.x = a * x + (1.0 - a) * self.x
        return self.x


class OneEuro:
    """
    One Euro Filter (Casiez et al. 2012).
    Smooths jitter when slow, low latency when fast.

    Timestamps are tick milliseconds so replays filter deterministically.
    """

    def __init__(self, min_cutoff: float = 2.0, beta: float = 0.06, d_cutoff: float = 1.0):
        self.min_cutoff = float(min_cutoff)
        self.beta = float(beta)
        self.d_cutoff = float(d_cutoff)

        self._x = LowPass()
        self._dx = LowPass()
        self._last_t_ms: int | None = None

    def reset(self) -> None:
        self._x.reset()
        self._dx.reset()
        self._last_t_ms = None

    def apply(self, x: float, t_ms: int) -> float:
        if self._last_t_ms is None:
            self._last_t_ms = t_ms
            self._dx.apply(0.0, 1.0)
            return self._x.apply(x, 1.0)

        dt = max(1e-4, (t_ms - self._last_t_ms) / 1000.0)
        self._last_t_ms = t_ms

        # derivative of signal
        dx = (x - self._x.x) / dt
        edx = self._dx.apply(dx, _alpha(self.d_cutoff, dt))

        cutoff = self.min_cutoff + self.beta * abs(edx)
        return self._x.apply(x, _alpha(cutoff, dt))
