"""Magnetometer heading smoothing."""

import math
import time
from typing import Callable, Optional

from .config import CONFIG


def vector_heading(x: float, y: float) -> float:
    """Heading in degrees (0-360) of a 2-axis magnetometer vector"""
    angle = math.degrees(math.atan2(y, x))
    if angle < 0:
        angle += 360
    return angle


class HeadingFilter:
    """Rate-limits raw magnetometer samples into a stable heading.

    At most one heading is emitted per window. A sample arriving inside the
    window replaces whatever is pending, so the value eventually emitted is
    the latest one seen.
    """

    def __init__(self, window: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.window = CONFIG["heading_window_s"] if window is None else window
        if self.window < 0:
            raise ValueError(f"window must be >= 0, got {self.window}")
        self.clock = clock
        self.heading: Optional[float] = None
        self._last_emit: Optional[float] = None
        self._pending: Optional[float] = None

    def _window_open(self, now: float) -> bool:
        return self._last_emit is None or now - self._last_emit >= self.window

    def push(self, x: float, y: float, timestamp: Optional[float] = None) -> Optional[float]:
        """Feed one raw sample; returns the heading if one is emitted now"""
        try:
            if not (math.isfinite(x) and math.isfinite(y)):
                return None
        except TypeError:
            return None

        now = self.clock() if timestamp is None else timestamp
        self._pending = vector_heading(x, y)
        if not self._window_open(now):
            return None
        return self._emit(now)

    def flush(self, now: Optional[float] = None) -> Optional[float]:
        """Emit the pending sample if its window has elapsed"""
        if self._pending is None:
            return None
        now = self.clock() if now is None else now
        if not self._window_open(now):
            return None
        return self._emit(now)

    def _emit(self, now: float) -> float:
        self.heading = self._pending
        self._pending = None
        self._last_emit = now
        return self.heading

    def reset(self):
        self.heading = None
        self._last_emit = None
        self._pending = None
