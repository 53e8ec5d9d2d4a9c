"""
Accelerator throughput statistics.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from models.inference import RuntimeStats


class FpsCounter:
    """
    Input/output frame rates over fixed windows.

    Rates are recomputed when a window closes; the stats returned for that
    completion carry fps_updated=True, all others carry the last rates.
    """

    def __init__(self, window_s: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self._window_s = window_s
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start = clock()
        self._inputs = 0
        self._outputs = 0
        self._input_fps = 0.0
        self._output_fps = 0.0

    def mark_input(self) -> None:
        with self._lock:
            self._inputs += 1

    def mark_output(self, infer_time_ms: int) -> RuntimeStats:
        with self._lock:
            self._outputs += 1
            now = self._clock()
            elapsed = now - self._window_start
            updated = elapsed >= self._window_s
            if updated:
                self._input_fps = self._inputs / elapsed
                self._output_fps = self._outputs / elapsed
                self._inputs = 0
                self._outputs = 0
                self._window_start = now
            return RuntimeStats(
                input_fps=self._input_fps,
                output_fps=self._output_fps,
                infer_time_ms=infer_time_ms,
                fps_updated=updated,
            )
