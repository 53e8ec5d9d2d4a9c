"""
Result sinks for published OutputFrames.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Optional, TextIO

from models.detection import OutputFrame


class JsonLinesSink:
    """Append each OutputFrame as one JSON object per line."""

    def __init__(self, path: str):
        self.path = path
        out_dir = os.path.dirname(path)
        if out_dir and not os.path.exists(out_dir):
            os.makedirs(out_dir)
        self._lock = threading.Lock()
        self._fh: Optional[TextIO] = open(path, "a")
        self.written = 0

    def __call__(self, frame: OutputFrame) -> None:
        line = json.dumps(frame.to_dict())
        with self._lock:
            if self._fh is None:
                return
            self._fh.write(line + "\n")
            self._fh.flush()
            self.written += 1

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
        logging.info(f"Results written: {self.written} frames -> {self.path}")


def log_output_frame(frame: OutputFrame) -> None:
    """Log a one-line summary of an OutputFrame."""
    labels = ", ".join(t.type for t in frame.targets) or "none"
    logging.info(
        f"frame {frame.header.frame_id}: {len(frame.targets)} targets ({labels}), fps={frame.fps}"
    )
