"""
Image sources feeding the node's image topic.

A source hands out NV12 FrameDescriptors one at a time until it runs dry:

    with OpenCVSource(OpenCVSourceConfig(device_id="clip.mp4")) as source:
        for frame in source:
            bus.publish("/hb_image", frame)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from models.frame import FrameDescriptor


@dataclass
class ObservationConfig:
    """
    Settings shared by every source.

    Attributes:
        source_id: Name used in log lines.
        resolution: Requested capture size as (width, height); None keeps the device's.
        fps: Requested capture rate; None keeps the device's.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames handed out since the last open()."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """Acquire the device. Raises RuntimeError when it cannot be acquired."""

    @abstractmethod
    def read(self) -> Optional[FrameDescriptor]:
        """Next NV12 frame, or None once the source has nothing more to give."""

    @abstractmethod
    def close(self) -> None:
        """Release the device; calling it twice is harmless."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameDescriptor]:
        if not self._is_open:
            raise RuntimeError(f"Source {self.source_id} must be open before iterating")
        frame = self.read()
        while frame is not None:
            yield frame
            frame = self.read()
