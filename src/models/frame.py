"""
Frame models for ingested NV12 images.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


NV12_ENCODING = "nv12"


def nv12_buffer_size(width: int, height: int) -> int:
    """Bytes in an NV12 image: full-resolution Y plane plus half-height UV plane."""
    return width * height * 3 // 2


@dataclass(frozen=True)
class FrameHeader:
    """
    Header carried from ingestion to the published result.

    Attributes:
        frame_id: Sequence index of the source frame, as a string.
        stamp: Capture timestamp of the source frame (seconds).
    """
    frame_id: str
    stamp: float

    def to_dict(self) -> dict:
        return {"frame_id": self.frame_id, "stamp": self.stamp}


@dataclass
class FrameDescriptor:
    """
    One image message from the ingestion channel.

    The buffer is borrowed for the duration of one ingestion call and must not
    be retained afterwards.

    Attributes:
        data: Raw pixel buffer (uint8). NV12 buffers hold width*height*3/2 bytes.
        width: Image width in pixels.
        height: Image height in pixels.
        encoding: Pixel encoding tag, e.g. "nv12".
        timestamp: Capture timestamp (seconds).
        index: Sequence index from the source.
    """
    data: np.ndarray
    width: int
    height: int
    encoding: str = NV12_ENCODING
    timestamp: float = 0.0
    index: int = 0

    @classmethod
    def from_nv12(
        cls,
        data: np.ndarray,
        width: int,
        height: int,
        timestamp: float = 0.0,
        index: int = 0,
    ) -> "FrameDescriptor":
        """Create an NV12 descriptor for a buffer of the given size."""
        return cls(
            data=data,
            width=width,
            height=height,
            encoding=NV12_ENCODING,
            timestamp=timestamp,
            index=index,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def is_nv12(self) -> bool:
        return self.encoding == NV12_ENCODING

    def header(self) -> FrameHeader:
        """Build the result header for this frame."""
        return FrameHeader(frame_id=str(self.index), stamp=self.timestamp)
