"""
Detection models: decoded network-space records and published results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from .frame import FrameHeader


@dataclass(frozen=True)
class DetectionRecord:
    """
    A single decoded detection in network-input pixel coordinates.

    Attributes:
        xmin: Left edge x coordinate.
        ymin: Top edge y coordinate.
        xmax: Right edge x coordinate.
        ymax: Bottom edge y coordinate.
        score: Detection confidence (0-1).
        class_id: Class index from the detector.
        class_name: Human-readable class name.
    """
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    score: float = 1.0
    class_id: Optional[int] = None
    class_name: str = ""

    def clamped(self, width: int, height: int) -> "DetectionRecord":
        """Clamp the box to a width x height image (inclusive last pixel)."""
        return replace(
            self,
            xmin=max(self.xmin, 0),
            ymin=max(self.ymin, 0),
            xmax=min(self.xmax, width - 1),
            ymax=min(self.ymax, height - 1),
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (xmin, ymin, xmax, ymax) tuple."""
        return (self.xmin, self.ymin, self.xmax, self.ymax)


@dataclass
class Roi:
    """
    A region of interest in integer pixel coordinates.

    Rect fields behave like unsigned integer message fields: assignment
    truncates toward zero.
    """
    x_offset: int
    y_offset: int
    width: int
    height: int
    confidence: float = 1.0

    @classmethod
    def from_record(cls, rec: DetectionRecord) -> "Roi":
        """
        Build from a (clamped) record: offset is the top-left, size is max - min.

        A box whose min edge lies past the clamped max edge gets size 0.
        """
        return cls(
            x_offset=int(rec.xmin),
            y_offset=int(rec.ymin),
            width=max(int(rec.xmax - rec.xmin), 0),
            height=max(int(rec.ymax - rec.ymin), 0),
            confidence=rec.score,
        )

    def scaled(self, ratio_x: float, ratio_y: float) -> "Roi":
        return Roi(
            x_offset=int(self.x_offset * ratio_x),
            y_offset=int(self.y_offset * ratio_y),
            width=int(self.width * ratio_x),
            height=int(self.height * ratio_y),
            confidence=self.confidence,
        )

    def as_xywh(self) -> Tuple[int, int, int, int]:
        return (self.x_offset, self.y_offset, self.width, self.height)

    def to_dict(self) -> dict:
        return {
            "rect": {
                "x_offset": self.x_offset,
                "y_offset": self.y_offset,
                "width": self.width,
                "height": self.height,
            },
            "confidence": self.confidence,
        }


@dataclass
class Target:
    """A labelled target with its regions of interest."""
    type: str
    rois: List[Roi] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"type": self.type, "rois": [r.to_dict() for r in self.rois]}


@dataclass
class OutputFrame:
    """
    Result message published once per processed frame.

    Attributes:
        header: Header of the source frame (copied from submission time).
        targets: Mapped detections in source-image coordinates, in parser order.
        fps: Rounded accelerator output throughput, 0 when unknown.
    """
    header: FrameHeader
    targets: List[Target] = field(default_factory=list)
    fps: int = 0

    def to_dict(self) -> dict:
        return {
            "header": self.header.to_dict(),
            "targets": [t.to_dict() for t in self.targets],
            "fps": self.fps,
        }
