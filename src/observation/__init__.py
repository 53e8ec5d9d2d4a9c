"""
Observation layer for pluggable image sources.

Sources produce NV12 FrameDescriptors for the node's image topic,
independent of where the pixels come from (camera, stream, video file).
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
]
