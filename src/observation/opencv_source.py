"""
Frame source backed by cv2.VideoCapture.

`device_id` picks the input: an int is a local camera index, an rtsp:// URL
is a network stream, any other string is a video file path. Captured BGR
frames leave the source as NV12.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse, urlunparse

import cv2

from models.frame import FrameDescriptor
from preprocess.nv12 import bgr_to_nv12
from .base import ObservationSource, ObservationConfig

RTSP_SCHEMES = ("rtsp://", "rtsps://")


def sanitize_url(device_id: Union[int, str]) -> str:
    """Hide credentials in a stream URL for logging."""
    if not isinstance(device_id, str) or "@" not in device_id:
        return str(device_id)
    parsed = urlparse(device_id)
    netloc = parsed.hostname or ""
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=f"***@{netloc}"))


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, stream URL or video file path.
        rtsp_transport: "tcp" or "udp" for RTSP streams.
        buffer_size: Capture queue depth for cameras; 1 keeps frames fresh.
        max_retries: Open attempts before giving up.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3

    @classmethod
    def from_source_arg(cls, source: str, source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: a digit string selects a camera index, anything else is a URL or path."""
        device_id: Union[int, str] = int(source) if source.isdigit() else source
        return cls(source_id=source_id, device_id=device_id)


class OpenCVSource(ObservationSource):
    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._cv_config = config
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._cv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and self.device_id.startswith(RTSP_SCHEMES)

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and not self.is_rtsp and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return
        if self.is_rtsp:
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = f"rtsp_transport;{self._cv_config.rtsp_transport}"

        self._capture = self._connect()
        if isinstance(self.device_id, int):
            self._apply_camera_settings(self._capture)

        self._is_open = True
        self._frame_index = 0
        logging.info(f"Source {self.source_id} opened on {sanitize_url(self.device_id)}")

    def _connect(self) -> cv2.VideoCapture:
        attempts = self._cv_config.max_retries
        for attempt in range(1, attempts + 1):
            capture = cv2.VideoCapture(self.device_id)
            if capture.isOpened():
                return capture
            capture.release()
            if attempt < attempts:
                delay = min(2 ** attempt, 10)
                logging.warning(
                    f"Cannot open {sanitize_url(self.device_id)} "
                    f"(attempt {attempt}/{attempts}), next try in {delay}s"
                )
                time.sleep(delay)
        raise RuntimeError(f"Failed to open {sanitize_url(self.device_id)} after {attempts} attempts")

    def _apply_camera_settings(self, capture: cv2.VideoCapture) -> None:
        cfg = self._cv_config
        if cfg.resolution:
            width, height = cfg.resolution
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if cfg.fps:
            capture.set(cv2.CAP_PROP_FPS, cfg.fps)
        capture.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

    def read(self) -> Optional[FrameDescriptor]:
        if self._capture is None:
            return None

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            if self.is_file:
                logging.info(f"Source {self.source_id}: no more frames")
            else:
                logging.warning(f"Source {self.source_id}: frame grab failed")
            return None

        # NV12 needs even dimensions; bgr_to_nv12 crops the odd row/column.
        height, width = bgr.shape[0] // 2 * 2, bgr.shape[1] // 2 * 2
        self._frame_index += 1
        return FrameDescriptor.from_nv12(
            bgr_to_nv12(bgr),
            width=width,
            height=height,
            timestamp=time.time(),
            index=self._frame_index,
        )

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
        if self._is_open:
            logging.info(f"Source {self.source_id} closed after {self._frame_index} frames")
        self._is_open = False
