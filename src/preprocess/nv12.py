"""
NV12 image helpers built on OpenCV.

NV12 layout: a full-resolution Y plane (height rows) followed by an
interleaved UV plane at half resolution (height/2 rows of width bytes).
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from models.errors import ResizeError
from models.frame import nv12_buffer_size
from .scale import ScalePlan

# Padding written outside the image when building a model input.
PAD_LUMA = 0
PAD_CHROMA = 128


def split_nv12(buffer: np.ndarray, width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    View an NV12 buffer as (Y, UV) planes.

    Returns:
        Y plane of shape (height, width) and UV plane of shape
        (height/2, width/2, 2).

    Raises:
        ValueError: If the dimensions are odd or the buffer size is wrong.
    """
    if width % 2 or height % 2:
        raise ValueError(f"NV12 requires even dimensions, got {width}x{height}")
    flat = np.asarray(buffer, dtype=np.uint8).reshape(-1)
    expected = nv12_buffer_size(width, height)
    if flat.size != expected:
        raise ValueError(
            f"NV12 buffer for {width}x{height} must hold {expected} bytes, got {flat.size}"
        )
    y = flat[: width * height].reshape(height, width)
    uv = flat[width * height:].reshape(height // 2, width // 2, 2)
    return y, uv


def join_nv12(y: np.ndarray, uv: np.ndarray) -> np.ndarray:
    """Pack Y and UV planes back into a (height*3/2, width) NV12 image."""
    height, width = y.shape
    return np.concatenate([y, uv.reshape(height // 2, width)], axis=0)


def resize_nv12(
    buffer: np.ndarray,
    width: int,
    height: int,
    plan: ScalePlan,
    interpolation: int = cv2.INTER_LINEAR,
) -> np.ndarray:
    """
    Resample an NV12 image to the plan's target size.

    Returns:
        NV12 image of shape (target_height*3/2, target_width).

    Raises:
        ResizeError: If the buffer does not match its size or OpenCV fails.
    """
    try:
        y, uv = split_nv12(buffer, width, height)
        out_w, out_h = plan.target_width, plan.target_height
        y_out = cv2.resize(y, (out_w, out_h), interpolation=interpolation)
        uv_out = cv2.resize(uv, (out_w // 2, out_h // 2), interpolation=interpolation)
    except (ValueError, cv2.error) as e:
        raise ResizeError(f"Resize nv12 img fail: {e}") from e
    return join_nv12(y_out, uv_out)


def nv12_to_model_input(
    buffer: np.ndarray,
    width: int,
    height: int,
    model_width: int,
    model_height: int,
) -> Optional[np.ndarray]:
    """
    Place an NV12 image at the top-left of a model-sized NV12 canvas.

    Returns:
        NV12 image of shape (model_height*3/2, model_width), or None if the
        image is larger than the model input or the buffer is malformed.
    """
    if width > model_width or height > model_height:
        return None
    try:
        y, uv = split_nv12(buffer, width, height)
    except ValueError:
        return None

    if (width, height) == (model_width, model_height):
        return join_nv12(y, uv)

    y_out = np.full((model_height, model_width), PAD_LUMA, dtype=np.uint8)
    uv_out = np.full((model_height // 2, model_width // 2, 2), PAD_CHROMA, dtype=np.uint8)
    y_out[:height, :width] = y
    uv_out[: height // 2, : width // 2] = uv
    return join_nv12(y_out, uv_out)


def bgr_to_nv12(frame: np.ndarray) -> np.ndarray:
    """
    Convert a BGR frame to a flat NV12 buffer.

    Odd trailing rows/columns are cropped so both dimensions are even.
    """
    height, width = frame.shape[:2]
    frame = np.ascontiguousarray(frame[: height - height % 2, : width - width % 2])
    height, width = frame.shape[:2]

    i420 = cv2.cvtColor(frame, cv2.COLOR_BGR2YUV_I420).reshape(-1)
    luma = width * height
    quarter = luma // 4
    u = i420[luma: luma + quarter]
    v = i420[luma + quarter:]

    nv12 = np.empty(nv12_buffer_size(width, height), dtype=np.uint8)
    nv12[:luma] = i420[:luma]
    nv12[luma::2] = u
    nv12[luma + 1::2] = v
    return nv12


def nv12_to_bgr(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Convert an NV12 buffer to a BGR image of shape (height, width, 3)."""
    image = np.asarray(buffer, dtype=np.uint8).reshape(height * 3 // 2, width)
    return cv2.cvtColor(image, cv2.COLOR_YUV2BGR_NV12)
