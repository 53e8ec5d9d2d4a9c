"""
Frame preprocessing: resize planning and NV12 resampling.
"""

from .scale import ScalePlan, compute_scale_plan, needs_resize
from .nv12 import resize_nv12, nv12_to_model_input, bgr_to_nv12, nv12_to_bgr

__all__ = [
    "ScalePlan",
    "compute_scale_plan",
    "needs_resize",
    "resize_nv12",
    "nv12_to_model_input",
    "bgr_to_nv12",
    "nv12_to_bgr",
]
