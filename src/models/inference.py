"""
Models exchanged with the accelerator: submission token, callback payload,
runtime statistics, and model parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .frame import FrameHeader


@dataclass(frozen=True)
class CorrelationToken:
    """
    Per-submission context threaded from ingestion to the result callback.

    Created once per submitted frame and consumed once by the result mapper.

    Attributes:
        ratio: Uniform source/network scale factor (1.0 when not resized).
        header: Header of the submitted frame.
        axis_ratios: (x, y) scale factors for per-axis box mapping.
    """
    ratio: float
    header: FrameHeader
    axis_ratios: Tuple[float, float] = (1.0, 1.0)

    @classmethod
    def unscaled(cls, header: FrameHeader) -> "CorrelationToken":
        return cls(ratio=1.0, header=header, axis_ratios=(1.0, 1.0))


@dataclass(frozen=True)
class RuntimeStats:
    """
    Accelerator throughput statistics attached to a callback.

    Attributes:
        input_fps: Submissions per second over the last window.
        output_fps: Completions per second over the last window.
        infer_time_ms: Duration of the inference that produced this callback.
        fps_updated: True when a statistics window closed on this callback.
    """
    input_fps: float = 0.0
    output_fps: float = 0.0
    infer_time_ms: int = 0
    fps_updated: bool = False


@dataclass
class InferenceOutput:
    """
    Payload of one accelerator callback.

    Attributes:
        token: The token passed to run() for this inference.
        raw_outputs: Raw output tensors, handed to the parser untouched.
        stats: Runtime statistics, when the accelerator reports them.
    """
    token: Any
    raw_outputs: List[Any] = field(default_factory=list)
    stats: Optional[RuntimeStats] = None


@dataclass(frozen=True)
class ModelParameters:
    """
    Parameters an inference node hands to the accelerator driver.

    Attributes:
        model_file: Path to the accelerator model artifact.
        task_num: Maximum concurrent inference tasks.
        core_ids: Accelerator core ids to run on.
    """
    model_file: str
    task_num: int = 1
    core_ids: Tuple[int, ...] = (0,)
