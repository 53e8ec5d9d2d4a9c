"""
Typed models for the target detection node.

Frames come in as FrameDescriptors, travel to the accelerator with a
CorrelationToken, and leave as OutputFrames.
"""

from .frame import FrameDescriptor, FrameHeader, NV12_ENCODING
from .detection import DetectionRecord, Roi, Target, OutputFrame
from .inference import CorrelationToken, InferenceOutput, ModelParameters, RuntimeStats
from .config import DetectionConfig, NodeConfig, load_detection_config
from .errors import (
    NodeError,
    ConfigError,
    FormatError,
    ResizeError,
    SubmissionError,
    ParseError,
    TokenMismatch,
    InitError,
)

__all__ = [
    # Frame
    "FrameDescriptor",
    "FrameHeader",
    "NV12_ENCODING",
    # Detection
    "DetectionRecord",
    "Roi",
    "Target",
    "OutputFrame",
    # Inference
    "CorrelationToken",
    "InferenceOutput",
    "ModelParameters",
    "RuntimeStats",
    # Config
    "DetectionConfig",
    "NodeConfig",
    "load_detection_config",
    # Errors
    "NodeError",
    "ConfigError",
    "FormatError",
    "ResizeError",
    "SubmissionError",
    "ParseError",
    "TokenMismatch",
    "InitError",
]
