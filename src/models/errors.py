"""
Error types for the detection node.

Per-frame errors are caught where the frame is handled, logged, and the
frame dropped. Only InitError is fatal.
"""

from __future__ import annotations


class NodeError(Exception):
    """Base class for detection node errors."""


class ConfigError(NodeError):
    """Missing/invalid config file, parse failure, or class count mismatch."""


class FormatError(NodeError):
    """Frame pixel encoding is not supported."""


class ResizeError(NodeError):
    """The resample backend could not resize the frame."""


class SubmissionError(NodeError):
    """The accelerator rejected or failed an inference submission."""


class ParseError(NodeError):
    """Raw accelerator output could not be decoded into detections."""


class TokenMismatch(NodeError):
    """A callback arrived with a token of unexpected type or shape."""


class InitError(NodeError):
    """Startup failure (model parameters, model input size)."""
