"""
Message transport: topic bus and result sinks.
"""

from .bus import MessageBus
from .sink import JsonLinesSink, log_output_frame

__all__ = [
    "MessageBus",
    "JsonLinesSink",
    "log_output_frame",
]
