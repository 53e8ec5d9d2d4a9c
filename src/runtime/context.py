from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from models.config import DetectionConfig, NodeConfig


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    node_config: NodeConfig
    detection_config: DetectionConfig
    bus: Any
    accelerator: Any = None
    model_size: Optional[tuple[int, int]] = None

    # Liveness: cleared once shutdown begins
    _alive: threading.Event = field(default_factory=threading.Event)

    def __post_init__(self):
        self._alive.set()

    def is_alive(self) -> bool:
        return self._alive.is_set()

    def begin_shutdown(self) -> None:
        self._alive.clear()
