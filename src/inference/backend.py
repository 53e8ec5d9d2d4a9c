"""
Inference interfaces.

The node, the accelerator driver and the output parser only meet through
these protocols:

- the driver calls `InferenceNode.configure()` once to learn the model
  parameters and `InferenceNode.on_result()` once per finished inference;
- the node calls `Accelerator.prepare_input()` / `Accelerator.run()` per frame;
- the result mapper calls `DetectionParser.parse()` on the raw outputs.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from models.config import DetectionConfig
from models.detection import DetectionRecord
from models.inference import CorrelationToken, InferenceOutput, ModelParameters
from preprocess.scale import ScalePlan


# (buffer, width, height, plan) -> resized NV12 image
Resampler = Callable[[np.ndarray, int, int, ScalePlan], np.ndarray]


class InferenceNode(Protocol):
    def configure(self) -> ModelParameters:
        ...

    def on_result(self, output: InferenceOutput) -> int:
        ...


class Accelerator(Protocol):
    def model_input_size(self) -> Tuple[int, int]:
        """Return the network input size as (width, height)."""
        ...

    def prepare_input(self, buffer: np.ndarray, width: int, height: int) -> Optional[Any]:
        """Build a network-ready input from an NV12 buffer, or None on failure."""
        ...

    def run(self, inputs: Sequence[Any], token: CorrelationToken) -> bool:
        """Start an asynchronous inference; False if the task was not accepted."""
        ...


class DetectionParser(Protocol):
    def parse(self, raw_outputs: List[Any], config: DetectionConfig) -> List[DetectionRecord]:
        ...
