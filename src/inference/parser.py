"""
Parser for accelerators that return already-decoded boxes.

Each raw output is an (N, 6) array of [x1, y1, x2, y2, score, class_id] in
network-input pixels. Only the first output tensor is read.
"""

from __future__ import annotations

from typing import Any, List

import numpy as np

from models.config import DetectionConfig
from models.detection import DetectionRecord
from models.errors import ParseError


class DecodedArrayParser:
    def parse(self, raw_outputs: List[Any], config: DetectionConfig) -> List[DetectionRecord]:
        if not raw_outputs:
            raise ParseError("no output tensors")

        try:
            arr = np.asarray(raw_outputs[0], dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ParseError(f"output tensor is not numeric: {e}") from e

        if arr.size == 0:
            return []
        if arr.ndim != 2 or arr.shape[1] < 6:
            raise ParseError(f"expected an (N, 6) output tensor, got shape {arr.shape}")
        if not np.all(np.isfinite(arr[:, :6])):
            raise ParseError("output tensor contains non-finite values")

        out: List[DetectionRecord] = []
        for x1, y1, x2, y2, score, cls in arr[:, :6]:
            class_id = int(cls)
            out.append(
                DetectionRecord(
                    xmin=float(x1),
                    ymin=float(y1),
                    xmax=float(x2),
                    ymax=float(y2),
                    score=float(score),
                    class_id=class_id,
                    class_name=config.class_name(class_id),
                )
            )
        return out
