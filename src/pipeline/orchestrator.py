"""
Per-frame ingestion: format check, optional resize, model input, submission.

Everything here runs synchronously inside one ingestion call and ends with a
fire-and-forget submission; results arrive later through the ResultMapper.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from inference.backend import Accelerator, Resampler
from models.errors import FormatError, ResizeError, SubmissionError
from models.frame import FrameDescriptor
from models.inference import CorrelationToken
from preprocess.nv12 import resize_nv12
from preprocess.scale import compute_scale_plan, needs_resize


@dataclass
class IngestStats:
    """Ingestion counters (observability only)."""
    submitted: int = 0
    dropped: int = 0


class InferenceOrchestrator:
    """
    Turns ingested NV12 frames into accelerator submissions.

    Each accepted frame produces exactly one CorrelationToken, which is handed
    to the accelerator with the model input. Any failure drops the frame:
    no conversion, no retry, no queue.
    """

    def __init__(
        self,
        accelerator: Accelerator,
        model_width: int,
        model_height: int,
        resampler: Resampler = resize_nv12,
    ):
        self._accelerator = accelerator
        self._model_width = model_width
        self._model_height = model_height
        self._resampler = resampler
        self.stats = IngestStats()

    def feed(self, frame: FrameDescriptor) -> bool:
        """
        Ingest one frame.

        Returns True if the frame was submitted, False if it was dropped.
        """
        try:
            self._submit(frame)
        except FormatError as e:
            logging.error(f"{e}. Use a codec node to convert the frame to nv12.")
        except (ResizeError, SubmissionError) as e:
            logging.error(f"Frame {frame.index} dropped: {e}")
        else:
            self.stats.submitted += 1
            return True
        self.stats.dropped += 1
        return False

    def _submit(self, frame: FrameDescriptor) -> None:
        if not frame.is_nv12:
            raise FormatError(f"Only support nv12 img encoding, got {frame.encoding!r}")

        buffer, width, height, token = self._prepare(frame)

        model_input = self._build_input(buffer, width, height)
        if model_input is None:
            raise SubmissionError("get model input fail")

        try:
            accepted = self._accelerator.run([model_input], token)
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(f"run predict fail: {e}") from e
        if not accepted:
            raise SubmissionError("run predict fail: task not accepted")

    def _prepare(self, frame: FrameDescriptor) -> Tuple[np.ndarray, int, int, CorrelationToken]:
        """Resize when needed; return the buffer to submit and the frame's token."""
        header = frame.header()
        if not needs_resize(frame.width, frame.height, self._model_width, self._model_height):
            return frame.data, frame.width, frame.height, CorrelationToken.unscaled(header)

        try:
            plan = compute_scale_plan(frame.width, frame.height, self._model_width, self._model_height)
        except ValueError as e:
            raise ResizeError(str(e)) from e

        try:
            resized = self._resampler(frame.data, frame.width, frame.height, plan)
        except ResizeError:
            raise
        except Exception as e:
            raise ResizeError(f"Resize nv12 img fail: {e}") from e
        if resized is None:
            raise ResizeError("Resize nv12 img fail: backend returned no image")

        token = CorrelationToken(
            ratio=plan.ratio, header=header, axis_ratios=(plan.ratio_x, plan.ratio_y)
        )
        return resized, plan.target_width, plan.target_height, token

    def _build_input(self, buffer: np.ndarray, width: int, height: int) -> Optional[object]:
        try:
            return self._accelerator.prepare_input(buffer, width, height)
        except Exception as e:
            logging.error(f"Building model input failed: {e}")
            return None
