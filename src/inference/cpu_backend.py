"""
CPU accelerator (development path).

Plays the role of the inference accelerator on machines without one: it
accepts NV12 model inputs, runs an Ultralytics YOLO model on a single worker
thread, and reports results through the node's on_result() callback. Uses
Ultralytics if installed.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from models.errors import InitError, SubmissionError
from models.inference import CorrelationToken, InferenceOutput
from preprocess.nv12 import nv12_to_bgr, nv12_to_model_input
from .backend import InferenceNode
from .stats import FpsCounter


@dataclass(frozen=True)
class CpuYoloConfig:
    input_width: int = 640
    input_height: int = 640
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45


class UltralyticsCpuAccelerator:
    """
    Asynchronous YOLO runner with task-count admission control.

    At most `task_num` inferences are in flight; run() rejects further tasks
    instead of queueing them.
    """

    def __init__(self, node: InferenceNode, cfg: CpuYoloConfig = CpuYoloConfig(), model: Any = None):
        self.cfg = cfg
        self._node = node
        params = node.configure()

        if model is None:
            if not params.model_file:
                raise InitError("model_file is required for the CPU accelerator")
            try:
                from ultralytics import YOLO  # type: ignore
            except Exception as e:  # pragma: no cover
                raise ImportError(
                    "Ultralytics is not installed. Install with `pip install ultralytics`."
                ) from e
            try:
                model = YOLO(params.model_file)
            except Exception as e:
                raise InitError(f"load model {params.model_file} fail: {e}") from e

        self._model = model
        self._slots = threading.BoundedSemaphore(params.task_num)
        self._executor = ThreadPoolExecutor(
            max_workers=params.task_num, thread_name_prefix="cpu-accelerator"
        )
        self._stats = FpsCounter()
        logging.info(
            f"CPU accelerator ready: model={params.model_file or type(model).__name__}, "
            f"input={cfg.input_width}x{cfg.input_height}, tasks={params.task_num}"
        )

    def model_input_size(self) -> Tuple[int, int]:
        return (self.cfg.input_width, self.cfg.input_height)

    def prepare_input(self, buffer: np.ndarray, width: int, height: int) -> Optional[np.ndarray]:
        return nv12_to_model_input(buffer, width, height, self.cfg.input_width, self.cfg.input_height)

    def run(self, inputs: Sequence[Any], token: CorrelationToken) -> bool:
        if not self._slots.acquire(blocking=False):
            logging.debug(f"Accelerator busy, task for frame {token.header.frame_id} rejected")
            return False
        self._stats.mark_input()
        try:
            self._executor.submit(self._infer, list(inputs), token)
        except RuntimeError as e:
            self._slots.release()
            raise SubmissionError(f"accelerator is shut down: {e}") from e
        return True

    def close(self) -> None:
        """Wait for in-flight tasks and stop the worker."""
        self._executor.shutdown(wait=True)

    def _infer(self, inputs: List[np.ndarray], token: CorrelationToken) -> None:
        try:
            start = time.monotonic()
            raw_outputs = [self._predict(t) for t in inputs]
            infer_ms = int((time.monotonic() - start) * 1000)
            stats = self._stats.mark_output(infer_ms)
        except Exception as e:
            logging.error(f"Inference failed for frame {token.header.frame_id}: {e}")
            return
        finally:
            self._slots.release()

        try:
            self._node.on_result(InferenceOutput(token=token, raw_outputs=raw_outputs, stats=stats))
        except Exception as e:
            logging.error(f"Result callback error: {e}")

    def _predict(self, model_input: np.ndarray) -> np.ndarray:
        w, h = self.cfg.input_width, self.cfg.input_height
        bgr = nv12_to_bgr(model_input, w, h)
        results = self._model.predict(
            source=bgr,
            imgsz=(h, w),
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            verbose=False,
        )
        if not results:
            return np.zeros((0, 6), dtype=np.float32)

        boxes = getattr(results[0], "boxes", None)
        if boxes is None:
            return np.zeros((0, 6), dtype=np.float32)

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out = np.zeros((len(xyxy), 6), dtype=np.float32)
        if len(xyxy):
            out[:, :4] = xyxy
            out[:, 4] = conf
            out[:, 5] = cls
        return out
