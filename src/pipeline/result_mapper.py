"""
Callback-side result handling.

Turns one accelerator callback into one published OutputFrame: parse, clamp
to the network input, map back to source coordinates, attach throughput.

Box mapping modes:
    uniform:  x, y, width and height are all multiplied by the token's single
              ratio. The non-binding axis carries the error from
              truncating its resized size to an integer. This is the default.
    per_axis: x and width use source_width / resized_width, y and height use
              source_height / resized_height.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, List

from inference.backend import DetectionParser
from models.config import BOX_MAPPING_PER_AXIS, BOX_MAPPING_UNIFORM, DetectionConfig
from models.detection import OutputFrame, Roi, Target
from models.errors import ParseError, TokenMismatch
from models.inference import CorrelationToken, InferenceOutput


@dataclass
class ResultStats:
    """Callback counters (observability only)."""
    published: int = 0
    dropped: int = 0
    skipped_after_shutdown: int = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ResultMapper:
    def __init__(
        self,
        parser: DetectionParser,
        config: DetectionConfig,
        model_width: int,
        model_height: int,
        publish: Callable[[OutputFrame], None],
        is_alive: Callable[[], bool] = lambda: True,
        box_mapping: str = BOX_MAPPING_UNIFORM,
        clock: Callable[[], float] = time.monotonic,
    ):
        if box_mapping not in (BOX_MAPPING_UNIFORM, BOX_MAPPING_PER_AXIS):
            raise ValueError(f"Unknown box mapping mode: {box_mapping!r}")
        self._parser = parser
        self._config = config
        self._model_width = model_width
        self._model_height = model_height
        self._publish = publish
        self._is_alive = is_alive
        self._box_mapping = box_mapping
        self._clock = clock
        self.stats = ResultStats()

    def handle(self, output: InferenceOutput) -> bool:
        """
        Map one inference result and publish it.

        Returns True if an OutputFrame was published.
        """
        if not self._is_alive():
            self.stats.skipped_after_shutdown += 1
            return False

        start = self._clock()

        try:
            records = self._parser.parse(output.raw_outputs, self._config)
        except (ParseError, ValueError, TypeError, IndexError) as e:
            logging.error(f"Parse node_output fail: {e}")
            self.stats.dropped += 1
            return False

        targets: List[Target] = []
        for rec in records:
            if rec is None:
                continue
            rec = rec.clamped(self._model_width, self._model_height)
            logging.debug(
                f"det rect: {rec.xmin} {rec.ymin} {rec.xmax} {rec.ymax}, "
                f"det type: {rec.class_name}, score: {rec.score}"
            )
            targets.append(Target(type=rec.class_name, rois=[Roi.from_record(rec)]))

        try:
            token = self._recover_token(output)
        except TokenMismatch as e:
            logging.error(f"Internal error, frame dropped: {e}")
            self.stats.dropped += 1
            return False

        self._map_to_source(targets, token)

        frame = OutputFrame(header=token.header, targets=targets)
        stats = output.stats
        if stats is not None:
            frame.fps = _round_half_up(stats.output_fps)
            if stats.fps_updated:
                interval_ms = int((self._clock() - start) * 1000)
                logging.info(
                    f"input fps: {stats.input_fps:.2f}, out fps: {stats.output_fps:.2f}, "
                    f"infer time ms: {stats.infer_time_ms}, post process time ms: {interval_ms}"
                )

        self._publish(frame)
        self.stats.published += 1
        return True

    def _recover_token(self, output: InferenceOutput) -> CorrelationToken:
        token = output.token
        if not isinstance(token, CorrelationToken):
            raise TokenMismatch(f"unexpected correlation token type {type(token).__name__}")
        if not token.ratio > 0:
            raise TokenMismatch(f"correlation token has invalid ratio {token.ratio!r}")
        if self._box_mapping == BOX_MAPPING_PER_AXIS and not all(r > 0 for r in token.axis_ratios):
            raise TokenMismatch(f"correlation token has invalid axis ratios {token.axis_ratios!r}")
        return token

    def _map_to_source(self, targets: List[Target], token: CorrelationToken) -> None:
        if self._box_mapping == BOX_MAPPING_PER_AXIS:
            ratio_x, ratio_y = token.axis_ratios
            if (ratio_x, ratio_y) == (1.0, 1.0):
                return
        else:
            if token.ratio == 1.0:
                return
            ratio_x = ratio_y = token.ratio

        for target in targets:
            target.rois = [roi.scaled(ratio_x, ratio_y) for roi in target.rois]
