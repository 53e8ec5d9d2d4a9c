"""
Target detection node.

Wires ingestion (InferenceOrchestrator) and result handling (ResultMapper)
to the message bus, and implements the InferenceNode capability the
accelerator driver calls:

    node = TargetDetectionNode(node_config, bus)
    accelerator = UltralyticsCpuAccelerator(node)   # calls node.configure()
    node.start(accelerator)                         # subscribes to frames
    ...
    node.shutdown()                                 # late callbacks are dropped
"""

from __future__ import annotations

import logging
from typing import Optional

from inference.backend import Accelerator, DetectionParser, Resampler
from inference.parser import DecodedArrayParser
from models.config import (
    NodeConfig,
    load_detection_config,
    read_config_document,
    validate_box_mapping,
)
from models.detection import OutputFrame
from models.errors import ConfigError, InitError
from models.frame import FrameDescriptor
from models.inference import InferenceOutput, ModelParameters
from pipeline.orchestrator import InferenceOrchestrator
from pipeline.result_mapper import ResultMapper
from preprocess.nv12 import resize_nv12
from runtime.context import RuntimeContext


class TargetDetectionNode:
    def __init__(
        self,
        node_config: NodeConfig,
        bus,
        parser: Optional[DetectionParser] = None,
        resampler: Resampler = resize_nv12,
    ):
        is_valid, error = validate_box_mapping(node_config.box_mapping)
        if not is_valid:
            raise InitError(error)

        detection_config, errors = load_detection_config(node_config.config_file)
        if errors:
            logging.warning(f"Config loaded with {len(errors)} rejected field(s); using {detection_config.to_dict()}")

        self.ctx = RuntimeContext(
            node_config=node_config,
            detection_config=detection_config,
            bus=bus,
        )
        self._parser = parser or DecodedArrayParser()
        self._resampler = resampler
        self.orchestrator: Optional[InferenceOrchestrator] = None
        self.mapper: Optional[ResultMapper] = None

    @property
    def detection_config(self):
        return self.ctx.detection_config

    def configure(self) -> ModelParameters:
        """
        Model parameters for the accelerator driver.

        Raises:
            InitError: If the config file cannot be read.
        """
        try:
            read_config_document(self.ctx.node_config.config_file)
        except ConfigError as e:
            raise InitError(f"SetNodePara: {e}") from e
        return ModelParameters(
            model_file=self.ctx.detection_config.model_file,
            task_num=1,
            core_ids=(0,),
        )

    def start(self, accelerator: Accelerator) -> None:
        """
        Bind the accelerator and subscribe to the image topic.

        Raises:
            InitError: If the model input size is unavailable.
        """
        try:
            width, height = accelerator.model_input_size()
        except Exception as e:
            raise InitError(f"Get model input size fail: {e}") from e
        if width <= 0 or height <= 0:
            raise InitError(f"Invalid model input size {width}x{height}")

        cfg = self.ctx.node_config
        self.ctx.accelerator = accelerator
        self.ctx.model_size = (width, height)
        self.orchestrator = InferenceOrchestrator(
            accelerator, width, height, resampler=self._resampler
        )
        self.mapper = ResultMapper(
            parser=self._parser,
            config=self.ctx.detection_config,
            model_width=width,
            model_height=height,
            publish=self._publish,
            is_alive=self.ctx.is_alive,
            box_mapping=cfg.box_mapping,
        )
        self.ctx.bus.subscribe(cfg.sub_img_topic, self.feed)
        logging.info(
            f"Node started: sub={cfg.sub_img_topic}, pub={cfg.pub_topic}, "
            f"model input={width}x{height}, box_mapping={cfg.box_mapping}"
        )

    def feed(self, frame: FrameDescriptor) -> bool:
        """Image topic handler."""
        if frame is None or not self.ctx.is_alive():
            return False
        if self.orchestrator is None:
            logging.error("Node not started, frame dropped")
            return False
        return self.orchestrator.feed(frame)

    def on_result(self, output: InferenceOutput) -> int:
        """Accelerator callback: 0 when a result was published, -1 otherwise."""
        if self.mapper is None:
            return -1
        return 0 if self.mapper.handle(output) else -1

    def shutdown(self) -> None:
        """Stop accepting frames; callbacks arriving after this are dropped."""
        self.ctx.begin_shutdown()
        self.ctx.bus.unsubscribe(self.ctx.node_config.sub_img_topic, self.feed)
        if self.orchestrator is not None and self.mapper is not None:
            logging.info(
                f"Node stopped: submitted={self.orchestrator.stats.submitted}, "
                f"dropped={self.orchestrator.stats.dropped}, "
                f"published={self.mapper.stats.published}"
            )

    def _publish(self, frame: OutputFrame) -> None:
        self.ctx.bus.publish(self.ctx.node_config.pub_topic, frame)
