"""
Target detection node entry point.

Reads frames from a camera, stream or video file, publishes them as NV12
images on the image topic, runs detection on the accelerator, and publishes
one result per processed frame on the result topic.

Usage:
    python src/main.py --config-file config/target_detection.json --source 0
    python src/main.py --source clip.mp4 --output output/results.jsonl

Arguments:
    --sub-img-topic: Image topic the node subscribes to
    --config-file: Detection config document (JSON/YAML)
    --source: Camera index, stream URL, or video file
    --output: Optional JSON-lines file receiving every published result
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional, Tuple

from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuAccelerator
from models.config import BOX_MAPPING_MODES, NodeConfig
from models.errors import InitError
from observation import OpenCVSource, OpenCVSourceConfig
from ops.logging import VALID_LOG_LEVELS, setup_logging
from runtime.node import TargetDetectionNode
from transport import JsonLinesSink, MessageBus, log_output_frame


def parse_size(value: str) -> Tuple[int, int]:
    """Parse 'WIDTHxHEIGHT' into a (width, height) tuple of positive ints."""
    try:
        w, h = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got {value!r}")
    return w, h


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    defaults = NodeConfig()
    parser = argparse.ArgumentParser(description="NV12 target detection node")
    parser.add_argument("--sub-img-topic", type=str, default=defaults.sub_img_topic,
                        help="Image topic to subscribe to")
    parser.add_argument("--pub-topic", type=str, default=defaults.pub_topic,
                        help="Topic for detection results")
    parser.add_argument("--config-file", type=str, default=defaults.config_file,
                        help="Path to the detection config document")
    parser.add_argument("--box-mapping", choices=BOX_MAPPING_MODES, default=defaults.box_mapping,
                        help="How boxes are mapped back to source coordinates")
    parser.add_argument("--source", type=str, default="0",
                        help="Camera index, stream URL, or video file")
    parser.add_argument("--model-input", type=parse_size, default=(640, 640),
                        help="Network input size for the CPU accelerator (WIDTHxHEIGHT)")
    parser.add_argument("--output", type=str, default=None,
                        help="Append published results to this JSON-lines file")
    parser.add_argument("--log-level", choices=VALID_LOG_LEVELS, default=defaults.log_level)
    parser.add_argument("--log-path", type=str, default=defaults.log_path)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the node until the source is exhausted or the process is interrupted."""
    args = parse_args(argv)
    node_config = NodeConfig.from_dict(vars(args))
    setup_logging(node_config.log_path, node_config.log_level)
    logging.info(f"Starting target detection node: {node_config.to_dict()}")

    bus = MessageBus()
    sink: Optional[JsonLinesSink] = None
    accelerator: Optional[UltralyticsCpuAccelerator] = None
    node: Optional[TargetDetectionNode] = None
    source = OpenCVSource(OpenCVSourceConfig.from_source_arg(args.source))

    stop_requested = False

    def _request_stop(signum, _frame):
        nonlocal stop_requested
        logging.info(f"Signal {signum} received, stopping")
        stop_requested = True

    signal.signal(signal.SIGTERM, _request_stop)

    try:
        node = TargetDetectionNode(node_config, bus)
        width, height = args.model_input
        accelerator = UltralyticsCpuAccelerator(
            node, CpuYoloConfig(input_width=width, input_height=height)
        )
        node.start(accelerator)
    except (InitError, ImportError) as e:
        logging.error(f"Node init fail! {e}")
        return 1

    bus.subscribe(node_config.pub_topic, log_output_frame)
    if args.output:
        sink = JsonLinesSink(args.output)
        bus.subscribe(node_config.pub_topic, sink)

    try:
        source.open()
        for frame in source:
            bus.publish(node_config.sub_img_topic, frame)
            if stop_requested:
                break
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except RuntimeError as e:
        logging.error(f"Source error: {e}")
        return 1
    finally:
        node.shutdown()
        accelerator.close()
        source.close()
        if sink is not None:
            sink.close()
        logging.info("Target detection node stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
