"""
Tests for the entry point arguments and logging setup.
"""

import argparse
import logging
import signal
import sys

import pytest

from conftest import failing_ultralytics
from main import main, parse_args, parse_size
from models.config import NodeConfig
from ops.logging import setup_logging


class TestParseArgs:
    def test_defaults_match_node_config(self):
        args = parse_args([])
        cfg = NodeConfig.from_dict(vars(args))

        assert cfg == NodeConfig()
        assert args.source == "0"
        assert args.model_input == (640, 640)
        assert args.output is None

    def test_overrides(self):
        args = parse_args([
            "--sub-img-topic", "/cam/nv12",
            "--pub-topic", "/cones",
            "--box-mapping", "per_axis",
            "--model-input", "672x384",
        ])
        cfg = NodeConfig.from_dict(vars(args))

        assert cfg.sub_img_topic == "/cam/nv12"
        assert cfg.pub_topic == "/cones"
        assert cfg.box_mapping == "per_axis"
        assert args.model_input == (672, 384)

    def test_unknown_box_mapping_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--box-mapping", "stretch"])


class TestParseSize:
    def test_valid(self):
        assert parse_size("640X480") == (640, 480)

    @pytest.mark.parametrize("value", ["640", "axb", "0x640", "640x-1"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_size(value)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_file_handler_created(self, tmp_path):
        log_path = tmp_path / "logs" / "node.log"

        setup_logging(str(log_path), "DEBUG")
        logging.getLogger().debug("hello from the node")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from the node" in log_path.read_text()
        assert logging.getLogger("ultralytics").level == logging.WARNING

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            setup_logging("", "VERBOSE")


@pytest.mark.usefixtures("restore_root_logger")
def test_model_load_failure_exits_with_status_1(config_dir, tmp_path, monkeypatch):
    monkeypatch.setitem(sys.modules, "ultralytics", failing_ultralytics())
    original_sigterm = signal.getsignal(signal.SIGTERM)

    try:
        status = main([
            "--config-file", str(config_dir / "target_detection.json"),
            "--log-path", str(tmp_path / "node.log"),
            "--source", str(tmp_path / "clip.mp4"),
        ])
    finally:
        signal.signal(signal.SIGTERM, original_sigterm)

    assert status == 1
    assert "Node init fail!" in (tmp_path / "node.log").read_text()
