"""
Pytest configuration and shared fixtures.
"""

import json
import os
import sys
import types

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameDescriptor  # noqa: E402
from preprocess.nv12 import nv12_to_model_input  # noqa: E402


def make_nv12(width, height, luma=100, chroma=128, index=0, timestamp=0.0):
    """Build a flat-color NV12 FrameDescriptor."""
    data = np.empty(width * height * 3 // 2, dtype=np.uint8)
    data[: width * height] = luma
    data[width * height:] = chroma
    return FrameDescriptor.from_nv12(data, width, height, timestamp=timestamp, index=index)


def failing_ultralytics():
    """Stand-in ultralytics module whose YOLO cannot find its weights."""
    module = types.ModuleType("ultralytics")

    def YOLO(path):
        raise FileNotFoundError(f"'{path}' does not exist")

    module.YOLO = YOLO
    return module


class FakeAccelerator:
    """Synchronous accelerator double that records every submission."""

    def __init__(self, width=640, height=640, accept=True):
        self.width = width
        self.height = height
        self.accept = accept
        self.prepared = []
        self.submissions = []

    def model_input_size(self):
        return (self.width, self.height)

    def prepare_input(self, buffer, width, height):
        self.prepared.append((width, height))
        return nv12_to_model_input(buffer, width, height, self.width, self.height)

    def run(self, inputs, token):
        if not self.accept:
            return False
        self.submissions.append((list(inputs), token))
        return True


class StaticParser:
    """Parser double returning fixed records."""

    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error
        self.calls = 0

    def parse(self, raw_outputs, config):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def nv12_frame():
    return make_nv12


@pytest.fixture
def fake_accelerator():
    return FakeAccelerator()


@pytest.fixture
def config_dir(tmp_path):
    """Config directory with a one-class config document and name list."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    (config_dir / "cone.list").write_text("construction_cone\n")
    (config_dir / "target_detection.json").write_text(json.dumps({
        "model_file": "cone.pt",
        "class_num": 1,
        "cls_names_list": "cone.list",
    }))
    return config_dir
