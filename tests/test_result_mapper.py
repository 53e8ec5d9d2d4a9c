"""
Tests for callback-side result mapping.
"""

import logging

import pytest

from conftest import StaticParser
from models.config import DetectionConfig
from models.detection import DetectionRecord
from models.errors import ParseError
from models.frame import FrameHeader
from models.inference import CorrelationToken, InferenceOutput, RuntimeStats
from pipeline.result_mapper import ResultMapper


HEADER = FrameHeader(frame_id="42", stamp=3.5)


def cone(xmin, ymin, xmax, ymax, score=0.9):
    return DetectionRecord(xmin, ymin, xmax, ymax, score=score, class_id=0, class_name="construction_cone")


def make_mapper(records=None, parser=None, box_mapping="uniform", is_alive=lambda: True):
    published = []
    mapper = ResultMapper(
        parser=parser or StaticParser(records),
        config=DetectionConfig(),
        model_width=640,
        model_height=640,
        publish=published.append,
        is_alive=is_alive,
        box_mapping=box_mapping,
    )
    return mapper, published


def output(ratio=1.0, axis_ratios=None, stats=None, token=None):
    if token is None:
        token = CorrelationToken(ratio=ratio, header=HEADER, axis_ratios=axis_ratios or (ratio, ratio))
    return InferenceOutput(token=token, raw_outputs=[object()], stats=stats)


class TestUniformMapping:
    def test_ratio_scales_offsets_and_sizes(self):
        mapper, published = make_mapper([cone(0, 0, 10, 20)])

        assert mapper.handle(output(ratio=2.0)) is True

        roi = published[0].targets[0].rois[0]
        assert roi.as_xywh() == (0, 0, 20, 40)

    def test_unit_ratio_leaves_boxes(self):
        mapper, published = make_mapper([cone(10.7, 20.2, 50.9, 60.5)])

        mapper.handle(output(ratio=1.0))

        assert published[0].targets[0].rois[0].as_xywh() == (10, 20, 40, 40)

    def test_clamp_happens_before_rescale(self):
        mapper, published = make_mapper([cone(-5, -3, 700, 650)])

        mapper.handle(output(ratio=2.0))

        # clamped to (0, 0, 639, 639) in network space, then doubled
        assert published[0].targets[0].rois[0].as_xywh() == (0, 0, 1278, 1278)

    def test_box_outside_network_input_never_negative(self):
        mapper, published = make_mapper([cone(700, 10, 761, 20)])

        mapper.handle(output(ratio=2.0))

        assert published[0].targets[0].rois[0].as_xywh() == (1400, 20, 0, 20)

    def test_offsets_truncate_after_scaling(self):
        mapper, published = make_mapper([cone(11, 7, 21, 17)])

        mapper.handle(output(ratio=1.5))

        assert published[0].targets[0].rois[0].as_xywh() == (16, 10, 15, 15)

    def test_confidence_and_type_carried(self):
        mapper, published = make_mapper([cone(1, 1, 5, 5, score=0.75)])

        mapper.handle(output())

        target = published[0].targets[0]
        assert target.type == "construction_cone"
        assert target.rois[0].confidence == 0.75

    def test_parser_order_preserved(self):
        records = [cone(0, 0, 1, 1), None, cone(5, 5, 9, 9), cone(2, 2, 4, 4)]
        mapper, published = make_mapper(records)

        mapper.handle(output())

        xs = [t.rois[0].x_offset for t in published[0].targets]
        assert xs == [0, 5, 2]


class TestPerAxisMapping:
    def test_axes_scaled_independently(self):
        mapper, published = make_mapper([cone(10, 10, 20, 30)], box_mapping="per_axis")

        mapper.handle(output(ratio=2.0, axis_ratios=(2.0, 2.5)))

        assert published[0].targets[0].rois[0].as_xywh() == (20, 25, 20, 50)

    def test_invalid_axis_ratio_dropped(self):
        mapper, published = make_mapper([cone(10, 10, 20, 30)], box_mapping="per_axis")

        assert mapper.handle(output(ratio=2.0, axis_ratios=(2.0, 0.0))) is False
        assert published == []

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            make_mapper(box_mapping="stretch")


class TestOutputFrame:
    def test_one_frame_per_callback(self):
        mapper, published = make_mapper([])

        mapper.handle(output())
        mapper.handle(output())

        assert len(published) == 2
        assert all(frame.targets == [] for frame in published)
        assert mapper.stats.published == 2

    def test_header_from_token(self):
        mapper, published = make_mapper([cone(0, 0, 1, 1)])

        mapper.handle(output(ratio=3.0))

        assert published[0].header == HEADER

    @pytest.mark.parametrize("fps, expected", [(29.4, 29), (29.5, 30), (0.4, 0), (59.96, 60)])
    def test_fps_rounded(self, fps, expected):
        mapper, published = make_mapper([])

        mapper.handle(output(stats=RuntimeStats(output_fps=fps)))

        assert published[0].fps == expected

    def test_fps_zero_without_stats(self):
        mapper, published = make_mapper([])

        mapper.handle(output())

        assert published[0].fps == 0

    def test_latency_logged_when_window_closes(self, caplog):
        mapper, _ = make_mapper([])
        stats = RuntimeStats(input_fps=30.0, output_fps=29.7, infer_time_ms=12, fps_updated=True)

        with caplog.at_level(logging.INFO):
            mapper.handle(output(stats=stats))

        assert "infer time ms: 12" in caplog.text
        assert "post process time ms" in caplog.text

    def test_latency_not_logged_mid_window(self, caplog):
        mapper, _ = make_mapper([])

        with caplog.at_level(logging.INFO):
            mapper.handle(output(stats=RuntimeStats(output_fps=29.7)))

        assert "post process time ms" not in caplog.text


class TestDrops:
    def test_parse_error_drops_frame(self):
        parser = StaticParser(error=ParseError("bad tensor"))
        mapper, published = make_mapper(parser=parser)

        assert mapper.handle(output()) is False
        assert published == []
        assert mapper.stats.dropped == 1

    def test_foreign_token_dropped(self, caplog):
        mapper, published = make_mapper([cone(0, 0, 1, 1)])

        assert mapper.handle(output(token={"ratio": 2.0})) is False

        assert published == []
        assert "Internal error" in caplog.text

    def test_missing_token_dropped(self):
        mapper, published = make_mapper([])

        assert mapper.handle(InferenceOutput(token=None)) is False
        assert published == []

    def test_non_positive_ratio_dropped(self):
        mapper, published = make_mapper([])

        assert mapper.handle(output(ratio=0.0, axis_ratios=(1.0, 1.0))) is False
        assert published == []

    def test_callback_after_shutdown_skipped(self):
        parser = StaticParser([cone(0, 0, 1, 1)])
        mapper, published = make_mapper(parser=parser, is_alive=lambda: False)

        assert mapper.handle(output()) is False

        assert published == []
        assert parser.calls == 0
        assert mapper.stats.skipped_after_shutdown == 1
