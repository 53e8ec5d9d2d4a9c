"""
Tests for resize planning.
"""

import math
import random
from fractions import Fraction

import pytest

from preprocess.scale import ScalePlan, compute_scale_plan, needs_resize


def exact_target_size(src_w, src_h, tgt_w, tgt_h):
    """Reference plan computed with exact rationals."""
    ratio_w, ratio_h = Fraction(src_w, tgt_w), Fraction(src_h, tgt_h)
    ratio = max(ratio_w, ratio_h)
    if ratio == ratio_w:
        width, height = tgt_w, math.floor(src_h / ratio)
    else:
        width, height = math.floor(src_w / ratio), tgt_h

    remain = width % 16
    if remain or width == 0:
        width = max(width - remain, 16)
        height = math.floor(Fraction(src_h * width, src_w))

    height -= height % 2
    return width, max(height, 2)


class TestComputeScalePlan:
    def test_width_binding_1080p(self):
        """1920x1080 into 640x640: width binds at ratio 3.0."""
        plan = compute_scale_plan(1920, 1080, 640, 640)

        assert plan.target_width == 640
        assert plan.target_height == 360
        assert plan.ratio == 3.0

    def test_width_binding_720p(self):
        plan = compute_scale_plan(1280, 720, 640, 640)

        assert plan.target_size == (640, 360)
        assert plan.ratio == 2.0

    def test_height_binding_truncates_width_and_recomputes_ratio(self):
        """Portrait 720x1280: width 360 is not 16-aligned, so it drops to 352."""
        plan = compute_scale_plan(720, 1280, 640, 640)

        assert plan.target_width == 352
        assert plan.ratio == 720 / 352
        # 1280 / (720 / 352) = 625.77 -> 625 -> even 624
        assert plan.target_height == 624

    def test_unaligned_target_width(self):
        plan = compute_scale_plan(1000, 300, 600, 600)

        assert plan.target_width == 592
        assert plan.ratio == 1000 / 592
        # 300 / (1000 / 592) = 177.6 -> 177 -> even 176
        assert plan.target_height == 176

    def test_same_size_is_identity(self):
        plan = compute_scale_plan(640, 640, 640, 640)

        assert plan.target_size == (640, 640)
        assert plan.ratio == 1.0

    def test_very_narrow_source_keeps_one_aligned_block(self):
        plan = compute_scale_plan(10, 1000, 640, 640)

        assert plan.target_width == 16
        assert plan.ratio == 10 / 16
        assert plan.target_height % 2 == 0

    def test_tiny_height_never_zero(self):
        plan = compute_scale_plan(1920, 1, 640, 640)

        assert plan.target_height == 2
        assert plan.ratio > 0

    @pytest.mark.parametrize("dims, expected", [
        ((492, 738, 672, 672), (448, 672)),
        ((114, 342, 640, 640), (208, 624)),
        ((324, 243, 608, 608), (608, 456)),
    ])
    def test_exact_integer_quotients_not_truncated(self, dims, expected):
        assert compute_scale_plan(*dims).target_size == expected

    def test_matches_exact_arithmetic(self):
        rng = random.Random(1234)
        cases = [(w, h, 640, 640) for w in range(1, 200, 7) for h in range(1, 200, 11)]
        cases += [
            (rng.randint(1, 4096), rng.randint(1, 4096), rng.randint(16, 1024), rng.randint(2, 1024))
            for _ in range(5000)
        ]

        for dims in cases:
            assert compute_scale_plan(*dims).target_size == exact_target_size(*dims), dims

    @pytest.mark.parametrize("dims", [
        (1920, 1080, 640, 640),
        (1080, 1920, 640, 640),
        (1280, 720, 672, 672),
        (1000, 300, 600, 600),
        (640, 480, 512, 512),
        (3840, 2160, 416, 416),
        (17, 31, 640, 384),
        (1, 1, 640, 640),
        (4000, 3, 100, 100),
        (33, 7000, 50, 70),
    ])
    def test_alignment_invariants(self, dims):
        plan = compute_scale_plan(*dims)

        assert plan.target_width % 16 == 0
        assert plan.target_height % 2 == 0
        assert plan.ratio > 0

    @pytest.mark.parametrize("dims", [
        (0, 1080, 640, 640),
        (1920, -1, 640, 640),
        (1920, 1080, 0, 640),
        (1920, 1080, 640, 1.5),
    ])
    def test_rejects_non_positive_dimensions(self, dims):
        with pytest.raises(ValueError):
            compute_scale_plan(*dims)


class TestScalePlan:
    def test_axis_ratios(self):
        plan = ScalePlan(source_width=720, source_height=1280, target_width=352, target_height=624, ratio=720 / 352)

        assert plan.ratio_x == 720 / 352
        assert plan.ratio_y == 1280 / 624

    def test_frozen(self):
        plan = compute_scale_plan(1920, 1080, 640, 640)
        with pytest.raises(AttributeError):
            plan.ratio = 2.0


class TestNeedsResize:
    def test_exact_match(self):
        assert needs_resize(640, 640, 640, 640) is False

    def test_any_difference(self):
        assert needs_resize(640, 480, 640, 640) is True
        assert needs_resize(1920, 1080, 640, 640) is True
