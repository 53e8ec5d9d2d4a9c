"""
Resize planning for fixed-resolution network inputs.

The resample hardware requires output widths that are multiples of 16 and
even output heights. The plan keeps the source aspect ratio and records the
ratio used later to map detections back into source coordinates. Only a
source narrower than one 16-pixel block can end up taller than the network
input; such frames fail model input preparation and are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass

WIDTH_ALIGNMENT = 16


@dataclass(frozen=True)
class ScalePlan:
    """
    Target size and ratio for resizing one source frame.

    Attributes:
        source_width: Source image width.
        source_height: Source image height.
        target_width: Resized width (multiple of 16).
        target_height: Resized height (even).
        ratio: Source/resized scale factor applied to both axes when mapping back.
    """
    source_width: int
    source_height: int
    target_width: int
    target_height: int
    ratio: float

    @property
    def ratio_x(self) -> float:
        """Exact horizontal source/resized factor."""
        return self.source_width / self.target_width

    @property
    def ratio_y(self) -> float:
        """Exact vertical source/resized factor."""
        return self.source_height / self.target_height

    @property
    def target_size(self) -> tuple[int, int]:
        return (self.target_width, self.target_height)


def needs_resize(src_w: int, src_h: int, tgt_w: int, tgt_h: int) -> bool:
    """A frame is resized unless it already has the network input size."""
    return (src_w, src_h) != (tgt_w, tgt_h)


def compute_scale_plan(src_w: int, src_h: int, tgt_w: int, tgt_h: int) -> ScalePlan:
    """
    Compute an aspect-preserving, hardware-aligned resize plan.

    The larger of the two source/target ratios binds, so the output fits
    the target unless the 16-pixel width floor applies. Width is truncated
    down to a multiple of 16 (the ratio and height are then recomputed from
    the truncated width) and height is truncated to an even value.

    Args:
        src_w: Source width.
        src_h: Source height.
        tgt_w: Network input width.
        tgt_h: Network input height.

    Raises:
        ValueError: If any dimension is not a positive integer.
    """
    for name, value in (("src_w", src_w), ("src_h", src_h), ("tgt_w", tgt_w), ("tgt_h", tgt_h)):
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")

    # Truncations use integer arithmetic: a float quotient that should be an
    # exact integer n can land on n - epsilon and lose a pixel.
    if src_w * tgt_h >= src_h * tgt_w:
        # width binds (ties included)
        dst_ratio = src_w / tgt_w
        resized_width = tgt_w
        resized_height = src_h * tgt_w // src_w
    else:
        dst_ratio = src_h / tgt_h
        resized_width = src_w * tgt_h // src_h
        resized_height = tgt_h

    remain = resized_width % WIDTH_ALIGNMENT
    if remain != 0 or resized_width == 0:
        # Round down, except that very narrow inputs still get one aligned block.
        resized_width = max(resized_width - remain, WIDTH_ALIGNMENT)
        dst_ratio = src_w / resized_width
        resized_height = src_h * resized_width // src_w

    if resized_height % 2 != 0:
        resized_height -= 1
    resized_height = max(resized_height, 2)

    return ScalePlan(
        source_width=src_w,
        source_height=src_h,
        target_width=resized_width,
        target_height=resized_height,
        ratio=dst_ratio,
    )
