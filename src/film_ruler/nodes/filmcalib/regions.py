"""Rectangle arithmetic shared by the calibration and measurement stages."""

from __future__ import annotations

import math
from dataclasses import dataclass

from film_ruler.models import DenseWindow, FilmParams, Rect

MIN_RECT_SIZE = 2


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp_rect(
    rect: Rect, width: int, height: int, min_size: int = MIN_RECT_SIZE
) -> tuple[Rect, bool]:
    """
    Clamp a rectangle into a width x height image.

    The result keeps at least min_size pixels per side (when the image is that
    large). The flag is True when the requested rectangle had no overlap with
    the image and the returned one is a fallback sliver at the nearest border.
    """
    degenerate = (
        min(rect.x1, width) - max(rect.x, 0) <= 0
        or min(rect.y1, height) - max(rect.y, 0) <= 0
    )
    x0 = min(max(rect.x, 0), max(0, width - min_size))
    y0 = min(max(rect.y, 0), max(0, height - min_size))
    x1 = min(max(rect.x1, x0 + 1), width)
    y1 = min(max(rect.y1, y0 + 1), height)
    if x1 - x0 < min_size:
        x1 = min(x0 + min_size, width)
    if y1 - y0 < min_size:
        y1 = min(y0 + min_size, height)
    return Rect(x=x0, y=y0, width=x1 - x0, height=y1 - y0), degenerate


@dataclass(frozen=True)
class CalibrationBoxes:
    """Outlines of both calibration boxes plus the crops used for ticks."""

    outline_horizontal: Rect
    outline_vertical: Rect
    box_horizontal: Rect
    box_vertical: Rect
    degenerate: tuple[str, ...] = ()


def calibration_boxes(
    window: DenseWindow,
    params: FilmParams,
    width: int,
    height: int,
) -> CalibrationBoxes:
    """
    Lay out the two ruler boxes anchored on the dense window.

    The horizontal box extends right of the window by the target's physical
    width, the vertical box extends down by its physical height, both at the
    nominal px/mm. Ticks are searched in the top half of the horizontal box
    and the left half of the vertical box.
    """
    width_px = math.ceil(params.target_width_mm * params.pixels_per_mm)
    height_px = math.ceil(params.target_height_mm * params.pixels_per_mm)
    xs, xe, ys, ye = window.x_start, window.x_end, window.y_start, window.y_end

    right = min(xe + width_px, width)
    bottom = min(ye + height_px, height)

    degenerate: list[str] = []

    outline_h, bad = clamp_rect(Rect(x=xs, y=ys, width=right - xs, height=ye - ys), width, height)
    if bad:
        degenerate.append("outline_horizontal")
    outline_v, bad = clamp_rect(Rect(x=xs, y=ye, width=xe - xs, height=bottom - ye), width, height)
    if bad:
        degenerate.append("outline_vertical")

    y_half = ys + max(MIN_RECT_SIZE, (ye - ys) // 2)
    box_h, bad = clamp_rect(
        Rect(
            x=xs,
            y=ys,
            width=max(MIN_RECT_SIZE, right - xs),
            height=max(MIN_RECT_SIZE, y_half - ys),
        ),
        width,
        height,
    )
    if bad:
        degenerate.append("box_horizontal")

    x_half = xs + max(MIN_RECT_SIZE, (xe - xs) // 2)
    box_v, bad = clamp_rect(
        Rect(
            x=xs,
            y=ye,
            width=max(MIN_RECT_SIZE, x_half - xs),
            height=max(MIN_RECT_SIZE, bottom - ye),
        ),
        width,
        height,
    )
    if bad:
        degenerate.append("box_vertical")

    return CalibrationBoxes(
        outline_horizontal=outline_h,
        outline_vertical=outline_v,
        box_horizontal=box_h,
        box_vertical=box_v,
        degenerate=tuple(degenerate),
    )


def measurement_rois(
    window: DenseWindow,
    params: FilmParams,
    ppm_h: float,
    ppm_v: float,
    width: int,
    height: int,
) -> tuple[Rect, Rect, tuple[str, ...]]:
    """
    Place ROI1 below-right of the dense window and ROI2 further right.

    Millimeter distances along x use the horizontal scale and distances
    along y use the vertical scale.
    """
    offset_y = params.roi_offset_y_base_px + round(params.roi_offset_y_mm * ppm_v)
    requested = Rect(
        x=min(window.x_end + params.roi_offset_x_px, width - MIN_RECT_SIZE),
        y=min(window.y_end + offset_y, height - MIN_RECT_SIZE),
        width=max(MIN_RECT_SIZE, round(params.roi_width_mm * ppm_h)),
        height=max(MIN_RECT_SIZE, round(params.roi_height_mm * ppm_v)),
    )
    degenerate: list[str] = []
    roi1, bad = clamp_rect(requested, width, height)
    if bad:
        degenerate.append("ROI_POINT1")

    shift_px = round(params.shift_distance_mm * ppm_h)
    roi2, bad = clamp_rect(roi1.shifted(dx=shift_px), width, height)
    if bad:
        degenerate.append("ROI_POINT2")

    return roi1, roi2, tuple(degenerate)
