"""Scale node: per-axis tick detection, repair and px/mm calibration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from film_ruler.models import (
    CalibrationConfig,
    PipelineState,
    ProcessingError,
    ProcessingStage,
    Rect,
    SpacingStats,
)
from film_ruler.nodes.filmcalib import (
    Orientation,
    calibration_boxes,
    detect_ticks,
    mean_spacing,
    repair_spacing,
)
from film_ruler.utils import cv_utils

logger = logging.getLogger(__name__)

AXIS_NAMES = {
    Orientation.HORIZONTAL: "horizontal ruler",
    Orientation.VERTICAL: "vertical ruler",
}


@dataclass
class AxisCalibration:
    ticks: list[int]
    stats: SpacingStats
    pixels_per_mm: float
    logs: list[str] = field(default_factory=list)
    errors: list[ProcessingError] = field(default_factory=list)


def calibrate_axis(
    gray: NDArray[np.uint8],
    box: Rect,
    orientation: Orientation,
    nominal_ppm: float,
    cfg: CalibrationConfig,
) -> AxisCalibration:
    """Detect, globalize and repair ticks inside box; derive px/mm from them."""
    name = AXIS_NAMES[orientation]
    crop = gray[box.slices]
    local = detect_ticks(crop, orientation, cfg)
    offset = box.x if orientation == Orientation.HORIZONTAL else box.y
    ticks = [t + offset for t in local]

    repaired, stats = repair_spacing(
        ticks,
        low_factor=cfg.gap_low_factor,
        high_factor=cfg.gap_high_factor,
        max_missing_per_gap=cfg.max_missing_per_gap,
    )
    logs = list(stats.logs)
    errors: list[ProcessingError] = []

    if stats.error_small_gap:
        logs.append(f"[error] {name}: abnormally small tick gap found, visualization only")
        errors.append(
            ProcessingError(
                stage=ProcessingStage.SCALE,
                error_type="spacing_anomaly",
                recoverable=True,
                message=f"{name}: {len(stats.small_gap_indices)} abnormally small gap(s)",
                details={"small_gap_indices": stats.small_gap_indices},
            )
        )

    ppm = mean_spacing(repaired)
    if ppm is None or ppm <= 0:
        ppm = float(nominal_ppm)
        message = f"{name}: fewer than 2 ticks, using nominal {ppm:g} px/mm"
        logs.append(f"[warn] {message}")
        errors.append(
            ProcessingError(
                stage=ProcessingStage.SCALE,
                error_type="uncalibrated_scale",
                recoverable=True,
                message=message,
                details={"ticks": len(repaired)},
            )
        )
    else:
        logs.append(f"[{name}] {len(repaired)} ticks, {ppm:.3f} px/mm")

    logger.debug("%s: %d raw ticks, %d repaired, ppm=%.3f", name, len(ticks), len(repaired), ppm)
    return AxisCalibration(ticks=repaired, stats=stats, pixels_per_mm=ppm, logs=logs, errors=errors)


def calibrate_scale(state: PipelineState) -> PipelineState:
    """
    Calibrate px/mm on both rulers next to the dense window.

    Updates state with:
    - box_horizontal / box_vertical: tick search crops
    - ticks_*, spacing_*: repaired ticks and their diagnostics
    - pixels_per_mm_h / pixels_per_mm_v: calibrated scales (nominal on failure)
    """
    image = state.image
    h, w = image.shape[:2]
    params = state.params
    cfg = state.config

    boxes = calibration_boxes(state.dense_window, params, w, h)
    logs = list(state.logs)
    errors = list(state.errors)
    for name in boxes.degenerate:
        message = f"{name} fell outside the image, clamped to a 2x2 fallback"
        logs.append(f"[warn] {message}")
        errors.append(
            ProcessingError(
                stage=ProcessingStage.SCALE,
                error_type="bounds_degenerate",
                recoverable=True,
                message=message,
            )
        )

    gray = cv_utils.to_grayscale(image)
    horiz = calibrate_axis(
        gray, boxes.box_horizontal, Orientation.HORIZONTAL, params.pixels_per_mm, cfg
    )
    vert = calibrate_axis(gray, boxes.box_vertical, Orientation.VERTICAL, params.pixels_per_mm, cfg)

    return state.model_copy(
        update={
            "box_horizontal": boxes.box_horizontal,
            "box_vertical": boxes.box_vertical,
            "ticks_horizontal": horiz.ticks,
            "ticks_vertical": vert.ticks,
            "spacing_horizontal": horiz.stats,
            "spacing_vertical": vert.stats,
            "pixels_per_mm_h": horiz.pixels_per_mm,
            "pixels_per_mm_v": vert.pixels_per_mm,
            "logs": logs + horiz.logs + vert.logs,
            "errors": errors + horiz.errors + vert.errors,
        }
    )
