"""Measurement node: ROI reference lines, intersections and per-axis distances."""

from __future__ import annotations

import bisect
import logging

import numpy as np

from film_ruler.models import (
    AxisDistance,
    PipelineState,
    ProcessingError,
    ProcessingStage,
    RoiFit,
)
from film_ruler.nodes.filmcalib import fit_roi_lines, measurement_rois
from film_ruler.nodes.filmcalib.regions import round_half_up

logger = logging.getLogger(__name__)

ROI_LABELS = ("ROI_POINT1", "ROI_POINT2")


def bracketing_index(ticks: list[int], coord: int) -> int:
    """Index of the last tick strictly below coord, 0 when there is none."""
    return max(bisect.bisect_left(ticks, coord) - 1, 0)


def axis_distance(
    axis: str,
    c1: float,
    c2: float,
    ticks: list[int],
    pixels_per_mm: float,
) -> AxisDistance | None:
    """
    Split the separation of two coordinates into whole tick counts plus
    sub-tick millimeter offsets on one ruler.
    """
    if not ticks or pixels_per_mm <= 0:
        return None
    r1 = round_half_up(c1)
    r2 = round_half_up(c2)
    i1 = bracketing_index(ticks, r1)
    i2 = bracketing_index(ticks, r2)
    return AxisDistance(
        axis=axis,
        index1=i1,
        index2=i2,
        offset1_mm=(r1 - ticks[i1]) / pixels_per_mm,
        offset2_mm=(r2 - ticks[i2]) / pixels_per_mm,
    )


def _fit_errors(fit: RoiFit, min_edge_points: int) -> list[ProcessingError]:
    if fit.edge_points < min_edge_points:
        return [
            ProcessingError(
                stage=ProcessingStage.MEASURE,
                error_type="insufficient_edge_data",
                recoverable=True,
                message=f"{fit.label}: {fit.edge_points} edge pixels, need {min_edge_points}",
                details={"edge_points": fit.edge_points},
            )
        ]
    if fit.intersection is None:
        missing = [
            name
            for name, line in (("horizontal", fit.horizontal), ("vertical", fit.vertical))
            if line is None
        ]
        return [
            ProcessingError(
                stage=ProcessingStage.MEASURE,
                error_type="degenerate_geometry",
                recoverable=True,
                message=f"{fit.label}: no intersection",
                details={"missing_lines": missing},
            )
        ]
    return []


def measure(state: PipelineState) -> PipelineState:
    """
    Fit reference lines in both measurement ROIs and compare intersections.

    Updates state with:
    - roi1 / roi2: per-ROI fits in global coordinates
    - distances: horizontal and vertical components when both intersections exist
    """
    h, w = state.edges.shape[:2]
    cfg = state.config
    ppm_h = state.pixels_per_mm_h
    ppm_v = state.pixels_per_mm_v

    roi1, roi2, degenerate = measurement_rois(
        state.dense_window, state.params, ppm_h, ppm_v, w, h
    )
    logs = list(state.logs)
    errors = list(state.errors)
    for label in degenerate:
        message = f"{label} fell outside the image, clamped to a 2x2 fallback"
        logs.append(f"[warn] {message}")
        errors.append(
            ProcessingError(
                stage=ProcessingStage.MEASURE,
                error_type="bounds_degenerate",
                recoverable=True,
                message=message,
            )
        )

    # one generator for both ROIs so a fixed seed reproduces the whole run
    rng = np.random.default_rng(cfg.ransac_seed)
    fits = [
        fit_roi_lines(state.edges, roi, label=label, cfg=cfg, rng=rng)
        for roi, label in zip((roi1, roi2), ROI_LABELS)
    ]
    for fit in fits:
        logs.extend(fit.logs)
        errors.extend(_fit_errors(fit, cfg.min_edge_points))

    distances: list[AxisDistance] = []
    p1 = fits[0].intersection
    p2 = fits[1].intersection
    if p1 is None or p2 is None:
        logs.append("[error] an intersection is missing, distance not computed")
    else:
        for axis, c1, c2, ticks, ppm in (
            ("horizontal", p1[0], p2[0], state.ticks_horizontal, ppm_h),
            ("vertical", p1[1], p2[1], state.ticks_vertical, ppm_v),
        ):
            dist = axis_distance(axis, c1, c2, ticks, ppm)
            if dist is None:
                logs.append(f"[warn] {axis} ruler: no ticks, distance not computed")
                continue
            distances.append(dist)
            logs.append(
                f"[{axis} ruler] index_diff={dist.index_diff}, "
                f"offset1={dist.offset1_mm:.3f}mm, offset2={dist.offset2_mm:.3f}mm"
            )
        logger.debug("%s: %d axis distance(s)", state.source_name, len(distances))

    return state.model_copy(
        update={
            "roi1": fits[0],
            "roi2": fits[1],
            "distances": distances,
            "logs": logs,
            "errors": errors,
        }
    )
