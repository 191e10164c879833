"""Render node: edge visualization and annotated overlay rasters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import cv2
import numpy as np
from numpy.typing import NDArray

from film_ruler import config
from film_ruler.models import FilmParams, PipelineState, ProcessingError, Rect, RoiFit
from film_ruler.nodes.filmcalib import calibration_boxes
from film_ruler.nodes.filmcalib.regions import round_half_up
from film_ruler.utils import cv_utils

logger = logging.getLogger(__name__)

Color = tuple[int, int, int]


@dataclass(frozen=True)
class DrawOp:
    kind: Literal["rect", "line", "circle"]
    color: Color
    thickness: int
    p1: tuple[int, int] = (0, 0)
    p2: tuple[int, int] = (0, 0)
    radius: int = 0


def _pt(x: float, y: float) -> tuple[int, int]:
    return (round_half_up(x), round_half_up(y))


def _rect_op(rect: Rect, color: Color, thickness: int) -> DrawOp:
    return DrawOp("rect", color, thickness, p1=(rect.x, rect.y), p2=(rect.x1, rect.y1))


def _roi_ops(fit: RoiFit | None, params: FilmParams) -> tuple[list[DrawOp], list[DrawOp]]:
    if fit is None:
        return [], []
    lines: list[DrawOp] = []
    for line, color in ((fit.horizontal, params.color_line_h), (fit.vertical, params.color_line_v)):
        if line is not None:
            lines.append(
                DrawOp("line", color, params.line_thickness, p1=_pt(*line.p1), p2=_pt(*line.p2))
            )
    marks: list[DrawOp] = []
    if fit.intersection is not None:
        marks.append(
            DrawOp(
                "circle",
                params.color_intersection,
                -1,
                p1=_pt(*fit.intersection),
                radius=params.intersection_radius,
            )
        )
    return lines, marks


def build_draw_ops(state: PipelineState) -> list[DrawOp]:
    """Annotations in paint order: boxes, ticks, ROIs, lines, intersections."""
    params = state.params
    h, w = state.image.shape[:2]
    ops: list[DrawOp] = []

    if state.dense_window is not None:
        boxes = calibration_boxes(state.dense_window, params, w, h)
        ops.append(_rect_op(boxes.outline_horizontal, params.color_rect_h, params.rect_thickness))
        ops.append(_rect_op(boxes.outline_vertical, params.color_rect_v, params.rect_thickness))

    if state.box_horizontal is not None:
        box = state.box_horizontal
        for cx in state.ticks_horizontal:
            ops.append(
                DrawOp("line", params.color_tick, params.tick_thickness, p1=(cx, box.y), p2=(cx, box.y1))
            )
    if state.box_vertical is not None:
        box = state.box_vertical
        for cy in state.ticks_vertical:
            ops.append(
                DrawOp("line", params.color_tick, params.tick_thickness, p1=(box.x, cy), p2=(box.x1, cy))
            )

    lines: list[DrawOp] = []
    marks: list[DrawOp] = []
    for fit in (state.roi1, state.roi2):
        if fit is None:
            continue
        ops.append(_rect_op(fit.roi, params.color_tick, params.roi_rect_thickness))
        fit_lines, fit_marks = _roi_ops(fit, params)
        lines.extend(fit_lines)
        marks.extend(fit_marks)

    return ops + lines + marks


def apply_draw_ops(canvas: NDArray[np.uint8], ops: list[DrawOp]) -> NDArray[np.uint8]:
    for op in ops:
        if op.kind == "rect":
            cv2.rectangle(canvas, op.p1, op.p2, op.color, op.thickness)
        elif op.kind == "line":
            cv2.line(canvas, op.p1, op.p2, op.color, op.thickness)
        else:
            cv2.circle(canvas, op.p1, op.radius, op.color, op.thickness)
    return canvas


def output_paths(source_name: str, output_dir: str | Path) -> tuple[Path, Path]:
    """<stem>_edge.png and <stem>_overlay.png under output_dir."""
    stem = Path(source_name).stem or "image"
    out = Path(output_dir)
    return (
        out / f"{stem}{config.EDGE_SUFFIX}{config.OUTPUT_EXTENSION}",
        out / f"{stem}{config.OVERLAY_SUFFIX}{config.OUTPUT_EXTENSION}",
    )


def render(state: PipelineState) -> PipelineState:
    """
    Draw every annotation on the colorized edge map and on the input image.

    Both rasters are kept on the state; when output_dir is set they are
    also written as PNG files.
    """
    ops = build_draw_ops(state)
    if state.edges is not None:
        edge_vis = cv2.cvtColor((state.edges * 255).astype(np.uint8), cv2.COLOR_GRAY2BGR)
    else:
        edge_vis = np.zeros_like(state.image)
    edge_vis = apply_draw_ops(edge_vis, ops)
    overlay = apply_draw_ops(state.image.copy(), ops)

    update: dict[str, object] = {"edge_raster": edge_vis, "overlay_raster": overlay}
    if state.output_dir is None:
        return state.model_copy(update=update)

    logs = list(state.logs)
    errors = list(state.errors)
    edge_path, overlay_path = output_paths(state.source_name, state.output_dir)
    for key, path, raster in (
        ("edge_path", edge_path, edge_vis),
        ("overlay_path", overlay_path, overlay),
    ):
        saved = cv_utils.save_image(raster, path)
        if isinstance(saved, ProcessingError):
            errors.append(saved)
            logs.append(f"[error] {saved.message}")
            continue
        update[key] = str(saved)
        logger.debug("wrote %s", saved)

    update["logs"] = logs
    update["errors"] = errors
    return state.model_copy(update=update)
