"""RANSAC + total-least-squares reference line fitting inside an ROI."""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from film_ruler import config
from film_ruler.models import (
    CalibrationConfig,
    FittedLine,
    LineModel,
    LineOrientation,
    Point,
    Rect,
    RoiFit,
)

logger = logging.getLogger(__name__)


def line_from_points(
    p1: NDArray[np.float64], p2: NDArray[np.float64]
) -> tuple[float, float, float] | None:
    """Implicit line through two points with a unit normal, None if they coincide."""
    vx = float(p2[0] - p1[0])
    vy = float(p2[1] - p1[1])
    nn = math.hypot(vx, vy)
    if nn < 1e-9:
        return None
    a = -vy / nn
    b = vx / nn
    c = -(a * float(p1[0]) + b * float(p1[1]))
    return a, b, c


def pair_angle_deg(p1: NDArray[np.float64], p2: NDArray[np.float64]) -> float:
    """Angle of the segment p1 -> p2 folded into [0, 180)."""
    ang = math.degrees(math.atan2(float(p2[1] - p1[1]), float(p2[0] - p1[0])))
    return (ang + 180.0) % 180.0


def _angle_accepted(angle: float, target: LineOrientation, theta0: float) -> bool:
    if target == "horizontal":
        return angle < theta0 or angle > 180.0 - theta0
    return abs(angle - 90.0) <= theta0


def tls_line(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """
    Total-least-squares line through points.

    Returns (a, b, c, rms) where (a, b) is perpendicular to the dominant
    singular direction of the centered points and rms is the RMS orthogonal
    residual.
    """
    center = points.mean(axis=0)
    centered = points - center
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    dx, dy = float(vt[0, 0]), float(vt[0, 1])
    na, nb = -dy, dx
    norm = max(math.hypot(na, nb), 1e-12)
    a, b = na / norm, nb / norm
    c = -(a * float(center[0]) + b * float(center[1]))
    residuals = centered @ np.array([a, b])
    rms = float(np.sqrt(np.mean(residuals * residuals)))
    return a, b, c, rms


def ransac_fit_line(
    points: NDArray[np.float64],
    target: LineOrientation,
    rng: np.random.Generator,
    iters: int = config.RANSAC_ITERS,
    eps_px: float = config.RANSAC_EPS_PX,
    theta0_deg: float = config.RANSAC_THETA0_DEG,
) -> tuple[LineModel | None, NDArray[np.bool_] | None]:
    """
    Fit one line of the target orientation with RANSAC, then refit its
    inliers with TLS.

    Two-point samples whose direction is more than theta0_deg off the target
    are skipped. The sample with the most inliers (first one on ties) wins.
    """
    n = int(points.shape[0])
    if n < 2:
        return None, None

    xs = points[:, 0]
    ys = points[:, 1]
    best_mask: NDArray[np.bool_] | None = None
    best_cnt = -1

    for _ in range(iters):
        i, j = rng.choice(n, size=2, replace=False)
        p1 = points[i]
        p2 = points[j]
        if not _angle_accepted(pair_angle_deg(p1, p2), target, theta0_deg):
            continue
        model = line_from_points(p1, p2)
        if model is None:
            continue
        a, b, c = model
        mask = np.abs(a * xs + b * ys + c) < eps_px
        cnt = int(np.count_nonzero(mask))
        if cnt > best_cnt:
            best_cnt = cnt
            best_mask = mask

    if best_mask is None or best_cnt < 2:
        return None, None

    a, b, c, rms = tls_line(points[best_mask])
    return (
        LineModel(
            a=a,
            b=b,
            c=c,
            orientation=target,
            inlier_count=best_cnt,
            residual_rms=rms,
        ),
        best_mask,
    )


def intersect_lines(l1: LineModel, l2: LineModel) -> Point | None:
    """Cramer's rule; None for near-parallel lines."""
    det = l1.a * l2.b - l2.a * l1.b
    if abs(det) < config.PARALLEL_DET_EPS:
        return None
    x = (l1.b * l2.c - l2.b * l1.c) / det
    y = (l2.a * l1.c - l1.a * l2.c) / det
    return (x, y)


def clip_line_to_roi(line: LineModel, width: int, height: int) -> tuple[Point, Point]:
    """
    Drawable endpoints of an infinite line inside a width x height box.

    Uses the in-bounds crossings with the four box edges; when fewer than two
    exist, projects the box center onto the line and extends a segment along
    it, clamped to the box. The farthest pair of candidates is returned.
    """
    a, b, c = line.a, line.b, line.c
    xmax = float(width - 1)
    ymax = float(height - 1)
    eps = 1e-9
    pts: list[Point] = []

    if abs(b) > eps:
        y0 = -(a * 0.0 + c) / b
        y1 = -(a * xmax + c) / b
        if 0.0 <= y0 <= ymax:
            pts.append((0.0, y0))
        if 0.0 <= y1 <= ymax:
            pts.append((xmax, y1))
    if abs(a) > eps:
        x0 = -(b * 0.0 + c) / a
        x1 = -(b * ymax + c) / a
        if 0.0 <= x0 <= xmax:
            pts.append((x0, 0.0))
        if 0.0 <= x1 <= xmax:
            pts.append((x1, ymax))

    if len(pts) < 2:
        cx = xmax / 2.0
        cy = ymax / 2.0
        t = a * cx + b * cy + c
        px = cx - a * t
        py = cy - b * t
        dx, dy = b, -a
        dn = max(math.hypot(dx, dy), 1e-12)
        ux, uy = dx / dn, dy / dn
        pts = [
            (min(max(px - ux * width, 0.0), xmax), min(max(py - uy * height, 0.0), ymax)),
            (min(max(px + ux * width, 0.0), xmax), min(max(py + uy * height, 0.0), ymax)),
        ]

    best = (pts[0], pts[1])
    dmax = -1.0
    for i in range(len(pts)):
        for j in range(i + 1, len(pts)):
            d = math.hypot(pts[i][0] - pts[j][0], pts[i][1] - pts[j][1])
            if d > dmax:
                dmax = d
                best = (pts[i], pts[j])
    return best


def fit_roi_lines(
    edge_map: NDArray[np.uint8],
    roi: Rect,
    label: str = "ROI",
    cfg: CalibrationConfig | None = None,
    rng: np.random.Generator | None = None,
) -> RoiFit:
    """
    Fit a near-horizontal and a near-vertical reference line inside roi.

    Lines, endpoints and the intersection are reported in global image
    coordinates. Never raises for sparse or degenerate ROIs; the returned
    logs say what was skipped.
    """
    cfg = cfg or CalibrationConfig()
    if rng is None:
        rng = np.random.default_rng(cfg.ransac_seed)
    logs: list[str] = []

    sub = edge_map[roi.slices]
    ys, xs = np.nonzero(sub)
    if ys.size < cfg.min_edge_points:
        logs.append(
            f"[warn] {label}: too few edge pixels in ROI ({ys.size} < {cfg.min_edge_points}), "
            "RANSAC skipped."
        )
        return RoiFit(label=label, roi=roi, edge_points=int(ys.size), logs=logs)

    points = np.column_stack((xs, ys)).astype(np.float64)
    width = int(sub.shape[1])
    height = int(sub.shape[0])

    fitted: dict[str, FittedLine | None] = {}
    local_models: dict[str, LineModel | None] = {}
    for target in ("horizontal", "vertical"):
        model, _ = ransac_fit_line(
            points,
            target,
            rng,
            iters=cfg.ransac_iters,
            eps_px=cfg.ransac_eps_px,
            theta0_deg=cfg.ransac_theta0_deg,
        )
        local_models[target] = model
        if model is None:
            fitted[target] = None
            logs.append(f"[warn] {label}: RANSAC {target} line fit failed (too few pixels in that direction).")
            continue
        p1, p2 = clip_line_to_roi(model, width, height)
        fitted[target] = FittedLine(
            model=model.translated(roi.x, roi.y),
            p1=(roi.x + p1[0], roi.y + p1[1]),
            p2=(roi.x + p2[0], roi.y + p2[1]),
        )
        logger.debug(
            "%s %s line: angle=%.2f inliers=%d rms=%.3f",
            label,
            target,
            model.angle_deg,
            model.inlier_count,
            model.residual_rms,
        )

    intersection: Point | None = None
    lh = local_models["horizontal"]
    lv = local_models["vertical"]
    if lh is not None and lv is not None:
        local = intersect_lines(lh, lv)
        if local is not None:
            intersection = (roi.x + local[0], roi.y + local[1])
            logs.append(
                f"[{label}-RANSAC] intersection(global) X={int(intersection[0])}, Y={int(intersection[1])}"
            )
        else:
            logs.append(f"[warn] {label}: lines are nearly parallel, no intersection.")
    else:
        logs.append(f"[warn] {label}: intersection unavailable, a reference line is missing.")

    return RoiFit(
        label=label,
        roi=roi,
        horizontal=fitted["horizontal"],
        vertical=fitted["vertical"],
        intersection=intersection,
        edge_points=int(ys.size),
        logs=logs,
    )
