import math

import numpy as np
import pytest

from film_ruler.models import CalibrationConfig, LineModel, Rect
from film_ruler.nodes.filmcalib import (
    clip_line_to_roi,
    fit_roi_lines,
    intersect_lines,
    ransac_fit_line,
)
from film_ruler.nodes.filmcalib.ransac_lines import tls_line


def _line(a, b, c, orientation="horizontal"):
    n = math.hypot(a, b)
    return LineModel(a=a / n, b=b / n, c=c / n, orientation=orientation)


def test_recovers_tilted_horizontal_line(rng):
    xs = np.arange(0, 200, dtype=np.float64)
    ys = 0.05 * xs + 10.0 + rng.normal(0.0, 0.3, size=xs.size)
    outliers = rng.uniform(0, 200, size=(40, 2))
    points = np.vstack([np.column_stack((xs, ys)), outliers])

    model, mask = ransac_fit_line(points, "horizontal", rng)

    assert model is not None
    assert mask is not None and mask.shape == (points.shape[0],)
    assert abs(model.angle_deg - math.degrees(math.atan(0.05))) < 1.0
    assert model.residual_rms < 2.0
    assert model.inlier_count >= 190


def test_rejects_samples_outside_angle_band(rng):
    xs = np.arange(0, 100, dtype=np.float64)
    points = np.column_stack((xs, np.full_like(xs, 20.0)))
    model, mask = ransac_fit_line(points, "vertical", rng)
    assert model is None and mask is None


def test_too_few_points_gives_no_model(rng):
    assert ransac_fit_line(np.array([[1.0, 2.0]]), "horizontal", rng) == (None, None)


def test_tls_exact_points_have_zero_residual():
    pts = np.array([[0.0, 1.0], [1.0, 3.0], [2.0, 5.0], [3.0, 7.0]])
    a, b, c, rms = tls_line(pts)
    assert math.hypot(a, b) == pytest.approx(1.0)
    assert rms == pytest.approx(0.0, abs=1e-9)
    for x, y in pts:
        assert a * x + b * y + c == pytest.approx(0.0, abs=1e-9)


def test_intersection_of_perpendicular_lines():
    horizontal = _line(0.0, 1.0, -40.0)
    vertical = _line(1.0, 0.0, -60.0, "vertical")
    x, y = intersect_lines(horizontal, vertical)
    assert (x, y) == (pytest.approx(60.0), pytest.approx(40.0))


def test_parallel_lines_do_not_intersect():
    assert intersect_lines(_line(0.0, 1.0, -5.0), _line(0.0, 1.0, -9.0)) is None


def test_clip_horizontal_line_spans_box():
    p1, p2 = clip_line_to_roi(_line(0.0, 1.0, -5.0), 20, 10)
    assert sorted([p1, p2]) == [(0.0, 5.0), (19.0, 5.0)]


def test_clip_line_missing_box_falls_back_inside():
    p1, p2 = clip_line_to_roi(_line(0.0, 1.0, -50.0), 20, 10)
    for x, y in (p1, p2):
        assert 0.0 <= x <= 19.0
        assert 0.0 <= y <= 9.0


def test_roi_cross_intersection_in_global_coordinates(rng):
    edges = np.zeros((100, 100), dtype=np.uint8)
    edges[40, 10:90] = 1
    edges[10:90, 60] = 1
    roi = Rect(x=5, y=5, width=90, height=90)

    fit = fit_roi_lines(edges, roi, label="ROI_POINT1", rng=rng)

    assert fit.horizontal is not None and fit.vertical is not None
    assert fit.intersection is not None
    x, y = fit.intersection
    assert abs(x - 60.0) < 0.5
    assert abs(y - 40.0) < 0.5
    assert fit.horizontal.model.distance(30.0, 40.0) < 0.5
    assert fit.vertical.model.distance(60.0, 20.0) < 0.5
    assert any(line.startswith("[ROI_POINT1-RANSAC]") for line in fit.logs)
    for px, py in (fit.horizontal.p1, fit.horizontal.p2):
        assert roi.x <= px <= roi.x1 - 1
        assert roi.y <= py <= roi.y1 - 1


def test_sparse_roi_logs_once_and_skips(rng):
    edges = np.zeros((50, 50), dtype=np.uint8)
    edges[10, 10:20] = 1
    fit = fit_roi_lines(edges, Rect(x=0, y=0, width=50, height=50), label="R", rng=rng)
    assert fit.horizontal is None and fit.vertical is None
    assert fit.intersection is None
    assert fit.edge_points == 10
    assert len(fit.logs) == 1


def test_seeded_fits_are_reproducible():
    edges = np.zeros((80, 80), dtype=np.uint8)
    edges[30, 5:75] = 1
    edges[5:75, 20] = 1
    edges[np.arange(5, 75, 7), np.arange(70, 0, -7)[:10]] = 1
    roi = Rect(x=0, y=0, width=80, height=80)
    cfg = CalibrationConfig(ransac_seed=99)
    a = fit_roi_lines(edges, roi, cfg=cfg)
    b = fit_roi_lines(edges, roi, cfg=cfg)
    assert a.intersection == b.intersection


def test_roi_recovers_rasterized_sloped_line(rng):
    edges = np.zeros((100, 200), dtype=np.uint8)
    xs = np.arange(200)
    edges[np.floor(0.1 * xs + 30.0 + 0.5).astype(int), xs] = 1

    fit = fit_roi_lines(edges, Rect(x=0, y=0, width=200, height=100), label="R", rng=rng)

    assert fit.horizontal is not None
    model = fit.horizontal.model
    assert abs(model.angle_deg - math.degrees(math.atan(0.1))) < 1.0
    assert model.residual_rms < 2.0
