import numpy as np
import pytest

from film_ruler.nodes.filmcalib import Orientation, detect_ticks
from film_ruler.nodes.filmcalib.ticks import (
    estimate_step,
    smooth_profile,
    suppress_non_maxima,
)


def _bar_crop(starts, length=400, depth=40, bar=3):
    crop = np.full((depth, length), 255, dtype=np.uint8)
    for s in starts:
        crop[:, s : s + bar] = 0
    return crop


def test_detects_evenly_spaced_bars():
    starts = list(range(10, 390, 20))
    ticks = detect_ticks(_bar_crop(starts), Orientation.HORIZONTAL)
    assert ticks == [s + 1 for s in starts]


def test_vertical_orientation_uses_row_profile():
    starts = list(range(12, 380, 16))
    crop = _bar_crop(starts).T.copy()
    ticks = detect_ticks(crop, Orientation.VERTICAL)
    assert ticks == [s + 1 for s in starts]


def test_blank_crop_has_no_ticks():
    assert detect_ticks(np.full((30, 200), 255, dtype=np.uint8), Orientation.HORIZONTAL) == []


def test_empty_crop_has_no_ticks():
    assert detect_ticks(np.zeros((0, 0), dtype=np.uint8), Orientation.VERTICAL) == []


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_noise_output_strictly_increasing(seed):
    noise = np.random.default_rng(seed).integers(0, 256, size=(25, 300), dtype=np.uint8)
    ticks = detect_ticks(noise, Orientation.HORIZONTAL)
    assert all(b > a for a, b in zip(ticks, ticks[1:]))
    assert all(0 <= t < 300 for t in ticks)


def test_smoothing_keeps_constant_profile_flat():
    out = smooth_profile(np.full(15, 7.0), sigma=1.2, radius=4)
    np.testing.assert_allclose(out, 7.0)


def test_estimate_step_defaults():
    assert estimate_step([3, 9]) == 5
    assert estimate_step([0, 100, 200], min_spacing=2, max_spacing=40) == 2
    assert estimate_step([0, 10, 20, 30, 41, 50]) == 10


def test_nms_prefers_strongest_candidate():
    kept = suppress_non_maxima([10, 12, 30], [1.0, 5.0, 2.0], min_sep=4)
    assert kept == [12, 30]
