import numpy as np
import pytest

from film_ruler.models import InvalidInputError
from film_ruler.nodes.filmcalib import build_edge_map, centered_window, locate_dense_window


def test_blank_image_has_no_edges():
    image = np.full((120, 160, 3), 255, dtype=np.uint8)
    edges = build_edge_map(image)
    assert edges.shape == (120, 160)
    assert edges.dtype == np.uint8
    assert int(edges.sum()) == 0


def test_edge_map_is_binary(target_image):
    edges = build_edge_map(target_image)
    assert set(np.unique(edges).tolist()) <= {0, 1}
    assert edges.shape == target_image.shape[:2]
    assert int(edges.sum()) > 0


def test_zero_size_image_raises():
    with pytest.raises(InvalidInputError):
        build_edge_map(np.zeros((0, 0, 3), dtype=np.uint8))


def test_empty_edge_map_uses_centered_fallback():
    window = locate_dense_window(np.zeros((90, 120), dtype=np.uint8), 80, 80)
    assert window.fallback
    assert window == centered_window(90, 120)
    assert 0 <= window.x_start < window.x_end <= 120
    assert 0 <= window.y_start < window.y_end <= 90


@pytest.mark.parametrize("shape", [(4, 4), (5, 17), (64, 48), (200, 300)])
def test_window_bounds_on_random_images(rng, shape):
    image = rng.integers(0, 256, size=(*shape, 3), dtype=np.uint8)
    edges = build_edge_map(image)
    window = locate_dense_window(edges, 80, 80)
    h, w = shape
    assert 0 <= window.y_start < window.y_end <= h
    assert 0 <= window.x_start < window.x_end <= w


def test_window_larger_than_image_is_clamped():
    edges = np.zeros((30, 40), dtype=np.uint8)
    edges[10, 5:35] = 1
    window = locate_dense_window(edges, 80, 80)
    assert not window.fallback
    assert (window.y_start, window.y_end, window.x_start, window.x_end) == (0, 30, 0, 40)


def test_window_finds_densest_block():
    edges = np.zeros((300, 400), dtype=np.uint8)
    edges[200:240, 250:290] = 1
    edges[10, :] = 1
    window = locate_dense_window(edges, 40, 40)
    assert (window.y_start, window.x_start) == (200, 250)
    assert window.height == 40 and window.width == 40


def test_window_anchors_on_ruler_corner(target, target_image):
    window = locate_dense_window(build_edge_map(target_image))
    assert not window.fallback
    assert window.width == 80 and window.height == 80
    # the densest block contains the first ticks of the horizontal ruler
    assert window.x_start <= target.origin_x < window.x_end
    assert window.y_start <= target.origin_y < window.y_end
