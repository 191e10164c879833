"""Edge map construction and dense edge-window search."""

from __future__ import annotations

import logging

import cv2
import numpy as np
from numpy.typing import NDArray

from film_ruler import config
from film_ruler.models import DenseWindow, InvalidInputError, ProcessingError, ProcessingStage
from film_ruler.utils import cv_utils

logger = logging.getLogger(__name__)

EdgeMap = NDArray[np.uint8]


def canny_thresholds(low: float, high: float, use_l2: bool) -> tuple[float, float]:
    scale = config.CANNY_L2_SCALE if use_l2 else 1.0
    return low * scale, high * scale


def build_edge_map(
    image: NDArray[np.uint8],
    blur_ksize: int = config.GAUSS_BLUR_KSIZE,
    canny_low: float = config.CANNY_LOW,
    canny_high: float = config.CANNY_HIGH,
    use_l2: bool = config.CANNY_USE_L2,
) -> EdgeMap:
    """
    Grayscale -> Gaussian blur -> Canny.

    Returns a {0, 1} uint8 map with the same height and width as the input.
    Raises InvalidInputError for an empty image.
    """
    if image is None or image.size == 0 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidInputError(
            "Cannot build an edge map from an empty image",
            ProcessingError(
                stage=ProcessingStage.EDGES,
                error_type="invalid_input",
                recoverable=False,
                message="Empty image passed to edge detection",
            ),
        )

    gray = cv_utils.to_grayscale(image)
    if gray.dtype != np.uint8:
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

    ksize = max(1, int(blur_ksize))
    if ksize % 2 == 0:
        ksize += 1
    blurred = cv2.GaussianBlur(gray, (ksize, ksize), 0)

    low, high = canny_thresholds(canny_low, canny_high, use_l2)
    edges = cv2.Canny(blurred, low, high, apertureSize=3, L2gradient=use_l2)
    return (edges > 0).astype(np.uint8)


def _best_window_start(counts: NDArray[np.int64], win: int) -> int:
    """Start index of the length-win window with the largest sum (first wins ties)."""
    if counts.size == 0:
        return 0
    win = min(win, counts.size)
    csum = np.concatenate(([0], np.cumsum(counts)))
    sums = csum[win:] - csum[:-win]
    return int(np.argmax(sums))


def centered_window(height: int, width: int) -> DenseWindow:
    """Fallback window covering roughly the middle third of each dimension."""
    cw = min(width, max(2, width // 3))
    ch = min(height, max(2, height // 3))
    x_start = max(0, (width - cw) // 2)
    y_start = max(0, (height - ch) // 2)
    return DenseWindow(
        y_start=y_start,
        y_end=max(y_start + 1, min(height, y_start + ch)),
        x_start=x_start,
        x_end=max(x_start + 1, min(width, x_start + cw)),
        fallback=True,
    )


def locate_dense_window(
    edge_map: EdgeMap,
    window_height: int = config.DENSE_WINDOW_HEIGHT,
    window_width: int = config.DENSE_WINDOW_WIDTH,
) -> DenseWindow:
    """
    Find the window_height x window_width region with the most edge pixels.

    Rows and columns are scanned independently with a sliding sum over the
    per-row and per-column edge counts. Falls back to a centered window when
    the edge map is empty or the bounds come out invalid.
    """
    h, w = edge_map.shape[:2]
    if h == 0 or w == 0:
        raise InvalidInputError("Cannot locate a dense window in an empty edge map")

    win_h = max(1, min(int(window_height), h))
    win_w = max(1, min(int(window_width), w))

    nonzero = edge_map != 0
    row_counts = np.count_nonzero(nonzero, axis=1).astype(np.int64)
    col_counts = np.count_nonzero(nonzero, axis=0).astype(np.int64)

    if int(row_counts.sum()) == 0:
        logger.debug("edge map is empty, using centered window")
        return centered_window(h, w)

    y_start = _best_window_start(row_counts, win_h)
    x_start = _best_window_start(col_counts, win_w)
    y_end = min(y_start + win_h, h)
    x_end = min(x_start + win_w, w)

    if not (0 <= y_start < y_end <= h and 0 <= x_start < x_end <= w):
        logger.debug("dense window out of bounds, using centered window")
        return centered_window(h, w)

    return DenseWindow(y_start=y_start, y_end=y_end, x_start=x_start, x_end=x_end)
