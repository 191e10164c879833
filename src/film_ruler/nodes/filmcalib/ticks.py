"""Ruler tick detection from 1-D darkness profiles."""

from __future__ import annotations

from enum import Enum

import cv2
import numpy as np
from numpy.typing import NDArray

from film_ruler import config
from film_ruler.models import CalibrationConfig
from film_ruler.utils import cv_utils

from .regions import round_half_up


class Orientation(str, Enum):
    """Ruler direction inside a crop.

    HORIZONTAL rulers carry vertical tick marks, found in a per-column
    profile. VERTICAL rulers carry horizontal tick marks, found in a per-row
    profile.
    """

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


def darkness_profile(gray: NDArray[np.uint8], orientation: Orientation) -> NDArray[np.float64]:
    """Sum of (255 - intensity) across the ruler, one value per position along it."""
    inv = 255.0 - gray.astype(np.float64)
    axis = 0 if orientation == Orientation.HORIZONTAL else 1
    return inv.sum(axis=axis)


def gaussian_kernel(sigma: float, radius: int) -> NDArray[np.float64]:
    xs = np.arange(-radius, radius + 1, dtype=np.float64)
    k = np.exp(-(xs * xs) / (2.0 * sigma * sigma))
    return k / max(float(k.sum()), 1e-12)


def smooth_profile(
    signal: NDArray[np.float64],
    sigma: float = config.PROFILE_SMOOTH_SIGMA,
    radius: int = config.PROFILE_SMOOTH_RADIUS,
) -> NDArray[np.float64]:
    """
    Gaussian smoothing with the kernel renormalized over in-bounds taps.

    Near the ends only part of the kernel overlaps the signal; dividing by
    the overlapping weight keeps the ends from being pulled towards zero.
    """
    if signal.size == 0:
        return signal.astype(np.float64)
    radius = max(0, int(radius))
    k = gaussian_kernel(sigma, radius)
    num = np.convolve(np.pad(signal, radius), k, mode="valid")
    den = np.convolve(np.pad(np.ones_like(signal), radius), k, mode="valid")
    out = np.where(den > 0, num / np.maximum(den, 1e-12), signal)
    return out.astype(np.float64)


def otsu_mask(signal: NDArray[np.float64]) -> NDArray[np.bool_]:
    """Rescale to [0, 255] and binarize with Otsu's threshold."""
    if signal.size == 0:
        return np.zeros(0, dtype=bool)
    lo = float(signal.min())
    rng = max(float(signal.max()) - lo, 1e-6)
    scaled = np.floor(255.0 * (signal - lo) / rng + 0.5).clip(0, 255).astype(np.uint8)
    _, thr = cv2.threshold(
        scaled.reshape(1, -1), 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU
    )
    return thr.reshape(-1) > 0


def find_local_maxima(signal: NDArray[np.float64], mask: NDArray[np.bool_]) -> list[int]:
    n = int(signal.size)
    if n == 0:
        return []
    if n == 1:
        return [0] if bool(mask[0]) else []
    left = np.empty(n, dtype=bool)
    right = np.empty(n, dtype=bool)
    left[0] = True
    left[1:] = signal[1:] >= signal[:-1]
    right[-1] = True
    right[:-1] = signal[:-1] >= signal[1:]
    keep = mask & left & right
    return [int(i) for i in np.flatnonzero(keep)]


def estimate_step(
    candidates: list[int],
    min_spacing: int = config.MIN_TICK_SPACING,
    max_spacing: int = config.MAX_TICK_SPACING,
) -> int:
    """Modal gap between consecutive candidates within [min_spacing, max_spacing]."""
    if len(candidates) < 3:
        return config.DEFAULT_TICK_STEP
    gaps = np.diff(np.asarray(candidates, dtype=np.int64))
    valid = gaps[(gaps >= min_spacing) & (gaps <= max_spacing)]
    if valid.size == 0:
        return min_spacing
    return max(min_spacing, int(np.argmax(np.bincount(valid))))


def suppress_non_maxima(candidates: list[int], amplitudes: list[float], min_sep: int) -> list[int]:
    """
    Greedy 1-D NMS over sorted candidate positions.

    Candidates are visited from strongest to weakest; each accepted one marks
    its sorted neighbours within min_sep positions as taken.
    """
    if not candidates:
        return []
    order = np.argsort(-np.asarray(amplitudes, dtype=np.float64), kind="stable")
    taken = [False] * len(candidates)
    keep: list[int] = []
    for oi in order:
        oi = int(oi)
        if taken[oi]:
            continue
        cx = candidates[oi]
        keep.append(cx)
        left = oi
        while left - 1 >= 0 and candidates[left - 1] >= cx - min_sep:
            left -= 1
        right = oi
        while right + 1 < len(candidates) and candidates[right + 1] <= cx + min_sep:
            right += 1
        for i in range(left, right + 1):
            taken[i] = True
    return sorted(keep)


def refine_centers(weights: NDArray[np.float64], centers: list[int], half_width: int) -> list[int]:
    """Replace each center by the darkness center of mass in [c - hw, c + hw]."""
    n = int(weights.size)
    refined: list[int] = []
    for c in centers:
        s = max(0, c - half_width)
        e = min(n, c + half_width + 1)
        w = weights[s:e]
        wsum = float(w.sum())
        if wsum <= 1e-6:
            refined.append(c)
            continue
        com = float(np.dot(w, np.arange(s, e, dtype=np.float64))) / wsum
        refined.append(int(round(com)))
    return sorted(set(refined))


def detect_ticks(
    gray_crop: NDArray[np.uint8],
    orientation: Orientation,
    cfg: CalibrationConfig | None = None,
) -> list[int]:
    """
    Detect tick centers along a ruler crop.

    Returns strictly increasing crop-local positions; an empty list for blank
    or empty crops.
    """
    cfg = cfg or CalibrationConfig()
    if gray_crop is None or gray_crop.size == 0:
        return []
    gray = cv_utils.to_grayscale(gray_crop)

    profile = darkness_profile(gray, orientation)
    smoothed = smooth_profile(profile, cfg.smooth_sigma, cfg.smooth_radius)
    mask = otsu_mask(smoothed)

    candidates = find_local_maxima(smoothed, mask)
    if not candidates:
        return []
    amplitudes = [float(smoothed[c]) for c in candidates]

    step = estimate_step(candidates, cfg.min_spacing, cfg.max_spacing)
    min_sep = max(2, round_half_up(cfg.nms_sep_factor * step))
    peaks = suppress_non_maxima(candidates, amplitudes, min_sep)
    centers = refine_centers(profile, peaks, max(1, step // 2))

    final: list[int] = []
    for x in centers:
        if not final or x - final[-1] >= min_sep:
            final.append(x)
        elif profile[x] > profile[final[-1]]:
            final[-1] = x
    return final
