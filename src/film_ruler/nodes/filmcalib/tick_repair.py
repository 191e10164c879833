"""Spacing-based tick repair: flag tight gaps, interpolate missing ticks."""

from __future__ import annotations

import numpy as np

from film_ruler import config
from film_ruler.models import SpacingStats

from .regions import round_half_up


def mode_int(values: list[int], fallback: int = config.DEFAULT_BASE_SPACING) -> int:
    """Most frequent positive integer (smallest wins ties)."""
    vals = np.asarray([v for v in values if v > 0], dtype=np.int64)
    if vals.size == 0:
        return fallback
    return int(np.argmax(np.bincount(vals)))


def repair_spacing(
    ticks: list[int],
    low_factor: float = config.TICK_GAP_LOW_FACTOR,
    high_factor: float = config.TICK_GAP_HIGH_FACTOR,
    max_missing_per_gap: int = config.MAX_MISSING_PER_GAP,
) -> tuple[list[int], SpacingStats]:
    """
    Repair a sorted tick sequence using its dominant spacing.

    Gaps smaller than low_factor x base are treated as unrecoverable: the
    input is returned unchanged with error_small_gap set, since there is no
    way to tell which side of the tight gap is spurious. Otherwise every gap
    larger than high_factor x base gets up to max_missing_per_gap ticks
    interpolated at the mean good spacing.
    """
    ticks = [int(t) for t in ticks]
    if len(ticks) < 2:
        return ticks, SpacingStats()

    spacings = [b - a for a, b in zip(ticks[:-1], ticks[1:])]
    base = mode_int(spacings)
    low_thr = round_half_up(base * low_factor)
    high_thr = round_half_up(base * high_factor)

    small_idx = [i for i, s in enumerate(spacings) if s < low_thr]
    large_idx = [i for i, s in enumerate(spacings) if s > high_thr]
    good = [s for s in spacings if low_thr <= s <= high_thr]
    mean_good = float(np.mean(good)) if good else float(base)

    logs = [f"[tick repair] base_spacing(mode)={base} px, mean_good={mean_good:.2f} px"]

    if small_idx:
        for i in small_idx:
            logs.append(
                f"[error] abnormally small gap: ticks[{i}]={ticks[i]} -> "
                f"ticks[{i + 1}]={ticks[i + 1]} (gap={spacings[i]} px, threshold<{low_thr} px)"
            )
        return ticks, SpacingStats(
            base_spacing=base,
            mean_good_spacing=mean_good,
            small_gap_indices=small_idx,
            large_gap_indices=large_idx,
            error_small_gap=True,
            logs=logs,
        )

    large = set(large_idx)
    repaired: list[int] = []
    inserted = 0
    for i, (left, right) in enumerate(zip(ticks[:-1], ticks[1:])):
        repaired.append(left)
        if i not in large:
            continue
        gap = spacings[i]
        n_missing = min(max(1, round_half_up(gap / mean_good) - 1), max_missing_per_gap)
        trial = [left + round_half_up((k + 1) * mean_good) for k in range(n_missing)]
        valid = sorted({t for t in trial if t < right})
        repaired.extend(valid)
        inserted += len(valid)
        logs.append(f"[interp] large gap fixed: i={i}, gap={gap} px -> inserted {len(valid)}: {valid}")
    repaired.append(ticks[-1])

    return sorted(set(repaired)), SpacingStats(
        base_spacing=base,
        mean_good_spacing=mean_good,
        small_gap_indices=[],
        large_gap_indices=large_idx,
        inserted_total=inserted,
        error_small_gap=False,
        logs=logs,
    )


def mean_spacing(ticks: list[int]) -> float | None:
    """Mean successive spacing, None with fewer than two ticks."""
    if len(ticks) < 2:
        return None
    return float(ticks[-1] - ticks[0]) / float(len(ticks) - 1)
