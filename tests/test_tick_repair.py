import pytest

from film_ruler.nodes.filmcalib import mean_spacing, repair_spacing
from film_ruler.nodes.filmcalib.tick_repair import mode_int


def test_uniform_ticks_unchanged():
    ticks = list(range(0, 200, 10))
    repaired, stats = repair_spacing(ticks)
    assert repaired == ticks
    assert stats.base_spacing == 10
    assert stats.inserted_total == 0
    assert stats.small_gap_indices == [] and stats.large_gap_indices == []
    assert not stats.error_small_gap
    assert not any(line.startswith("[interp]") for line in stats.logs)


def test_large_gap_gets_interpolated():
    repaired, stats = repair_spacing([0, 10, 20, 50, 60, 70])
    assert repaired == [0, 10, 20, 30, 40, 50, 60, 70]
    assert stats.large_gap_indices == [2]
    assert stats.inserted_total == 2
    assert any(line.startswith("[interp]") for line in stats.logs)


def test_inserted_ticks_capped_per_gap():
    repaired, stats = repair_spacing([0, 10, 100, 110], max_missing_per_gap=5)
    assert repaired == [0, 10, 20, 30, 40, 50, 60, 100, 110]
    assert stats.inserted_total == 5


def test_small_gap_reports_and_keeps_input():
    ticks = [0, 10, 20, 23, 33, 43]
    repaired, stats = repair_spacing(ticks)
    assert repaired == ticks
    assert stats.error_small_gap
    assert stats.small_gap_indices == [2]
    errors = [line for line in stats.logs if line.startswith("[error]")]
    assert len(errors) == 1


@pytest.mark.parametrize("ticks", [[], [42]])
def test_too_few_ticks_returned_as_is(ticks):
    repaired, stats = repair_spacing(ticks)
    assert repaired == ticks
    assert stats.logs == []
    assert not stats.error_small_gap


def test_mean_spacing():
    assert mean_spacing([5]) is None
    assert mean_spacing([0, 10, 30]) == pytest.approx(15.0)


def test_mode_picks_smallest_on_ties():
    assert mode_int([5, 3, 5, 3]) == 3
    assert mode_int([]) == 5
