import pytest

from aggregation import (
    calculate_aligned_sample_stats,
    calculate_sample_stats,
    calculate_stats,
    calculate_std_dev,
    calculate_time_stats,
    flatten_samples,
    summary_std_dev,
)
from errors import EmptyInputError
from models import MemorySample, MemorySampleStats, MemoryStats, ProcessResult


def _sample(ts, v):
    return MemorySample(ts, v, v * 2, v * 3, v * 4)


@pytest.mark.parametrize('values', [
    [1, 2, 3],
    [5.5, -2.0, 3.25, 100.0],
    [0.1, 0.1, 0.1],
    [1e-9, 1e9],
])
def test_stats_min_le_avg_le_max(values):
    s = calculate_stats(values)
    assert s.min <= s.avg <= s.max


def test_stats_single_value():
    assert calculate_stats([7.5]) == MemoryStats(min=7.5, max=7.5, avg=7.5)


def test_stats_known_values():
    s = calculate_stats([4, 8, 6])
    assert (s.min, s.max, s.avg) == (4.0, 8.0, 6.0)


def test_stats_empty_raises():
    with pytest.raises(EmptyInputError):
        calculate_stats([])


def test_std_dev_is_population():
    assert calculate_std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)


def test_std_dev_zero_iff_constant():
    assert calculate_std_dev([0.1, 0.1, 0.1]) == 0.0
    assert calculate_std_dev([3]) == 0.0
    assert calculate_std_dev([3, 3, 3.0001]) > 0.0


def test_std_dev_empty_raises():
    with pytest.raises(EmptyInputError):
        calculate_std_dev([])


def test_sample_stats_empty_is_zero():
    assert calculate_sample_stats([]) == MemorySampleStats()
    assert calculate_sample_stats([]).rss == MemoryStats(0.0, 0.0, 0.0)


def test_sample_stats_per_dimension():
    stats = calculate_sample_stats([_sample(100, 1), _sample(200, 3)])
    assert stats.heap_used == MemoryStats(1.0, 3.0, 2.0)
    assert stats.heap_total == MemoryStats(2.0, 6.0, 4.0)
    assert stats.external == MemoryStats(3.0, 9.0, 6.0)
    assert stats.rss == MemoryStats(4.0, 12.0, 8.0)


def test_flatten_pools_all_iterations_in_order():
    raw = [
        ProcessResult(10.0, (_sample(100, 1),)),
        ProcessResult(20.0, ()),
        ProcessResult(30.0, (_sample(100, 2), _sample(200, 3))),
    ]
    assert [s.heap_used for s in flatten_samples(raw)] == [1, 2, 3]


def test_pooled_stats_underweight_short_iterations():
    # one sample at 10, three at 0: pooled average is 2.5, not 5
    raw = [
        ProcessResult(10.0, (_sample(100, 10),)),
        ProcessResult(10.0, (_sample(100, 0), _sample(200, 0), _sample(300, 0))),
    ]
    assert calculate_sample_stats(flatten_samples(raw)).heap_used.avg == pytest.approx(2.5)


def test_aligned_stats_by_sample_index():
    raw = [
        ProcessResult(10.0, (_sample(100, 10),)),
        ProcessResult(10.0, (_sample(100, 0), _sample(200, 4))),
    ]
    aligned = calculate_aligned_sample_stats(raw)
    assert len(aligned) == 2
    assert aligned[0].heap_used.avg == pytest.approx(5.0)
    assert aligned[1].heap_used == MemoryStats(4.0, 4.0, 4.0)
    assert calculate_aligned_sample_stats([]) == []


def test_time_stats():
    s = calculate_time_stats([ProcessResult(10.0), ProcessResult(30.0)])
    assert (s.min, s.max, s.avg) == (10.0, 30.0, 20.0)


def test_summary_std_dev_three_points():
    # population std dev of {0, 6, 3}
    assert summary_std_dev(MemoryStats(min=0, max=6, avg=3)) == pytest.approx(6 ** 0.5)
    assert summary_std_dev(MemoryStats(5, 5, 5)) == 0.0
