"""Statistics reductions over iteration times and memory samples.

All functions are pure. Reductions over an empty series raise
``EmptyInputError``, except ``calculate_sample_stats`` which returns all-zero
stats for an empty sample pool (a run whose work unit finished before the
first sampler tick has no samples).
"""
from typing import Iterable, List, Sequence

import numpy as np

from errors import EmptyInputError
from models import DIMENSIONS, MemorySample, MemorySampleStats, MemoryStats, ProcessResult


def _as_array(values: Iterable[float], what: str) -> np.ndarray:
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        raise EmptyInputError(f'cannot compute {what} of an empty series')
    return arr


def calculate_stats(values: Iterable[float]) -> MemoryStats:
    arr = _as_array(values, 'stats')
    lo, hi = float(arr.min()), float(arr.max())
    # float rounding in the mean must not push it outside [min, max]
    avg = min(max(float(arr.mean()), lo), hi)
    return MemoryStats(min=lo, max=hi, avg=avg)


def calculate_std_dev(values: Iterable[float]) -> float:
    """Population standard deviation (divides by N)."""
    arr = _as_array(values, 'standard deviation')
    if np.all(arr == arr[0]):
        return 0.0
    return float(np.std(arr, ddof=0))


def calculate_sample_stats(samples: Sequence[MemorySample]) -> MemorySampleStats:
    """Per-dimension stats over a pool of samples; all zeros when the pool is empty."""
    if len(samples) == 0:
        return MemorySampleStats()
    return MemorySampleStats(**{
        dim: calculate_stats(getattr(s, dim) for s in samples) for dim in DIMENSIONS
    })


def flatten_samples(raw_results: Iterable[ProcessResult]) -> List[MemorySample]:
    """Pool every sample of every iteration, in iteration then timestamp order."""
    return [s for r in raw_results for s in r.samples]


def calculate_aligned_sample_stats(raw_results: Sequence[ProcessResult]) -> List[MemorySampleStats]:
    """Stats of sample #k across iterations, one entry per sample index.

    Iterations shorter than index k do not contribute to it.
    """
    longest = max((len(r.samples) for r in raw_results), default=0)
    aligned = []
    for k in range(longest):
        column = [r.samples[k] for r in raw_results if len(r.samples) > k]
        aligned.append(calculate_sample_stats(column))
    return aligned


def calculate_time_stats(raw_results: Sequence[ProcessResult]) -> MemoryStats:
    return calculate_stats(r.time for r in raw_results)


def summary_std_dev(stats: MemoryStats) -> float:
    """Std dev of the {min, max, avg} triple.

    A coarse spread indicator used for memory dimensions, not the variance of
    the underlying samples.
    """
    return calculate_std_dev([stats.min, stats.max, stats.avg])
