"""Runs a strategy N times and reduces the iterations into a ``TestResult``."""
from typing import List, Optional
import logging

from aggregation import calculate_sample_stats, calculate_time_stats, flatten_samples
from errors import ConfigurationError, WorkUnitError, WorkUnitTimeoutError
from executor import StrategyExecutor
from models import ProcessResult, TestResult
from strategies import ResizeOptions, ResizeStrategy

logger = logging.getLogger(__name__)


def build_test_result(raw_results: List[ProcessResult], failures=()) -> TestResult:
    """Reduce successful iterations; memory stats pool every sample of every iteration."""
    times = calculate_time_stats(raw_results)
    return TestResult(
        avg_time=times.avg,
        min_time=times.min,
        max_time=times.max,
        memory_samples=calculate_sample_stats(flatten_samples(raw_results)),
        raw_results=tuple(raw_results),
        failures=tuple(failures),
    )


class IterationRunner:
    """Serial iteration loop for one strategy.

    A failed iteration is recorded in ``TestResult.failures`` and left out of
    every aggregate; the run only fails when no iteration succeeds.
    A timeout ends the run so no two work units ever overlap.
    """

    def __init__(self, executor: Optional[StrategyExecutor] = None, progress_every: int = 100):
        self.executor = executor or StrategyExecutor()
        self.progress_every = progress_every

    def _report_progress(self, done: int, iterations: int, results: List[ProcessResult]):
        recent = results[-self.progress_every:]
        rolling = sum(r.time for r in recent) / len(recent) if recent else 0.0
        progress = done / iterations * 100.0
        logger.info('progress %.1f%%, last %d avg %.2fms', progress, len(recent), rolling)
        print(f'Progress: {progress:.1f}% | Last {len(recent)} avg: {rolling:.2f}ms')

    def run(self, strategy: ResizeStrategy, input_path: str, output_path: Optional[str],
            options: ResizeOptions, iterations: int) -> TestResult:
        if iterations < 1:
            raise ConfigurationError(f'iterations must be a positive integer, got {iterations!r}')

        results: List[ProcessResult] = []
        failures: List[str] = []
        for i in range(iterations):
            strategy.clear_cache()
            try:
                results.append(self.executor.run_once(strategy, input_path, output_path, options))
            except WorkUnitTimeoutError:
                logger.error('iteration %d of %s timed out, stopping the run', i + 1, strategy.name)
                raise
            except WorkUnitError as e:
                logger.warning('iteration %d of %s skipped: %s', i + 1, strategy.name, e)
                failures.append(str(e))
            if (i + 1) % self.progress_every == 0:
                self._report_progress(i + 1, iterations, results)

        if not results:
            raise WorkUnitError(f'all {iterations} iterations of {strategy.name} failed: {failures[-1]}')
        if failures:
            logger.warning('%s: %d of %d iterations failed', strategy.name, len(failures), iterations)
        return build_test_result(results, failures)
