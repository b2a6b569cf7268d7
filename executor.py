"""Times a single strategy invocation while the memory sampler runs."""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional
import gc
import logging
import time

from errors import WorkUnitError, WorkUnitTimeoutError
from models import ProcessResult
from sampler import MemorySampler, ResourceProbe
from strategies import ResizeOptions, ResizeStrategy

logger = logging.getLogger(__name__)


class StrategyExecutor:
    """Runs one iteration of a strategy under a fresh ``MemorySampler``.

    ``stabilize`` is called before the baseline reading to settle memory
    (a full garbage collection by default); pass None to skip it.
    ``timeout`` bounds a single invocation in seconds. An overrun raises
    ``WorkUnitTimeoutError`` while the work unit is still running.
    """

    def __init__(self, probe=None, interval: float = 0.1, mode: str = 'absolute',
                 stabilize: Optional[Callable[[], object]] = gc.collect,
                 timeout: Optional[float] = None):
        self.probe = probe or ResourceProbe()
        self.interval = interval
        self.mode = mode
        self.stabilize = stabilize
        self.timeout = timeout

    def _invoke(self, strategy: ResizeStrategy, input_path, output_path, options):
        if self.timeout is None:
            return strategy.execute(input_path, output_path, options)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f'work-{strategy.name}')
        try:
            future = pool.submit(strategy.execute, input_path, output_path, options)
            try:
                return future.result(timeout=self.timeout)
            except FutureTimeout as e:
                raise WorkUnitTimeoutError(
                    f'{strategy.name} did not finish within {self.timeout}s on {input_path}') from e
        finally:
            # a timed out work unit cannot be interrupted; leave it to finish on its own
            pool.shutdown(wait=False)

    def run_once(self, strategy: ResizeStrategy, input_path: str, output_path: Optional[str],
                 options: ResizeOptions) -> ProcessResult:
        if self.stabilize is not None:
            self.stabilize()
        baseline = self.probe.read()
        sampler = MemorySampler(self.probe, interval=self.interval, mode=self.mode)
        sampler.start(baseline)
        try:
            start = time.perf_counter_ns()
            output_size = self._invoke(strategy, input_path, output_path, options)
            end = time.perf_counter_ns()
        except WorkUnitTimeoutError:
            raise
        except Exception as e:
            raise WorkUnitError(f'{strategy.name} failed on {input_path}: {e}') from e
        finally:
            samples = sampler.stop()
        logger.debug('%s produced %s bytes with %d samples', strategy.name, output_size, len(samples))
        return ProcessResult(time=(end - start) / 1_000_000, samples=samples)
