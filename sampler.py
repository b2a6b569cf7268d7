"""Process memory probe and a background sampler that records it.

``ResourceProbe`` reads the process memory counters. ``MemorySampler`` runs
a probe on a daemon thread at a fixed period while some workload executes:

    with MemorySampler(ResourceProbe(), interval=0.1) as sampler:
        do_work()
    samples = sampler.samples

Ticks are scheduled at ``start + k * interval`` (k >= 1), so a workload that
finishes at 250 ms with a 100 ms interval yields the 100 ms and 200 ms
samples. A tick that is already recording when ``stop()`` is called still
lands; nothing is recorded after ``stop()`` returns.
"""
from typing import Any, Callable, List, Optional, Tuple
import logging
import threading
import time
import tracemalloc

import psutil

from config import SAMPLE_MODES
from errors import ConfigurationError, ResourceUnavailableError
from models import MemoryReading, MemorySample

logger = logging.getLogger(__name__)

_MB = 1024.0 * 1024.0


def to_megabytes(num_bytes: float) -> int:
    """Whole megabytes, rounded half to even."""
    return int(round(num_bytes / _MB))


class ResourceProbe:
    """Reads heap used, heap reserved, external and resident memory.

    heap_used is what tracemalloc currently traces (the Python heap), so it is
    only available while tracing is on. heap_total is the reserved virtual
    size, rss the resident set, and external the resident memory not
    accounted for by the traced Python heap (native image buffers).
    A dimension that cannot be read is reported as 0.
    """

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()

    def _heap_used_bytes(self) -> int:
        if not tracemalloc.is_tracing():
            raise ResourceUnavailableError('tracemalloc is not tracing')
        current, _peak = tracemalloc.get_traced_memory()
        return current

    def _memory_info(self):
        try:
            return self._process.memory_info()
        except (psutil.Error, OSError) as e:
            raise ResourceUnavailableError(f'memory_info unavailable: {e}') from e

    def _read_dimension(self, name: str, reader: Callable[[], Any]) -> Optional[Any]:
        try:
            return reader()
        except ResourceUnavailableError as e:
            logger.debug('memory dimension %s unavailable: %s', name, e)
            return None

    def read(self) -> MemoryReading:
        info = self._read_dimension('memory_info', self._memory_info)
        heap_used = self._read_dimension('heap_used', self._heap_used_bytes)
        rss = getattr(info, 'rss', None)
        vms = getattr(info, 'vms', None)
        external = None
        if rss is not None:
            external = max(rss - (heap_used or 0), 0)
        return MemoryReading(
            heap_used=to_megabytes(heap_used or 0),
            heap_total=to_megabytes(vms or 0),
            external=to_megabytes(external or 0),
            rss=to_megabytes(rss or 0),
        )


class MemorySampler:
    """Samples a probe on a background thread between start() and stop()."""

    def __init__(self, probe=None, interval: float = 0.1, mode: str = 'absolute',
                 clock: Callable[[], float] = time.monotonic):
        if interval <= 0:
            raise ConfigurationError(f'sample interval must be positive, got {interval!r}')
        if mode not in SAMPLE_MODES:
            raise ConfigurationError(f"sample mode must be one of {', '.join(SAMPLE_MODES)}, got {mode!r}")
        self.interval = interval
        self.mode = mode
        self._probe = probe or ResourceProbe()
        self._clock = clock
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._samples: List[MemorySample] = []
        self._thread: Optional[threading.Thread] = None
        self._start_time: Optional[float] = None
        self.baseline: Optional[MemoryReading] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def samples(self) -> Tuple[MemorySample, ...]:
        with self._lock:
            return tuple(self._samples)

    def start(self, baseline: Optional[MemoryReading] = None) -> 'MemorySampler':
        if self._thread is not None:
            raise RuntimeError('sampler already started')
        self.baseline = baseline if baseline is not None else self._probe.read()
        self._start_time = self._clock()
        self._thread = threading.Thread(target=self._run, name='memory-sampler', daemon=True)
        self._thread.start()
        return self

    def stop(self) -> Tuple[MemorySample, ...]:
        if self._thread is not None:
            self._stop.set()
            if self._thread is not threading.current_thread():
                self._thread.join()
        return self.samples

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def _wait_until(self, deadline: float) -> bool:
        """Block until ``deadline``; True if stop was requested first."""
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                return self._stop.is_set()
            if self._stop.wait(remaining):
                return True

    def _run(self):
        tick = 1
        while not self._wait_until(self._start_time + tick * self.interval):
            try:
                self._record()
            except Exception:
                logger.exception('memory sample at tick %d failed', tick)
            elapsed = self._clock() - self._start_time
            # skip ticks missed while recording instead of firing them back to back
            tick = max(tick + 1, int(elapsed // self.interval) + 1)

    def _record(self):
        reading = self._probe.read()
        timestamp = int((self._clock() - self._start_time) * 1000)
        if self.mode == 'relative':
            reading = reading.minus(self.baseline)
        sample = MemorySample.from_reading(timestamp, reading)
        with self._lock:
            self._samples.append(sample)
