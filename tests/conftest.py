import threading
import time

import pytest

from models import MemoryReading, MemorySample, MemorySampleStats, MemoryStats, ProcessResult, TestResult
from strategies import ResizeStrategy


class FakeProbe:
    """Probe returning a fixed reading and counting how often it was read."""

    def __init__(self, reading=MemoryReading(10, 20, 30, 40)):
        self.reading = reading
        self.calls = 0
        self._lock = threading.Lock()

    def read(self):
        with self._lock:
            self.calls += 1
        return self.reading


class SleepStrategy(ResizeStrategy):
    """Work unit that only sleeps, optionally failing on chosen iterations."""
    name = 'sleep'

    def __init__(self, duration=0.01, fail_on=()):
        self.duration = duration
        self.fail_on = set(fail_on)
        self.calls = 0
        self.cache_clears = 0

    def execute(self, input_path, output_path, options):
        self.calls += 1
        time.sleep(self.duration)
        if self.calls in self.fail_on:
            raise OSError(f'cannot read {input_path}')
        return 0

    def clear_cache(self):
        self.cache_clears += 1


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def jpeg_image(tmp_path):
    from PIL import Image
    img = Image.new('RGB', (400, 300), color=(200, 120, 40))
    # some structure so the encoder has real work
    for x in range(0, 400, 20):
        for y in range(300):
            img.putpixel((x, y), (0, 0, 0))
    p = tmp_path / 'input.jpg'
    img.save(str(p), format='JPEG')
    return str(p)


def make_test_result(heap_used, external, rss, heap_total=100.0, times=(100.0, 120.0)):
    """TestResult whose memory stats are flat at the given averages."""
    def flat(v):
        return MemoryStats(min=v, max=v, avg=v)
    raw = tuple(ProcessResult(time=t, samples=(MemorySample(100, int(heap_used), int(heap_total), int(external), int(rss)),))
                for t in times)
    return TestResult(
        avg_time=sum(times) / len(times),
        min_time=min(times),
        max_time=max(times),
        memory_samples=MemorySampleStats(heap_used=flat(heap_used), heap_total=flat(heap_total),
                                         external=flat(external), rss=flat(rss)),
        raw_results=raw,
    )
