"""Result types shared by the sampler, runner, comparator and result store.

Every type is an immutable dataclass. ``to_dict``/``from_dict`` convert to
and from the camelCase JSON layout used by persisted result files.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any

DIMENSIONS = ('heap_used', 'heap_total', 'external', 'rss')
_JSON_NAMES = {
    'heap_used': 'heapUsed',
    'heap_total': 'heapTotal',
    'external': 'external',
    'rss': 'rss',
}


@dataclass(frozen=True)
class MemoryReading:
    """One probe read, whole megabytes per dimension."""
    heap_used: int = 0
    heap_total: int = 0
    external: int = 0
    rss: int = 0

    def minus(self, other: 'MemoryReading') -> 'MemoryReading':
        return MemoryReading(*(getattr(self, d) - getattr(other, d) for d in DIMENSIONS))

    def to_dict(self) -> Dict[str, Any]:
        return {_JSON_NAMES[d]: getattr(self, d) for d in DIMENSIONS}


@dataclass(frozen=True)
class MemorySample:
    timestamp: int
    heap_used: int
    heap_total: int
    external: int
    rss: int

    @classmethod
    def from_reading(cls, timestamp: int, reading: MemoryReading) -> 'MemorySample':
        return cls(timestamp, reading.heap_used, reading.heap_total, reading.external, reading.rss)

    def to_dict(self) -> Dict[str, Any]:
        d = {'timestamp': self.timestamp}
        d.update({_JSON_NAMES[k]: getattr(self, k) for k in DIMENSIONS})
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemorySample':
        return cls(timestamp=data['timestamp'], **{k: data[_JSON_NAMES[k]] for k in DIMENSIONS})


@dataclass(frozen=True)
class MemoryStats:
    min: float
    max: float
    avg: float

    def to_dict(self) -> Dict[str, Any]:
        return {'min': self.min, 'max': self.max, 'avg': self.avg}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryStats':
        return cls(min=float(data['min']), max=float(data['max']), avg=float(data['avg']))


ZERO_STATS = MemoryStats(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class MemorySampleStats:
    heap_used: MemoryStats = ZERO_STATS
    heap_total: MemoryStats = ZERO_STATS
    external: MemoryStats = ZERO_STATS
    rss: MemoryStats = ZERO_STATS

    def to_dict(self) -> Dict[str, Any]:
        return {_JSON_NAMES[d]: getattr(self, d).to_dict() for d in DIMENSIONS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemorySampleStats':
        return cls(**{d: MemoryStats.from_dict(data[_JSON_NAMES[d]]) for d in DIMENSIONS})


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one iteration: wall time in ms plus the samples taken."""
    time: float
    samples: Tuple[MemorySample, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.time, 'samples': [s.to_dict() for s in self.samples]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessResult':
        return cls(time=float(data['time']), samples=tuple(MemorySample.from_dict(s) for s in data.get('samples', [])))


@dataclass(frozen=True)
class TestResult:
    """Outcome of N iterations of one strategy."""
    __test__ = False  # not a pytest test class

    avg_time: float
    min_time: float
    max_time: float
    memory_samples: MemorySampleStats
    raw_results: Tuple[ProcessResult, ...]
    failures: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'avgTime': self.avg_time,
            'minTime': self.min_time,
            'maxTime': self.max_time,
            'memorySamples': self.memory_samples.to_dict(),
            'rawResults': [r.to_dict() for r in self.raw_results],
            'failures': list(self.failures),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TestResult':
        return cls(
            avg_time=float(data['avgTime']),
            min_time=float(data['minTime']),
            max_time=float(data['maxTime']),
            memory_samples=MemorySampleStats.from_dict(data['memorySamples']),
            raw_results=tuple(ProcessResult.from_dict(r) for r in data.get('rawResults', [])),
            failures=tuple(data.get('failures', [])),
        )


@dataclass(frozen=True)
class StatSummary:
    average: float
    min: float
    max: float
    std_dev: float

    def to_dict(self) -> Dict[str, Any]:
        return {'average': self.average, 'min': self.min, 'max': self.max, 'stdDev': self.std_dev}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StatSummary':
        return cls(average=data['average'], min=data['min'], max=data['max'], std_dev=data['stdDev'])


@dataclass(frozen=True)
class MemoryUsage:
    heap_used: StatSummary
    heap_total: StatSummary
    external: StatSummary
    rss: StatSummary

    def to_dict(self) -> Dict[str, Any]:
        return {_JSON_NAMES[d]: getattr(self, d).to_dict() for d in DIMENSIONS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryUsage':
        return cls(**{d: StatSummary.from_dict(data[_JSON_NAMES[d]]) for d in DIMENSIONS})


@dataclass(frozen=True)
class ComparisonResult:
    method: str
    processing_time: StatSummary
    memory_usage: MemoryUsage

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'processingTime': self.processing_time.to_dict(),
            'memoryUsage': self.memory_usage.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComparisonResult':
        return cls(
            method=data['method'],
            processing_time=StatSummary.from_dict(data['processingTime']),
            memory_usage=MemoryUsage.from_dict(data['memoryUsage']),
        )


@dataclass(frozen=True)
class RelativePerformance:
    """Signed percentage deltas versus the baseline; None means undefined."""
    method: str
    baseline: str
    processing_time: Optional[float]
    total_memory: Optional[float]
    heap_used: Optional[float]
    external: Optional[float]
    rss: Optional[float]
    undefined_metrics: Tuple[str, ...] = field(default=())
