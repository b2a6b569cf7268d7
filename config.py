"""Benchmark configuration: defaults, JSON loading and validation."""
from dataclasses import dataclass, asdict, replace
from typing import Optional, Dict, Any
import json
import os

from errors import ConfigurationError

FIT_MODES = ('inside', 'cover', 'contain', 'fill')
SAMPLE_MODES = ('absolute', 'relative')

# camelCase keys accepted in JSON config files
_JSON_KEYS = {
    'iterations': 'iterations',
    'targetWidth': 'target_width',
    'targetHeight': 'target_height',
    'fitMode': 'fit_mode',
    'allowEnlargement': 'allow_enlargement',
    'sampleIntervalMs': 'sample_interval_ms',
    'sampleMode': 'sample_mode',
    'progressEvery': 'progress_every',
    'timeoutSeconds': 'timeout_seconds',
    'traceHeap': 'trace_heap',
}


@dataclass(frozen=True)
class BenchmarkConfig:
    iterations: int = 50
    target_width: int = 1920
    target_height: Optional[int] = None
    fit_mode: str = 'inside'
    allow_enlargement: bool = False
    sample_interval_ms: int = 100
    sample_mode: str = 'absolute'
    progress_every: int = 100
    timeout_seconds: Optional[float] = None
    trace_heap: bool = True

    @property
    def sample_interval(self) -> float:
        """Sampler period in seconds."""
        return self.sample_interval_ms / 1000.0

    def validate(self) -> 'BenchmarkConfig':
        if not isinstance(self.iterations, int) or self.iterations < 1:
            raise ConfigurationError(f'iterations must be a positive integer, got {self.iterations!r}')
        if not isinstance(self.target_width, int) or self.target_width < 1:
            raise ConfigurationError(f'targetWidth must be a positive integer, got {self.target_width!r}')
        if self.target_height is not None and (not isinstance(self.target_height, int) or self.target_height < 1):
            raise ConfigurationError(f'targetHeight must be a positive integer, got {self.target_height!r}')
        if self.fit_mode not in FIT_MODES:
            raise ConfigurationError(f"fitMode must be one of {', '.join(FIT_MODES)}, got {self.fit_mode!r}")
        if not isinstance(self.allow_enlargement, bool):
            raise ConfigurationError('allowEnlargement must be a boolean')
        if not isinstance(self.sample_interval_ms, (int, float)) or self.sample_interval_ms <= 0:
            raise ConfigurationError(f'sampleIntervalMs must be positive, got {self.sample_interval_ms!r}')
        if self.sample_mode not in SAMPLE_MODES:
            raise ConfigurationError(f"sampleMode must be one of {', '.join(SAMPLE_MODES)}, got {self.sample_mode!r}")
        if not isinstance(self.progress_every, int) or self.progress_every < 1:
            raise ConfigurationError(f'progressEvery must be a positive integer, got {self.progress_every!r}')
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError(f'timeoutSeconds must be positive, got {self.timeout_seconds!r}')
        return self

    def merged(self, **overrides) -> 'BenchmarkConfig':
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        fields = asdict(self)
        return {json_key: fields[attr] for json_key, attr in _JSON_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BenchmarkConfig':
        unknown = sorted(set(data) - set(_JSON_KEYS))
        if unknown:
            raise ConfigurationError(f"Unknown configuration option(s): {', '.join(unknown)}")
        kwargs = {_JSON_KEYS[k]: v for k, v in data.items()}
        return cls(**kwargs).validate()


DEFAULT_CONFIG = BenchmarkConfig()


def load_config(path: str) -> BenchmarkConfig:
    """Load a JSON config file on top of the defaults.

    Raises ConfigurationError when the file is missing, unparsable or invalid.
    """
    if not os.path.exists(path):
        raise ConfigurationError(f'Config file not found: {path}')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f'Config file {path} is not valid JSON: {e}') from e
    if not isinstance(data, dict):
        raise ConfigurationError(f'Config file {path} must contain a JSON object')
    merged = DEFAULT_CONFIG.to_dict()
    merged.update(data)
    return BenchmarkConfig.from_dict(merged)
