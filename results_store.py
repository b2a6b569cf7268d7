"""JSON persistence of run results and comparisons.

Files are named ``{name}-{timestamp}.json`` where the timestamp is a UTC
ISO 8601 string with ':' and '.' replaced by '-', so the lexicographically
last file of a strategy is its most recent run.
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
import json
import logging
import os
import re

from errors import NoResultsFoundError, ResultFileError
from models import ComparisonResult, TestResult

logger = logging.getLogger(__name__)


def file_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    iso = now.strftime('%Y-%m-%dT%H:%M:%S.') + f'{now.microsecond // 1000:03d}Z'
    return re.sub(r'[:.]', '-', iso)


def _ensure_dir(path: str):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise ResultFileError(path, f'cannot create results directory: {e}') from e


def _write_json(path: str, payload) -> str:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, allow_nan=False)
    except (OSError, ValueError) as e:
        raise ResultFileError(path, f'cannot write results: {e}') from e
    return path


def save_test_result(method: str, result: TestResult, results_dir: str = 'results',
                     now: Optional[datetime] = None) -> str:
    _ensure_dir(results_dir)
    path = os.path.join(results_dir, f'{method}-{file_timestamp(now)}.json')
    return _write_json(path, result.to_dict())


def load_test_result(path: str) -> TestResult:
    """Read a result file; unreadable or malformed files raise ResultFileError."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return TestResult.from_dict(json.load(f))
    except OSError as e:
        raise ResultFileError(path, f'cannot read results: {e}') from e
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ResultFileError(path, f'malformed results: {e!r}') from e


def _result_pattern(method: str):
    return re.compile(rf'^{re.escape(method)}-\d{{4}}-\d{{2}}-\d{{2}}T.*\.json$')


def find_latest_result(method: str, results_dir: str = 'results') -> Optional[str]:
    if not os.path.isdir(results_dir):
        return None
    pattern = _result_pattern(method)
    matches = sorted(name for name in os.listdir(results_dir) if pattern.match(name))
    if not matches:
        return None
    return os.path.join(results_dir, matches[-1])


def load_latest_results(methods: Iterable[str], results_dir: str = 'results') -> Dict[str, TestResult]:
    """Most recent result per method.

    Methods without a result are skipped with a warning. Raises
    NoResultsFoundError when none of them has one.
    """
    methods = list(methods)
    results: Dict[str, TestResult] = {}
    missing: List[str] = []
    for method in methods:
        path = find_latest_result(method, results_dir)
        if path is None:
            missing.append(method)
            continue
        logger.debug('loading %s results from %s', method, path)
        results[method] = load_test_result(path)

    if not results:
        raise NoResultsFoundError(missing)
    for method in missing:
        logger.warning('No results found for %s method', method)
        print(f'Warning: no results found for {method} method')
    return results


def save_comparison(comparison: Dict[str, ComparisonResult], results_dir: str = 'results',
                    now: Optional[datetime] = None) -> str:
    _ensure_dir(results_dir)
    path = os.path.join(results_dir, f'comparison-{file_timestamp(now)}.json')
    return _write_json(path, {name: c.to_dict() for name, c in comparison.items()})
