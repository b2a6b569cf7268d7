from datetime import datetime, timezone
import json
import os

import pytest

from conftest import make_test_result
from errors import NoResultsFoundError, ResultFileError
from models import MemorySample, ProcessResult, TestResult
from results_store import (
    file_timestamp,
    find_latest_result,
    load_latest_results,
    load_test_result,
    save_test_result,
)

NOW = datetime(2026, 10, 19, 12, 30, 45, 123456, tzinfo=timezone.utc)


def test_file_timestamp_format():
    assert file_timestamp(NOW) == '2026-10-19T12-30-45-123Z'


def test_save_names_file_by_method_and_time(tmp_path):
    path = save_test_result('buffer', make_test_result(1.0, 2.0, 3.0), str(tmp_path), now=NOW)
    assert os.path.basename(path) == 'buffer-2026-10-19T12-30-45-123Z.json'


def test_round_trip(tmp_path):
    raw = (
        ProcessResult(time=123.456789, samples=(MemorySample(100, 1, 2, 3, 4), MemorySample(200, 5, 6, 7, 8))),
        ProcessResult(time=98.7, samples=()),
    )
    from runner import build_test_result
    original = build_test_result(list(raw), failures=['iteration failed'])
    path = save_test_result('stream', original, str(tmp_path), now=NOW)
    loaded = load_test_result(path)
    assert loaded == original
    assert loaded.avg_time == pytest.approx(original.avg_time)


def test_persisted_layout_uses_camel_case(tmp_path):
    path = save_test_result('path', make_test_result(1.0, 2.0, 3.0), str(tmp_path), now=NOW)
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    assert set(data) >= {'avgTime', 'minTime', 'maxTime', 'memorySamples', 'rawResults'}
    assert set(data['memorySamples']) == {'heapUsed', 'heapTotal', 'external', 'rss'}
    assert set(data['rawResults'][0]['samples'][0]) == {'timestamp', 'heapUsed', 'heapTotal', 'external', 'rss'}


def test_loading_file_without_failures_field(tmp_path):
    data = make_test_result(1.0, 2.0, 3.0).to_dict()
    del data['failures']
    assert TestResult.from_dict(data).failures == ()


def test_latest_file_wins(tmp_path):
    older = save_test_result('path', make_test_result(1.0, 1.0, 1.0), str(tmp_path),
                             now=datetime(2026, 1, 1, tzinfo=timezone.utc))
    newer = save_test_result('path', make_test_result(9.0, 9.0, 9.0), str(tmp_path), now=NOW)
    assert older != newer
    assert find_latest_result('path', str(tmp_path)) == newer
    assert load_latest_results(['path'], str(tmp_path))['path'].memory_samples.rss.avg == 9.0


@pytest.mark.edge
def test_prefix_of_other_strategy_not_matched(tmp_path):
    save_test_result('sequential-stream', make_test_result(1.0, 1.0, 1.0), str(tmp_path), now=NOW)
    (tmp_path / 'stream-notes.txt').write_text('x', encoding='utf-8')
    assert find_latest_result('stream', str(tmp_path)) is None
    assert find_latest_result('sequential-stream', str(tmp_path)) is not None


def test_missing_methods_are_skipped(tmp_path):
    save_test_result('buffer', make_test_result(1.0, 1.0, 1.0), str(tmp_path), now=NOW)
    results = load_latest_results(['buffer', 'stream'], str(tmp_path))
    assert list(results) == ['buffer']


def test_no_results_at_all(tmp_path):
    with pytest.raises(NoResultsFoundError) as exc:
        load_latest_results(['buffer', 'path'], str(tmp_path))
    assert exc.value.missing == ['buffer', 'path']
    assert 'buffer, path' in str(exc.value)


@pytest.mark.edge
@pytest.mark.parametrize('content', [
    '{"avgTime": 1',
    '{"avgTime": 1, "minTime": 1}',
    '{"avgTime": "fast", "minTime": 1, "maxTime": 1, "memorySamples": {}, "rawResults": []}',
    '[]',
])
def test_malformed_result_file(tmp_path, content):
    path = tmp_path / 'buffer-2099-01-01T00-00-00-000Z.json'
    path.write_text(content, encoding='utf-8')
    with pytest.raises(ResultFileError) as exc:
        load_test_result(str(path))
    assert exc.value.path == str(path)
    assert exc.value.__cause__ is not None


@pytest.mark.edge
def test_unwritable_results_dir(tmp_path):
    blocker = tmp_path / 'results'
    blocker.write_text('not a directory', encoding='utf-8')
    with pytest.raises(ResultFileError):
        save_test_result('buffer', make_test_result(1.0, 1.0, 1.0), str(blocker), now=NOW)
