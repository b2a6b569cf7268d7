"""Benchmark one image-resize strategy and save its results.

Runs the selected strategy for the configured number of iterations while a
background sampler records process memory, prints a summary and writes a
``{strategy}-{timestamp}.json`` result file for ``compare.py``.

Usage:
    python benchmark.py buffer --input test-images/bigger-image.jpg
    python benchmark.py path --iterations 10 --width 1280 --fit cover --height 720
"""
from typing import Optional, Dict, Any
import argparse
import logging
import os
import platform
import sys
import tracemalloc

from config import DEFAULT_CONFIG, FIT_MODES, SAMPLE_MODES, BenchmarkConfig, load_config
from errors import BenchmarkError
from executor import StrategyExecutor
from models import TestResult
from results_store import save_test_result
from runner import IterationRunner
from sampler import ResourceProbe
from strategies import STRATEGIES, ResizeOptions, get_strategy
from utils import ensure_input_image

logger = logging.getLogger(__name__)


def get_system_info() -> Dict[str, Any]:
    info = {
        'platform': platform.platform(),
        'python_version': platform.python_version(),
    }
    try:
        import psutil
        info['cpu_count'] = psutil.cpu_count(logical=True)
        info['total_ram_bytes'] = psutil.virtual_memory().total
    except Exception:
        info['cpu_count'] = None
        info['total_ram_bytes'] = None
    try:
        import PIL
        info['pillow_version'] = PIL.__version__
    except Exception:
        info['pillow_version'] = None
    try:
        import numpy as _np
        info['numpy_version'] = _np.__version__
    except Exception:
        info['numpy_version'] = None
    try:
        import cv2
        info['opencv_version'] = cv2.__version__
    except Exception:
        info['opencv_version'] = None
    return info


def format_bytes(b: Optional[int]) -> str:
    if b is None:
        return 'N/A'
    for unit in ['B', 'KB', 'MB', 'GB']:
        if abs(b) < 1024.0:
            return f"{b:3.1f} {unit}"
        b /= 1024.0
    return f"{b:.1f} TB"


def format_time(ms: Optional[float]) -> str:
    if ms is None:
        return 'N/A'
    if ms < 1000.0:
        return f"{ms:.2f}ms"
    return f"{ms / 1000.0:.3f}s"


def format_system_info(info: Dict[str, Any]) -> str:
    cpus = info.get('cpu_count') or 'N/A'
    return (f"Python {info['python_version']} on {info['platform']}, {cpus} CPUs, "
            f"{format_bytes(info.get('total_ram_bytes'))} RAM\n"
            f"Pillow {info.get('pillow_version') or 'N/A'}, numpy {info.get('numpy_version') or 'N/A'}, "
            f"OpenCV {info.get('opencv_version') or 'N/A'}")


def format_summary(result: TestResult) -> str:
    mem = result.memory_samples
    lines = ['', 'Test Summary:',
             f'Average Time: {format_time(result.avg_time)}',
             f'Min Time: {format_time(result.min_time)}',
             f'Max Time: {format_time(result.max_time)}']
    if result.failures:
        lines.append(f'Failed iterations: {len(result.failures)} (excluded from the statistics)')
    lines += ['', 'Memory Usage:']
    for label, stats in (('Heap Used', mem.heap_used), ('Heap Total', mem.heap_total),
                         ('External', mem.external), ('RSS', mem.rss)):
        lines.append(f'{label}: {stats.avg:.2f}MB (min: {stats.min:.2f}MB, max: {stats.max:.2f}MB)')
    return '\n'.join(lines)


def run_benchmark(method: str, input_path: str, output_dir: str, config: BenchmarkConfig,
                  probe=None) -> TestResult:
    """Run ``config.iterations`` iterations of one strategy and return the result."""
    strategy = get_strategy(method)
    options = ResizeOptions.from_config(config)
    output_path = None
    if strategy.writes_output:
        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, 'output' + os.path.splitext(input_path)[1])

    executor = StrategyExecutor(probe=probe or ResourceProbe(), interval=config.sample_interval,
                                mode=config.sample_mode, timeout=config.timeout_seconds)
    runner = IterationRunner(executor, progress_every=config.progress_every)

    started_tracing = False
    if config.trace_heap and not tracemalloc.is_tracing():
        tracemalloc.start()
        started_tracing = True
    try:
        return runner.run(strategy, input_path, output_path, options, config.iterations)
    finally:
        if started_tracing:
            tracemalloc.stop()


def build_config(args) -> BenchmarkConfig:
    base = load_config(args.config) if args.config else DEFAULT_CONFIG
    return base.merged(
        iterations=args.iterations,
        target_width=args.width,
        target_height=args.height,
        fit_mode=args.fit,
        allow_enlargement=True if args.allow_enlargement else None,
        sample_interval_ms=args.sample_interval_ms,
        sample_mode=args.sample_mode,
        timeout_seconds=args.timeout,
        trace_heap=False if args.no_trace_heap else None,
    ).validate()


def parse_args(argv=None):
    p = argparse.ArgumentParser(description='Benchmark one image-resize strategy')
    p.add_argument('method', choices=list(STRATEGIES), help='Strategy to benchmark')
    p.add_argument('--input', default=os.path.join('test-images', 'bigger-image.jpg'), help='Input image path')
    p.add_argument('--generate-input', action='store_true', help='Create a synthetic input image if missing')
    p.add_argument('--output-dir', default='output')
    p.add_argument('--results-dir', default='results')
    p.add_argument('--config', help='JSON config file')
    p.add_argument('--iterations', type=int)
    p.add_argument('--width', type=int)
    p.add_argument('--height', type=int)
    p.add_argument('--fit', choices=FIT_MODES)
    p.add_argument('--allow-enlargement', action='store_true')
    p.add_argument('--sample-interval-ms', type=float)
    p.add_argument('--sample-mode', choices=SAMPLE_MODES)
    p.add_argument('--timeout', type=float, help='Per-iteration timeout in seconds')
    p.add_argument('--no-trace-heap', action='store_true', help='Do not trace the Python heap')
    p.add_argument('--verbose', '-v', action='store_true')
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        config = build_config(args)
        input_path = ensure_input_image(args.input, generate=args.generate_input)
        print(f'Running {args.method} test...')
        print(f'Input image: {input_path} ({format_bytes(os.path.getsize(input_path))})')
        print(format_system_info(get_system_info()))
        result = run_benchmark(args.method, input_path, args.output_dir, config)
        out = save_test_result(args.method, result, args.results_dir)
    except BenchmarkError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    print(f'\nResults saved to: {out}')
    print(format_summary(result))
    return 0


if __name__ == '__main__':
    sys.exit(main())
