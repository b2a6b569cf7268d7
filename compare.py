"""Cross-strategy comparison of persisted benchmark results.

Loads the most recent result of every strategy, summarises each one, picks
the strategy with the smallest memory footprint as the baseline and reports
how the others differ from it.

Usage:
    python compare.py [--results-dir results] [--plots reports]
"""
from typing import Dict, List, Optional
import argparse
import logging
import sys

from aggregation import calculate_std_dev, summary_std_dev
from errors import BenchmarkError, EmptyInputError
from models import ComparisonResult, MemoryStats, MemoryUsage, RelativePerformance, StatSummary, TestResult
from results_store import load_latest_results, save_comparison
from strategies import STRATEGIES

logger = logging.getLogger(__name__)


def _memory_summary(stats: MemoryStats) -> StatSummary:
    return StatSummary(average=stats.avg, min=stats.min, max=stats.max, std_dev=summary_std_dev(stats))


def build_comparison_result(method: str, result: TestResult) -> ComparisonResult:
    if not result.raw_results:
        raise EmptyInputError(f'{method} result has no raw iteration results')
    times = [r.time for r in result.raw_results]
    samples = result.memory_samples
    return ComparisonResult(
        method=method,
        processing_time=StatSummary(average=result.avg_time, min=result.min_time,
                                    max=result.max_time, std_dev=calculate_std_dev(times)),
        memory_usage=MemoryUsage(
            heap_used=_memory_summary(samples.heap_used),
            heap_total=_memory_summary(samples.heap_total),
            external=_memory_summary(samples.external),
            rss=_memory_summary(samples.rss),
        ),
    )


def compare_results(results: Dict[str, TestResult]) -> Dict[str, ComparisonResult]:
    return {method: build_comparison_result(method, result) for method, result in results.items()}


def total_footprint(result: ComparisonResult) -> float:
    # heap_total is reserved capacity, not usage
    mem = result.memory_usage
    return mem.heap_used.average + mem.external.average + mem.rss.average


def select_baseline(comparison: Dict[str, ComparisonResult]) -> str:
    """Strategy with the lowest footprint; equal footprints go to the first name."""
    if not comparison:
        raise EmptyInputError('cannot select a baseline from an empty comparison')
    return min(sorted(comparison), key=lambda m: total_footprint(comparison[m]))


def relative_difference(current: float, baseline: float) -> Optional[float]:
    """Signed percentage change versus baseline, or None when baseline is zero."""
    if baseline == 0:
        return None
    return (current - baseline) / baseline * 100.0


def relative_performance(comparison: Dict[str, ComparisonResult],
                         baseline: Optional[str] = None) -> List[RelativePerformance]:
    baseline = baseline or select_baseline(comparison)
    base = comparison[baseline]
    rows = []
    for method in sorted(comparison):
        if method == baseline:
            continue
        cur = comparison[method]
        deltas = {
            'processing_time': relative_difference(cur.processing_time.average, base.processing_time.average),
            'total_memory': relative_difference(total_footprint(cur), total_footprint(base)),
            'heap_used': relative_difference(cur.memory_usage.heap_used.average, base.memory_usage.heap_used.average),
            'external': relative_difference(cur.memory_usage.external.average, base.memory_usage.external.average),
            'rss': relative_difference(cur.memory_usage.rss.average, base.memory_usage.rss.average),
        }
        undefined = tuple(k for k, v in deltas.items() if v is None)
        if undefined:
            logger.info('%s vs %s: baseline is zero for %s', method, baseline, ', '.join(undefined))
        rows.append(RelativePerformance(method=method, baseline=baseline, undefined_metrics=undefined, **deltas))
    return rows


def format_percent(value: Optional[float]) -> str:
    if value is None:
        return 'undefined'
    return f"{'+' if value > 0 else ''}{value:.2f}%"


def _share(part: float, total: float) -> str:
    if total == 0:
        return 'n/a'
    return f'{part / total * 100.0:.1f}%'


def _stat_lines(label: str, s: StatSummary, indent: str = '    ') -> List[str]:
    return [
        f'  {label}:',
        f'{indent}Average: {s.average:.2f}',
        f'{indent}Min:     {s.min:.2f}',
        f'{indent}Max:     {s.max:.2f}',
        f'{indent}StdDev:  {s.std_dev:.2f}',
    ]


def format_comparison(comparison: Dict[str, ComparisonResult]) -> str:
    lines = ['', 'Performance Comparison Results:', '================================', '',
             'Processing Time (ms):', '---------------------']
    for method, data in comparison.items():
        pt = data.processing_time
        lines += ['', f'{method.upper()} Method:',
                  f'  Average: {pt.average:.2f}', f'  Min:     {pt.min:.2f}',
                  f'  Max:     {pt.max:.2f}', f'  StdDev:  {pt.std_dev:.2f}']

    lines += ['', 'Memory Usage (MB):', '------------------']
    for method, data in comparison.items():
        mem = data.memory_usage
        total = total_footprint(data)
        lines += ['', f'{method.upper()} Method:',
                  f'  Total Memory Footprint: {total:.2f} MB',
                  '  Memory Distribution:',
                  f'    Heap Used:    {mem.heap_used.average:.2f} MB ({_share(mem.heap_used.average, total)})',
                  f'    External:     {mem.external.average:.2f} MB ({_share(mem.external.average, total)})',
                  f'    RSS:          {mem.rss.average:.2f} MB ({_share(mem.rss.average, total)})',
                  '', '  Detailed Memory Stats:']
        lines += _stat_lines('Heap Used', mem.heap_used)
        lines += _stat_lines('Heap Total', mem.heap_total)
        lines += _stat_lines('External', mem.external)
        lines += _stat_lines('RSS', mem.rss)

    if comparison:
        baseline = select_baseline(comparison)
        lines += ['', 'Relative Performance:', '--------------------',
                  f'Baseline Method (lowest memory usage): {baseline.upper()}']
        for row in relative_performance(comparison, baseline):
            lines += ['', f'{row.method.upper()} vs {baseline.upper()}:',
                      f'  Processing Time: {format_percent(row.processing_time)}',
                      f'  Total Memory: {format_percent(row.total_memory)}',
                      f'  Heap Usage: {format_percent(row.heap_used)}',
                      f'  External Memory: {format_percent(row.external)}',
                      f'  RSS: {format_percent(row.rss)}']
    return '\n'.join(lines)


def print_comparison(comparison: Dict[str, ComparisonResult]) -> None:
    print(format_comparison(comparison))


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description='Compare the latest results of every resize strategy')
    p.add_argument('--results-dir', default='results')
    p.add_argument('--methods', nargs='+', choices=list(STRATEGIES), default=list(STRATEGIES),
                   help='Strategies to compare (default: all)')
    p.add_argument('--plots', metavar='DIR', help='Also write comparison charts to DIR')
    p.add_argument('--verbose', '-v', action='store_true')
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        results = load_latest_results(args.methods, args.results_dir)
        comparison = compare_results(results)
        print_comparison(comparison)
        out = save_comparison(comparison, args.results_dir)
    except BenchmarkError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    print(f'\nComparison results saved to: {out}')

    if args.plots:
        from visualization import create_comparison_visualizations
        paths = create_comparison_visualizations(comparison, results, output_dir=args.plots)
        for path in paths:
            print('Wrote', path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
