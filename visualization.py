"""Charts for comparison reports.

matplotlib is imported lazily; when it is missing the functions return an
empty list instead of failing the report.
"""
from typing import Dict, List, Optional
import os

from compare import total_footprint
from models import ComparisonResult, TestResult


def _pyplot():
    try:
        import matplotlib
        matplotlib.use('Agg')
        import matplotlib.pyplot as plt
    except Exception:
        return None
    return plt


def plot_processing_times(comparison: Dict[str, ComparisonResult], output_dir: str) -> Optional[str]:
    plt = _pyplot()
    if plt is None or not comparison:
        return None
    methods = list(comparison)
    avgs = [comparison[m].processing_time.average for m in methods]
    errs = [comparison[m].processing_time.std_dev for m in methods]
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.bar(methods, avgs, yerr=errs, capsize=4, color='tab:blue')
    ax.set_ylabel('Processing time (ms)')
    ax.set_title('Average processing time per strategy')
    fig.tight_layout()
    p = os.path.join(output_dir, 'processing_time.png')
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return p


def plot_memory_footprint(comparison: Dict[str, ComparisonResult], output_dir: str) -> Optional[str]:
    plt = _pyplot()
    if plt is None or not comparison:
        return None
    methods = list(comparison)
    heap = [comparison[m].memory_usage.heap_used.average for m in methods]
    ext = [comparison[m].memory_usage.external.average for m in methods]
    rss = [comparison[m].memory_usage.rss.average for m in methods]
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.bar(methods, heap, label='Heap used')
    ax.bar(methods, ext, bottom=heap, label='External')
    ax.bar(methods, rss, bottom=[h + e for h, e in zip(heap, ext)], label='RSS')
    for i, m in enumerate(methods):
        ax.annotate(f'{total_footprint(comparison[m]):.0f}', (i, heap[i] + ext[i] + rss[i]),
                    ha='center', va='bottom', fontsize=8)
    ax.set_ylabel('Memory (MB)')
    ax.set_title('Memory footprint per strategy')
    ax.legend()
    fig.tight_layout()
    p = os.path.join(output_dir, 'memory_footprint.png')
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return p


def plot_memory_timeline(method: str, result: TestResult, output_dir: str) -> Optional[str]:
    """RSS over time for every iteration of one strategy, one line per iteration."""
    plt = _pyplot()
    if plt is None or not any(r.samples for r in result.raw_results):
        return None
    fig, ax = plt.subplots(figsize=(6, 4))
    for r in result.raw_results:
        if r.samples:
            ax.plot([s.timestamp for s in r.samples], [s.rss for s in r.samples],
                    color='tab:orange', alpha=0.3, linewidth=1)
    ax.set_xlabel('Time since start (ms)')
    ax.set_ylabel('RSS (MB)')
    ax.set_title(f'{method}: RSS per iteration')
    fig.tight_layout()
    p = os.path.join(output_dir, f'timeline_{method}.png')
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return p


def create_comparison_visualizations(comparison: Dict[str, ComparisonResult],
                                     results: Optional[Dict[str, TestResult]] = None,
                                     output_dir: str = 'benchmark_reports') -> List[str]:
    if _pyplot() is None:
        return []
    os.makedirs(output_dir, exist_ok=True)
    paths = [plot_processing_times(comparison, output_dir), plot_memory_footprint(comparison, output_dir)]
    for method, result in (results or {}).items():
        paths.append(plot_memory_timeline(method, result, output_dir))
    return [p for p in paths if p]
