#!/usr/bin/env python3
"""Test runner with simple CLI flags.

Supported flags:
  --coverage         enable coverage of the harness modules (default)
  --html             produce HTML coverage report in test_reports/coverage_html
  --xml              produce XML coverage report (coverage.xml in test_reports)
  --edge-cases-only  run only tests marked with 'edge'
  --integration-only run only integration tests (marked 'integration')
  --fast             skip integration tests (they run real resizes)
  --ci               run in CI mode (emits junit xml)

Examples:
  python run_tests.py --html --xml
  python run_tests.py --fast
"""
import argparse
import os
import subprocess
import sys

COVERED_MODULES = [
    'aggregation', 'benchmark', 'compare', 'config', 'errors', 'executor', 'models',
    'results_store', 'runner', 'sampler', 'strategies', 'utils', 'visualization',
]


def build_pytest_cmd(args):
    cmd = [sys.executable, "-m", "pytest"]

    if args.coverage:
        cmd += [f"--cov={m}" for m in COVERED_MODULES]
        cmd.append("--cov-config=.coveragerc")
        cov_reports = ["term-missing"]
        if args.html:
            cov_reports.append("html:test_reports/coverage_html")
        if args.xml:
            cov_reports.append("xml:test_reports/coverage.xml")
        cmd += [f"--cov-report={r}" for r in cov_reports]

    if args.edge_only:
        cmd += ["-m", "edge"]
    elif args.integration_only:
        cmd += ["-m", "integration"]
    elif args.fast:
        cmd += ["-m", "not integration"]

    if args.ci:
        cmd += ["--junitxml=test_reports/junit.xml"]

    return cmd


def parse_args(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument('--no-coverage', dest='coverage', action='store_false', help='Disable coverage')
    p.add_argument('--coverage', dest='coverage', action='store_true', help='Enable coverage (default)')
    p.set_defaults(coverage=True)
    p.add_argument('--html', action='store_true', help='Produce HTML coverage report')
    p.add_argument('--xml', action='store_true', help='Produce XML coverage report')
    p.add_argument('--edge-cases-only', dest='edge_only', action='store_true', help='Run edge-case tests only')
    p.add_argument('--integration-only', dest='integration_only', action='store_true', help='Run integration tests only')
    p.add_argument('--fast', action='store_true', help='Skip integration tests')
    p.add_argument('--ci', action='store_true', help='CI mode: produce junit xml in test_reports')
    return p.parse_args(argv)


def main():
    args = parse_args()
    os.makedirs('test_reports', exist_ok=True)
    cmd = build_pytest_cmd(args)
    print('Running:', ' '.join(cmd))
    sys.exit(subprocess.call(cmd))


if __name__ == '__main__':
    main()
