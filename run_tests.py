#!/usr/bin/env python3
"""
Run the imputation_toolkit test suites and print a pass/fail summary.

Usage:
    python run_tests.py                  # every suite
    python run_tests.py missingness      # one or more named suites
"""

import argparse
import os
import sys

import pytest

SUITES = {
    "basic": (["tests/test_basic.py"], "Package imports and API surface"),
    "loading": (
        ["tests/test_data_import.py", "tests/test_validation.py",
         "tests/test_preprocessing.py", "tests/test_normalization.py"],
        "Loading, validation, filtering and normalization",
    ),
    "missingness": (["tests/test_missingness.py"], "MCAR / MAR / MNAR simulation"),
    "imputation": (
        ["tests/test_imputation.py", "tests/test_evaluation.py"],
        "Imputation strategies and accuracy metrics",
    ),
    "outputs": (
        ["tests/test_export.py", "tests/test_visualization.py", "tests/test_config.py"],
        "CSV export, plots and configuration",
    ),
    "pipeline": (
        ["tests/test_pipeline.py", "tests/test_cli.py"],
        "End-to-end pipeline and command line",
    ),
}


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("suites", nargs="*", metavar="SUITE",
                        help=f"Suites to run: {', '.join(SUITES)} (default: all)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Less pytest output")
    args = parser.parse_args(argv)
    unknown = [name for name in args.suites if name not in SUITES]
    if unknown:
        parser.error(f"unknown suite(s): {', '.join(unknown)}")

    os.chdir(os.path.dirname(os.path.abspath(__file__)))
    selected = args.suites or list(SUITES)
    verbosity = "-q" if args.quiet else "-v"

    results = {}
    for name in selected:
        paths, description = SUITES[name]
        print("=" * 60)
        print(f"{name.upper()}: {description}")
        print("=" * 60)
        results[name] = pytest.main([verbosity, "--tb=short", *paths])

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    for name, code in results.items():
        print(f"  {'PASSED' if code == 0 else 'FAILED':8} {name}")

    failed = [name for name, code in results.items() if code != 0]
    print(f"\n{len(results) - len(failed)}/{len(results)} suites passed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
