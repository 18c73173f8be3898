#!/usr/bin/env python3
"""
Compare benchmark results against baseline performance.

Usage: python benchmarks/compare.py [threshold_percentage] [benchmarks_dir]

Exits with code 0 if throughput retention is >= threshold, 1 otherwise.
"""

import json
import sys
from pathlib import Path


def load_json(filepath: Path) -> dict:
    """Load JSON data from file."""
    with open(filepath, "r") as f:
        return json.load(f)


def throughput(results: dict) -> float:
    return float(results.get("throughput_docs_per_second", 0))


def calculate_retention(baseline: dict, current: dict) -> float:
    """
    Calculate performance retention percentage.

    Higher throughput is better, so retention = (current / baseline) * 100
    """
    baseline_throughput = throughput(baseline)
    if baseline_throughput == 0:
        return 100.0
    return (throughput(current) / baseline_throughput) * 100


def main():
    """Main comparison function."""
    threshold = 95.0
    if len(sys.argv) > 1:
        try:
            threshold = float(sys.argv[1])
        except ValueError:
            print(f"Error: Invalid threshold value '{sys.argv[1]}'", file=sys.stderr)
            sys.exit(1)

    benchmarks_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(__file__).parent
    baseline_file = benchmarks_dir / "baseline.json"
    results_file = benchmarks_dir / "benchmark_results.json"

    if not baseline_file.exists():
        print(f"Error: Baseline file not found: {baseline_file}", file=sys.stderr)
        sys.exit(1)
    if not results_file.exists():
        print(f"Error: Results file not found: {results_file}", file=sys.stderr)
        print("Please run 'python benchmarks/bench_extract.py' first", file=sys.stderr)
        sys.exit(1)

    baseline = load_json(baseline_file)
    current = load_json(results_file)
    retention = calculate_retention(baseline, current)

    print("=== Benchmark Comparison Report ===")
    print(f"Baseline throughput: {throughput(baseline):.2f} documents/sec")
    print(f"Current throughput:  {throughput(current):.2f} documents/sec")
    print(f"Performance retention: {retention:.1f}%")
    print(f"Required threshold: {threshold:.1f}%")

    for key in ("avg_time_per_doc_ms", "p95_time_per_doc_ms"):
        if key in baseline and key in current:
            print(f"  {key}: {current[key]:.3f} vs {baseline[key]:.3f} baseline")

    print("=" * 35)

    if retention >= threshold:
        print(f"\nBENCHMARK PASSED: Throughput retention {retention:.1f}% >= {threshold:.1f}% - OK")
        sys.exit(0)

    print(
        f"\nBENCHMARK FAILED: Throughput retention {retention:.1f}% < {threshold:.1f}% - NOT OK",
        file=sys.stderr,
    )
    print(
        f"Performance degradation detected! Current throughput is only {retention:.1f}% of baseline.",
        file=sys.stderr,
    )
    sys.exit(1)


if __name__ == "__main__":
    main()
