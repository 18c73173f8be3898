#!/usr/bin/env python3
"""
Benchmark script for extraction throughput.

Runs the engine over a fixed set of generated article pages so results are
reproducible between runs, then writes ``benchmark_results.json`` next to
this file for ``compare.py``.

Usage: python benchmarks/bench_extract.py [document_count]
"""

import json
import statistics
import sys
import time
from pathlib import Path
from typing import Dict, List

from readercore import Readability, ReadabilityCheckFailed

SENTENCES = [
    "The committee met on Tuesday to review the proposal, which had been delayed twice.",
    "Several members raised concerns about the budget, the timeline and the staffing plan.",
    "After a long discussion the chair asked for a vote, and the motion passed narrowly.",
    "Local businesses welcomed the decision, although some residents remain unconvinced.",
    "Work is expected to begin in the spring and to finish before the end of next year.",
]


def generate_document(index: int) -> str:
    """One article page with navigation, a sidebar and a comment section."""
    paragraphs = "".join(
        f"<p>{' '.join(SENTENCES[(index + i + j) % len(SENTENCES)] for j in range(3))}</p>" for i in range(6)
    )
    links = "".join(f'<li><a href="/section/{i}">Section {i}</a></li>' for i in range(12))
    return f"""
    <html>
    <head><title>Council approves plan {index} | Example News</title></head>
    <body>
        <nav><ul>{links}</ul></nav>
        <div id="main" class="article-body">
            <h1>Council approves plan {index}</h1>
            <p class="byline">By Staff Reporter</p>
            {paragraphs}
        </div>
        <div class="sidebar"><h3>Related</h3><ul>{links}</ul></div>
        <div id="comments"><p>First!</p><p>Great article, thanks.</p></div>
    </body>
    </html>
    """


def run_benchmark(count: int = 1000) -> Dict[str, float]:
    """Run the benchmark and return performance metrics."""
    documents = [generate_document(i) for i in range(count)]
    engine = Readability()
    timings: List[float] = []
    failed = 0

    start_time = time.perf_counter()
    for html in documents:
        t0 = time.perf_counter()
        try:
            engine.extract(html, base_url="https://news.example.com/")
        except ReadabilityCheckFailed:
            failed += 1
        timings.append(time.perf_counter() - t0)
    duration = time.perf_counter() - start_time

    processed = count - failed
    return {
        "duration_seconds": duration,
        "total_documents": count,
        "processed_count": processed,
        "failed_count": failed,
        "throughput_docs_per_second": processed / duration if duration > 0 else 0.0,
        "avg_time_per_doc_ms": statistics.mean(timings) * 1000 if timings else 0.0,
        "p95_time_per_doc_ms": statistics.quantiles(timings, n=20)[-1] * 1000 if len(timings) >= 2 else 0.0,
    }


def main() -> Dict[str, float]:
    """Run benchmark and save results."""
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    print(f"Running extraction benchmark with {count} documents...")

    metrics = run_benchmark(count)

    print("\nBenchmark Results:")
    print(f"  Duration: {metrics['duration_seconds']:.2f} seconds")
    print(f"  Throughput: {metrics['throughput_docs_per_second']:.2f} documents/second")
    print(f"  Avg time per document: {metrics['avg_time_per_doc_ms']:.2f} ms")
    print(f"  p95 time per document: {metrics['p95_time_per_doc_ms']:.2f} ms")
    print(f"  Processed: {metrics['processed_count']}/{metrics['total_documents']}")
    print(f"  Failed: {metrics['failed_count']}")

    results_file = Path(__file__).parent / "benchmark_results.json"
    with open(results_file, "w") as f:
        json.dump(metrics, f, indent=2)

    print(f"\nResults saved to: {results_file}")
    return metrics


if __name__ == "__main__":
    main()
