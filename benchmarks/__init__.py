"""
Benchmarking utilities for readercore extraction throughput.

``bench_extract.py`` records a run and ``compare.py`` checks it against a
stored baseline.
"""
