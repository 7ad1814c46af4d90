"""Benchmarks for k-d tree construction, updates and queries."""

from .bench_kd_tree import BenchKdTree

__all__ = [
    "BenchKdTree",
]
