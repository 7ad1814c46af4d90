"""Benchmarks for k-d tree construction, updates and queries.

Compares torchpartition against a brute-force torch scan and, when scipy is
installed, scipy.spatial.cKDTree.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import numpy as np
import torch

# scipy imports - handle optional dependency
try:
    from scipy.spatial import cKDTree

    SCIPY_AVAILABLE = True
except ImportError:
    SCIPY_AVAILABLE = False

from torchpartition.geometry import box_overlaps
from torchpartition.space_partitioning import (
    k_nearest_neighbors,
    kd_tree,
    kd_tree_compact,
    kd_tree_insert,
    kd_tree_remove,
    range_search,
    region_kd_tree,
    region_search,
)


def benchmark(
    func: Callable,
    *args: Any,
    warmup: int = 3,
    iterations: int = 10,
    **kwargs: Any,
) -> dict[str, float]:
    """Time repeated calls of ``func(*args, **kwargs)``.

    Tree operations run on the CPU in Python loops, so wall-clock time of
    each call is measured directly; the first ``warmup`` calls are discarded.

    Returns
    -------
    dict
        ``mean``, ``std`` and ``best`` call time in seconds.
    """
    for _ in range(warmup):
        func(*args, **kwargs)

    times = np.empty(iterations)
    for iteration in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times[iteration] = time.perf_counter() - start

    return {
        "mean": float(times.mean()),
        "std": float(times.std()),
        "best": float(times.min()),
    }


_TIME_UNITS = [(1e-6, 1e9, "ns"), (1e-3, 1e6, "us"), (1.0, 1e3, "ms")]


def format_time(seconds: float) -> str:
    """Render a duration with the largest unit that keeps it above one."""
    for limit, scale, unit in _TIME_UNITS:
        if seconds < limit:
            return f"{seconds * scale:.3f}{unit}"
    return f"{seconds:.3f}s"


def print_comparison(
    name: str,
    tree_time: dict[str, float],
    baselines: dict[str, dict[str, float]],
) -> None:
    """Print the tree timing followed by each baseline and its ratio."""
    print(f"\n{name}")
    print("-" * len(name))
    rows = {"torchpartition": tree_time, **baselines}
    for label, timing in rows.items():
        ratio = timing["mean"] / tree_time["mean"]
        print(
            f"  {label + ':':<16}{format_time(timing['mean'])} "
            f"+/- {format_time(timing['std'])} "
            f"(best {format_time(timing['best'])}, {ratio:.2f}x)"
        )


class BenchKdTree:
    """Benchmarks for k-d tree operations."""

    def __init__(self, warmup: int = 3, iterations: int = 10, seed: int = 0):
        self.warmup = warmup
        self.iterations = iterations
        self.generator = torch.Generator().manual_seed(seed)

    def _bench(
        self, func: Callable, *args: Any, **kwargs: Any
    ) -> dict[str, float]:
        return benchmark(
            func,
            *args,
            warmup=self.warmup,
            iterations=self.iterations,
            **kwargs,
        )

    def _points(self, n: int, dimension: int) -> torch.Tensor:
        return torch.rand(
            n, dimension, generator=self.generator, dtype=torch.float64
        )

    def bench_build(self, n: int = 10000, dimension: int = 2) -> None:
        """Benchmark bulk construction."""
        points = self._points(n, dimension)
        tree_time = self._bench(kd_tree, points)

        baselines = {}
        if SCIPY_AVAILABLE:
            baselines["scipy"] = self._bench(cKDTree, points.numpy())

        print_comparison(
            f"kd_tree (n={n}, dimension={dimension})", tree_time, baselines
        )

    def bench_insert_remove(self, n: int = 2000, dimension: int = 2) -> None:
        """Benchmark incremental insertion followed by removal and compaction."""
        points = self._points(n, dimension)

        def _cycle():
            tree = kd_tree(points[:0], dimension=dimension)
            for point in points:
                kd_tree_insert(tree, point)
            for point in points[: n // 2]:
                kd_tree_remove(tree, point)
            kd_tree_compact(tree)

        print_comparison(
            f"insert/remove/compact (n={n}, dimension={dimension})",
            self._bench(_cycle),
            {},
        )

    def bench_nearest(
        self, n: int = 10000, dimension: int = 2, k: int = 8
    ) -> None:
        """Benchmark k-nearest-neighbor queries against a linear scan."""
        points = self._points(n, dimension)
        queries = self._points(100, dimension)
        tree = kd_tree(points)

        def _tree_queries():
            for query in queries:
                k_nearest_neighbors(tree, query, k)

        def _scan_queries():
            for query in queries:
                torch.topk(
                    ((points - query) ** 2).sum(dim=-1), k, largest=False
                )

        baselines = {"linear scan": self._bench(_scan_queries)}
        if SCIPY_AVAILABLE:
            reference = cKDTree(points.numpy())
            baselines["scipy"] = self._bench(
                reference.query, queries.numpy(), k
            )

        print_comparison(
            f"k_nearest_neighbors x100 (n={n}, dimension={dimension}, k={k})",
            self._bench(_tree_queries),
            baselines,
        )

    def bench_range(
        self, n: int = 10000, dimension: int = 2, width: float = 0.1
    ) -> None:
        """Benchmark box queries against a linear scan."""
        points = self._points(n, dimension)
        corners = self._points(100, dimension) * (1 - width)
        tree = kd_tree(points)

        def _tree_queries():
            for lower in corners:
                range_search(tree, (lower, lower + width))

        def _scan_queries():
            for lower in corners:
                inside = ((points >= lower) & (points <= lower + width)).all(
                    dim=-1
                )
                points[inside]

        print_comparison(
            f"range_search x100 (n={n}, dimension={dimension}, width={width})",
            self._bench(_tree_queries),
            {"linear scan": self._bench(_scan_queries)},
        )

    def bench_region(
        self, n: int = 10000, dimension: int = 2, width: float = 0.05
    ) -> None:
        """Benchmark box-versus-stored-box queries against a linear scan."""
        lower = self._points(n, dimension)
        upper = lower + self._points(n, dimension) * width
        corners = self._points(100, dimension)
        tree = region_kd_tree((lower, upper))

        def _tree_queries():
            for corner in corners:
                region_search(tree, (corner, corner + width))

        def _scan_queries():
            for corner in corners:
                box_overlaps(lower, upper, corner, corner + width).nonzero()

        print_comparison(
            f"region_search x100 (n={n}, dimension={dimension}, width={width})",
            self._bench(_tree_queries),
            {"linear scan": self._bench(_scan_queries)},
        )

    def run_all(self) -> None:
        """Run all benchmarks."""
        print("=" * 60)
        print("K-D TREE BENCHMARKS")
        print("=" * 60)

        print("\n--- Construction ---")
        self.bench_build()
        self.bench_build(dimension=3)

        print("\n--- Updates ---")
        self.bench_insert_remove()

        print("\n--- Queries ---")
        self.bench_nearest()
        self.bench_range()
        self.bench_region()

    def run_scaling(self) -> None:
        """Run scaling benchmarks with varying tree sizes."""
        print("=" * 60)
        print("SCALING BENCHMARKS")
        print("=" * 60)

        for n in [1000, 10000, 100000]:
            self.bench_nearest(n=n)


if __name__ == "__main__":
    bench = BenchKdTree(warmup=1, iterations=5)
    bench.run_all()
    print("\n")
    bench.run_scaling()
