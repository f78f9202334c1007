"""Developer tooling for fluidxml."""

from .benchmarks import (
    BenchmarkResult,
    BenchmarkSuite,
    TraversalBenchmark,
    build_attribute_heavy_tree,
    build_balanced_tree,
    build_deep_tree,
    build_wide_tree,
)

__all__ = [
    "BenchmarkResult",
    "BenchmarkSuite",
    "TraversalBenchmark",
    "build_attribute_heavy_tree",
    "build_balanced_tree",
    "build_deep_tree",
    "build_wide_tree",
]
