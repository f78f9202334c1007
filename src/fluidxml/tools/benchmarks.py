"""Performance benchmarking for traversal and XPath templating.

Builds synthetic trees (wide, deep, balanced and attribute-heavy), times
document-order traversal over them, times template substitution, and records
process memory growth with psutil. The deep case is far deeper than the
interpreter recursion limit.
"""

import gc
import statistics
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import psutil

from fluidxml.query.templating import XPathTemplate
from fluidxml.shared import PerformanceMetrics, get_logger
from fluidxml.traversal import DocumentOrderTraverser
from fluidxml.tree.nodes import (
    NodeCategory,
    XMLAttribute,
    XMLDocument,
    XMLElement,
    XMLText,
)


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""

    operation: str
    test_case: str
    metrics: PerformanceMetrics
    success: bool
    error_message: Optional[str] = None

    @property
    def memory_used_mb(self) -> float:
        return self.metrics.memory_used_bytes / (1024 * 1024)


@dataclass
class BenchmarkSuite:
    """Collection of benchmark results with statistical analysis."""

    results: List[BenchmarkResult] = field(default_factory=list)
    suite_name: str = "Traversal Benchmark"
    timestamp: float = field(default_factory=time.time)

    def add_result(self, result: BenchmarkResult) -> None:
        self.results.append(result)

    def get_results_by_operation(self, operation: str) -> List[BenchmarkResult]:
        return [r for r in self.results if r.operation == operation]

    def get_statistics(self, operation: str, metric: str) -> Dict[str, float]:
        """Summary statistics of one metric over all runs of an operation.

        ``metric`` names a :class:`PerformanceMetrics` field or property, e.g.
        ``processing_time_ms`` or ``nodes_per_second``.
        """
        values = [
            float(getattr(r.metrics, metric))
            for r in self.get_results_by_operation(operation)
            if r.success
        ]
        if not values:
            return {}
        return {
            "min": min(values),
            "max": max(values),
            "mean": statistics.mean(values),
            "median": statistics.median(values),
            "stdev": statistics.stdev(values) if len(values) > 1 else 0.0,
            "count": len(values),
        }

    def generate_report(self) -> Dict[str, Any]:
        """Generate a report grouped by operation and test case."""
        operations = sorted({r.operation for r in self.results})
        report: Dict[str, Any] = {
            "suite_name": self.suite_name,
            "timestamp": self.timestamp,
            "total_results": len(self.results),
            "operations": operations,
            "summary": {},
            "detailed_results": {},
        }

        for operation in operations:
            runs = self.get_results_by_operation(operation)
            successful = [r for r in runs if r.success]
            report["summary"][operation] = {
                "total_runs": len(runs),
                "successful_runs": len(successful),
                "success_rate": len(successful) / len(runs) if runs else 0.0,
                "processing_time_ms": self.get_statistics(operation, "processing_time_ms"),
            }
            for result in runs:
                report["detailed_results"].setdefault(result.test_case, {})[operation] = {
                    "processing_time_ms": result.metrics.processing_time_ms,
                    "memory_used_mb": result.memory_used_mb,
                    "nodes_visited": result.metrics.nodes_visited,
                    "nodes_emitted": result.metrics.nodes_emitted,
                    "queries_rendered": result.metrics.queries_rendered,
                    "success": result.success,
                    "error": result.error_message,
                }

        return report


def build_wide_tree(width: int) -> XMLDocument:
    """Document whose root has ``width`` element children."""
    return XMLDocument(children=[
        XMLElement(tag="root", children=[XMLElement(tag="item") for _ in range(width)])
    ])


def build_deep_tree(depth: int) -> XMLDocument:
    """Document consisting of a single chain of ``depth`` nested elements."""
    node = XMLElement(tag="leaf", children=[XMLText(value="bottom")])
    for _ in range(depth - 1):
        node = XMLElement(tag="level", children=[node])
    return XMLDocument(children=[node])


def build_balanced_tree(branching: int, depth: int) -> XMLDocument:
    """Document where every element above ``depth`` has ``branching`` children."""
    root = XMLElement(tag="root")
    level = [root]
    for _ in range(depth):
        next_level = []
        for parent in level:
            for index in range(branching):
                child = XMLElement(
                    tag="node",
                    attributes=[XMLAttribute(name="index", value=str(index))],
                    children=[XMLText(value=str(index))],
                )
                child.parent = parent
                parent.children.append(child)
                next_level.append(child)
        level = next_level
    return XMLDocument(children=[root])


def build_attribute_heavy_tree(elements: int, attributes_per_element: int) -> XMLDocument:
    children = [
        XMLElement(
            tag="record",
            attributes=[
                XMLAttribute(name=f"a{position}", value=str(position))
                for position in range(attributes_per_element)
            ],
        )
        for _ in range(elements)
    ]
    return XMLDocument(children=[XMLElement(tag="records", children=children)])


class TraversalBenchmark:
    """Benchmark for the traversal engine and the XPath templater."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        warmup_runs: int = 1,
        benchmark_runs: int = 5,
        deep_tree_depth: int = 5000,
    ) -> None:
        """Initialize benchmark.

        Args:
            correlation_id: Optional correlation ID for tracking
            warmup_runs: Number of untimed runs before benchmarking
            benchmark_runs: Number of timed runs per test case
            deep_tree_depth: Nesting depth of the deep test case
        """
        if warmup_runs < 0:
            raise ValueError("warmup_runs must be >= 0")
        if benchmark_runs <= 0:
            raise ValueError("benchmark_runs must be > 0")
        if deep_tree_depth <= 0:
            raise ValueError("deep_tree_depth must be > 0")
        self.correlation_id = correlation_id
        self.warmup_runs = warmup_runs
        self.benchmark_runs = benchmark_runs
        self.deep_tree_depth = deep_tree_depth
        self.logger = get_logger(__name__, correlation_id, "benchmark")
        self.traverser = DocumentOrderTraverser(correlation_id=correlation_id)

    def _create_test_cases(self) -> Dict[str, XMLDocument]:
        return {
            "wide": build_wide_tree(10000),
            "deep": build_deep_tree(self.deep_tree_depth),
            "balanced": build_balanced_tree(branching=4, depth=6),
            "attribute_heavy": build_attribute_heavy_tree(2000, 8),
        }

    def _measure_memory_usage(self) -> int:
        """Current resident set size in bytes."""
        return psutil.Process().memory_info().rss

    def benchmark_traversal(
        self,
        test_case: str,
        document: XMLDocument,
        categories: Iterable[NodeCategory] = (),
    ) -> BenchmarkResult:
        """Time one full traversal of ``document``."""
        categories = tuple(categories)
        gc.collect()
        memory_before = self._measure_memory_usage()
        start_time = time.perf_counter()
        emitted = 0
        error_message = None
        try:
            for _ in self.traverser.traverse(document, categories):
                emitted += 1
            success = True
        except RuntimeError as e:
            success = False
            error_message = str(e)
        processing_time = (time.perf_counter() - start_time) * 1000
        memory_used = max(0, self._measure_memory_usage() - memory_before)

        visited = sum(1 for _ in self.traverser.traverse(document))
        return BenchmarkResult(
            operation="traversal",
            test_case=test_case,
            metrics=PerformanceMetrics(
                processing_time_ms=processing_time,
                memory_used_bytes=memory_used,
                nodes_visited=visited,
                nodes_emitted=emitted,
            ),
            success=success,
            error_message=error_message,
        )

    def benchmark_templating(
        self,
        template: str,
        arguments: List[str],
        iterations: int = 10000,
    ) -> BenchmarkResult:
        """Time repeated rendering of an XPath template."""
        compiled = XPathTemplate(template)
        gc.collect()
        memory_before = self._measure_memory_usage()
        start_time = time.perf_counter()
        error_message = None
        rendered = 0
        try:
            for _ in range(iterations):
                compiled.render(*arguments)
                rendered += 1
            success = True
        except ValueError as e:
            success = False
            error_message = str(e)
        processing_time = (time.perf_counter() - start_time) * 1000
        memory_used = max(0, self._measure_memory_usage() - memory_before)
        return BenchmarkResult(
            operation="templating",
            test_case=template,
            metrics=PerformanceMetrics(
                processing_time_ms=processing_time,
                memory_used_bytes=memory_used,
                queries_rendered=rendered,
            ),
            success=success,
            error_message=error_message,
        )

    def run_benchmark(self) -> BenchmarkSuite:
        """Run every traversal and templating case and collect the results."""
        suite = BenchmarkSuite()
        test_cases = self._create_test_cases()

        for name, document in test_cases.items():
            for _ in range(self.warmup_runs):
                for _ in self.traverser.traverse(document):
                    pass
            for _ in range(self.benchmark_runs):
                suite.add_result(self.benchmark_traversal(name, document))
            self.logger.info(f"Benchmarked traversal case {name}")

        template = "//PersVeh[@id = $veh and @RatedDriverRef = $driver]/Coverage"
        for _ in range(self.benchmark_runs):
            suite.add_result(self.benchmark_templating(template, ["Veh1", "Drv1"]))

        self.logger.info(
            "Benchmark suite completed",
            extra={"total_results": len(suite.results)},
        )
        return suite
