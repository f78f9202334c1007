"""Tests for traversal and templating benchmarks."""

import sys
from unittest.mock import Mock, patch

import pytest

from fluidxml.shared import PerformanceMetrics
from fluidxml.tools.benchmarks import (
    BenchmarkResult,
    BenchmarkSuite,
    TraversalBenchmark,
    build_attribute_heavy_tree,
    build_balanced_tree,
    build_deep_tree,
    build_wide_tree,
)
from fluidxml.traversal import descendants
from fluidxml.tree import NodeCategory


def make_result(operation="traversal", test_case="wide", time_ms=10.0, success=True):
    return BenchmarkResult(
        operation=operation,
        test_case=test_case,
        metrics=PerformanceMetrics(
            processing_time_ms=time_ms,
            memory_used_bytes=2 * 1024 * 1024,
            nodes_visited=100,
            nodes_emitted=100,
        ),
        success=success,
        error_message=None if success else "failed",
    )


class TestBenchmarkResult:
    """Test benchmark result data structure."""

    def test_benchmark_result_creation(self):
        """Test basic benchmark result creation."""
        result = make_result()

        assert result.operation == "traversal"
        assert result.test_case == "wide"
        assert result.success is True
        assert result.error_message is None
        assert result.metrics.nodes_per_second == 10000.0

    def test_memory_used_mb(self):
        """Test byte to megabyte conversion."""
        assert make_result().memory_used_mb == 2.0


class TestBenchmarkSuite:
    """Test benchmark suite aggregation and reporting."""

    def test_results_by_operation(self):
        """Test filtering results by operation."""
        suite = BenchmarkSuite()
        suite.add_result(make_result("traversal"))
        suite.add_result(make_result("templating", "//a"))
        suite.add_result(make_result("traversal", "deep"))

        assert len(suite.get_results_by_operation("traversal")) == 2
        assert len(suite.get_results_by_operation("templating")) == 1
        assert suite.get_results_by_operation("missing") == []

    def test_statistics(self):
        """Test statistical summary over successful runs only."""
        suite = BenchmarkSuite()
        for time_ms in (10.0, 20.0, 30.0):
            suite.add_result(make_result(time_ms=time_ms))
        suite.add_result(make_result(time_ms=1000.0, success=False))

        stats = suite.get_statistics("traversal", "processing_time_ms")

        assert stats["min"] == 10.0
        assert stats["max"] == 30.0
        assert stats["mean"] == 20.0
        assert stats["median"] == 20.0
        assert stats["stdev"] == 10.0
        assert stats["count"] == 3

    def test_statistics_single_value(self):
        """Test that a single run has zero standard deviation."""
        suite = BenchmarkSuite()
        suite.add_result(make_result())

        assert suite.get_statistics("traversal", "processing_time_ms")["stdev"] == 0.0

    def test_statistics_derived_metric(self):
        """Test statistics over a computed metrics property."""
        suite = BenchmarkSuite()
        suite.add_result(make_result(time_ms=50.0))

        stats = suite.get_statistics("traversal", "nodes_per_second")

        assert stats["mean"] == 2000.0

    def test_statistics_without_results(self):
        """Test statistics for an operation with no runs."""
        assert BenchmarkSuite().get_statistics("traversal", "processing_time_ms") == {}

    def test_generate_report(self):
        """Test report structure."""
        suite = BenchmarkSuite()
        suite.add_result(make_result("traversal", "wide"))
        suite.add_result(make_result("traversal", "deep", success=False))
        suite.add_result(make_result("templating", "//a[$x]"))

        report = suite.generate_report()

        assert report["total_results"] == 3
        assert report["operations"] == ["templating", "traversal"]
        assert report["summary"]["traversal"]["total_runs"] == 2
        assert report["summary"]["traversal"]["success_rate"] == 0.5
        assert report["detailed_results"]["deep"]["traversal"]["error"] == "failed"
        assert report["detailed_results"]["wide"]["traversal"]["memory_used_mb"] == 2.0


class TestTreeBuilders:
    """Test synthetic tree construction."""

    def test_wide_tree(self):
        """Test the wide tree builder."""
        document = build_wide_tree(50)

        assert len(document.document_element.children) == 50

    def test_deep_tree(self):
        """Test the deep tree builder beyond the recursion limit."""
        depth = sys.getrecursionlimit() * 2
        document = build_deep_tree(depth)

        elements = list(descendants(document, NodeCategory.ELEMENT))

        assert len(elements) == depth
        assert elements[0].tag == "leaf"
        assert elements[0].get_depth() == depth

    def test_balanced_tree(self):
        """Test the balanced tree builder."""
        document = build_balanced_tree(branching=3, depth=2)

        elements = list(descendants(document, NodeCategory.ELEMENT))

        assert len(elements) == 1 + 3 + 9
        assert all(e.parent is not None for e in elements)

    def test_attribute_heavy_tree(self):
        """Test the attribute-heavy tree builder."""
        document = build_attribute_heavy_tree(elements=4, attributes_per_element=5)

        attributes = list(descendants(document, NodeCategory.ATTRIBUTE))

        assert len(attributes) == 20


class TestTraversalBenchmark:
    """Test the benchmark runner."""

    def setup_method(self):
        """Set up test fixtures."""
        self.benchmark = TraversalBenchmark(
            warmup_runs=0, benchmark_runs=2, deep_tree_depth=100
        )

    @pytest.mark.parametrize("kwargs", [
        {"warmup_runs": -1},
        {"benchmark_runs": 0},
        {"deep_tree_depth": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        """Test argument validation."""
        with pytest.raises(ValueError):
            TraversalBenchmark(**kwargs)

    def test_create_test_cases(self):
        """Test that all standard cases are generated."""
        test_cases = self.benchmark._create_test_cases()

        assert set(test_cases) == {"wide", "deep", "balanced", "attribute_heavy"}
        assert test_cases["deep"].document_element.tag == "level"

    @patch('psutil.Process')
    def test_memory_measurement(self, mock_process):
        """Test memory usage measurement."""
        mock_memory = Mock()
        mock_memory.rss = 1024 * 1024 * 50
        mock_process.return_value.memory_info.return_value = mock_memory

        assert self.benchmark._measure_memory_usage() == 1024 * 1024 * 50

    def test_benchmark_traversal(self):
        """Test a single traversal measurement."""
        document = build_wide_tree(3)

        with patch.object(self.benchmark, '_measure_memory_usage', side_effect=[1000, 1500]):
            result = self.benchmark.benchmark_traversal("wide", document)

        assert result.operation == "traversal"
        assert result.success is True
        assert result.metrics.nodes_emitted == 4
        assert result.metrics.nodes_visited == 4
        assert result.metrics.memory_used_bytes == 500
        assert result.metrics.processing_time_ms >= 0

    def test_benchmark_traversal_with_filter(self):
        """Test a filtered traversal measurement."""
        document = build_attribute_heavy_tree(elements=2, attributes_per_element=3)

        with patch.object(self.benchmark, '_measure_memory_usage', side_effect=[0, 0]):
            result = self.benchmark.benchmark_traversal(
                "attrs", document, [NodeCategory.ATTRIBUTE]
            )

        assert result.metrics.nodes_emitted == 6
        assert result.metrics.nodes_visited == 3

    def test_memory_never_negative(self):
        """Test that a shrinking RSS is recorded as zero."""
        with patch.object(self.benchmark, '_measure_memory_usage', side_effect=[2000, 1000]):
            result = self.benchmark.benchmark_traversal("wide", build_wide_tree(1))

        assert result.metrics.memory_used_bytes == 0

    def test_benchmark_templating(self):
        """Test template rendering measurement."""
        with patch.object(self.benchmark, '_measure_memory_usage', side_effect=[0, 0]):
            result = self.benchmark.benchmark_templating(
                "//PersVeh[@id = $veh]", ["Veh1"], iterations=25
            )

        assert result.success is True
        assert result.metrics.queries_rendered == 25
        assert result.test_case == "//PersVeh[@id = $veh]"

    def test_benchmark_templating_failure(self):
        """Test that argument errors are recorded as failures."""
        with patch.object(self.benchmark, '_measure_memory_usage', side_effect=[0, 0]):
            result = self.benchmark.benchmark_templating("$a and $b", ["1"], iterations=5)

        assert result.success is False
        assert result.metrics.queries_rendered == 0
        assert "greater than the number of arguments" in result.error_message

    def test_run_benchmark(self):
        """Test a complete run over small test cases."""
        small_cases = {"wide": build_wide_tree(5), "deep": build_deep_tree(20)}

        def quick_templating(template, arguments):
            return TraversalBenchmark.benchmark_templating(
                self.benchmark, template, arguments, iterations=10
            )

        with patch.object(self.benchmark, '_create_test_cases', return_value=small_cases), \
                patch.object(self.benchmark, '_measure_memory_usage', return_value=0), \
                patch.object(self.benchmark, 'benchmark_templating', side_effect=quick_templating):
            suite = self.benchmark.run_benchmark()

        assert len(suite.get_results_by_operation("traversal")) == 4
        assert len(suite.get_results_by_operation("templating")) == 2
        assert all(result.success for result in suite.results)
