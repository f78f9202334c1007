"""Shared utilities for fluidxml.

This module provides configuration objects, diagnostic/metrics types and
correlation-aware logging used across all components.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    FluidConfig,
    GlobalConfig,
    QueryConfig,
    TraversalConfig,
    TreeConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ConfigError",
    "ConfigValidationError",
    "FluidConfig",
    "GlobalConfig",
    "QueryConfig",
    "TraversalConfig",
    "TreeConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
