"""Diagnostic and metrics types shared across fluidxml components."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with optional source position."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class PerformanceMetrics:
    """Timing and memory figures for a traversal or templating run."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    nodes_visited: int = 0
    nodes_emitted: int = 0
    queries_rendered: int = 0

    @property
    def nodes_per_second(self) -> float:
        """Calculate nodes visited per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.nodes_visited * 1000.0) / self.processing_time_ms

    @property
    def queries_per_second(self) -> float:
        """Calculate templated queries rendered per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.queries_rendered * 1000.0) / self.processing_time_ms

    @property
    def memory_per_node(self) -> float:
        """Calculate memory usage per visited node."""
        if self.nodes_visited == 0:
            return 0.0
        return self.memory_used_bytes / self.nodes_visited
