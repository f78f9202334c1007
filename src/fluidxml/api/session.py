"""Configured, reusable entry point over loading, traversal and XPath selection.

The module-level helpers (:func:`fluidxml.descendants`,
:func:`fluidxml.xpath_select_many`, ...) use default configuration. A
:class:`FluidXML` session binds one :class:`~fluidxml.shared.FluidConfig` and
one correlation ID to every operation and keeps usage statistics.
"""

import time
import uuid
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from fluidxml.query import XPathEngine, XPathTemplate
from fluidxml.shared import FluidConfig, GlobalConfig, get_logger
from fluidxml.traversal import DocumentOrderTraverser, elements
from fluidxml.tree import NodeCategory, XMLDocument, XMLNode, loader

MS_PER_SECOND = 1000.0


def _resolve_correlation_id(
    global_config: GlobalConfig, correlation_id: Optional[str]
) -> Optional[str]:
    if correlation_id:
        return correlation_id
    if not global_config.enable_correlation_tracking:
        return None
    return global_config.correlation_id or str(uuid.uuid4())[:8]


class FluidXML:
    """Session object applying one configuration to every read-path operation.

    Attributes:
        config: Active configuration
        correlation_id: Correlation ID attached to every log record

    Examples:
        Basic usage:
        >>> session = FluidXML()
        >>> doc = session.load_string('<R><A id="1"/></R>')
        >>> session.select_single(doc, "//A[@id = $id]", "1").tag
        'A'

        Presets:
        >>> session = FluidXML(FluidConfig.compact_documents())
        >>> [e.tag for e in session.descendants(doc, NodeCategory.ELEMENT)]
        ['A', 'R']
    """

    def __init__(
        self,
        config: Optional[FluidConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize a session.

        Args:
            config: Configuration bundle (defaults to ``FluidConfig()``)
            correlation_id: Explicit correlation ID; otherwise taken from
                ``config.global_`` or generated when tracking is enabled
        """
        self.config = config or FluidConfig()
        self.correlation_id = _resolve_correlation_id(self.config.global_, correlation_id)
        self.logger = get_logger(__name__, self.correlation_id, "session")
        self._traverser = DocumentOrderTraverser(self.config.traversal, self.correlation_id)

        self._documents_loaded = 0
        self._queries_run = 0
        self._load_time_ms = 0.0
        self._query_time_ms = 0.0

        self.logger.info(
            "FluidXML session initialized",
            extra={"config_name": self.config.name}
        )

    # Loading

    def load_string(self, text: str) -> XMLDocument:
        """Parse an XML string with the session's tree configuration."""
        return self._timed_load(loader.load_string, text)

    def load_bytes(self, data: bytes) -> XMLDocument:
        """Parse encoded XML with the session's tree configuration."""
        return self._timed_load(loader.load_bytes, data)

    def load_file(self, path: Union[str, Path]) -> XMLDocument:
        """Parse an XML file with the session's tree configuration."""
        return self._timed_load(loader.load_file, path)

    def _timed_load(self, load: Any, source: Any) -> XMLDocument:
        start_time = time.perf_counter()
        document = load(source, self.config.tree, self.correlation_id)
        self._documents_loaded += 1
        self._load_time_ms += (time.perf_counter() - start_time) * MS_PER_SECOND
        return document

    # Traversal

    def descendants(self, root: Optional[XMLNode], *categories: NodeCategory) -> Iterator[Any]:
        """Document-order traversal using the session's traversal settings."""
        return self._traverser.traverse(root, categories)

    def elements(self, node: Optional[XMLNode], name: Optional[str] = None) -> Iterator[Any]:
        """Direct child elements of ``node``, optionally filtered by name."""
        return elements(node, name)

    # Queries

    def template(self, xpath: str) -> XPathTemplate:
        """Pre-scan ``xpath`` with the session's query settings."""
        return XPathTemplate(xpath, self.config.query)

    def engine(self, node: XMLNode) -> XPathEngine:
        """Build a reusable XPath engine over the tree containing ``node``."""
        return XPathEngine(node, self.config.query, self.correlation_id)

    def select_many(self, node: Optional[XMLNode], xpath: str, *arguments: Any) -> List[XMLNode]:
        """Select nodes relative to ``node``; a None node selects nothing.

        Every call mirrors the whole tree containing ``node``. Use
        :meth:`engine` once and pass ``context=`` for repeated queries
        against one document.

        Raises:
            ArgumentError: If there are fewer arguments than placeholders
            XPathQueryError: If the query is invalid or does not select nodes
        """
        if node is None:
            return []
        start_time = time.perf_counter()
        try:
            return self.engine(node).select_many(xpath, *arguments)
        finally:
            self._queries_run += 1
            self._query_time_ms += (time.perf_counter() - start_time) * MS_PER_SECOND

    def select_single(self, node: Optional[XMLNode], xpath: str, *arguments: Any) -> Optional[XMLNode]:
        """First node selected relative to ``node``, or None."""
        nodes = self.select_many(node, xpath, *arguments)
        return nodes[0] if nodes else None

    # State

    def reconfigure(self, config: FluidConfig) -> None:
        """Switch the session to a new configuration.

        The correlation ID is kept.
        """
        self.config = config
        self._traverser = DocumentOrderTraverser(self.config.traversal, self.correlation_id)
        self.logger.info(
            "Session reconfigured",
            extra={"config_name": self.config.name}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage counters and timings for this session."""
        return {
            "documents_loaded": self._documents_loaded,
            "queries_run": self._queries_run,
            "total_load_time_ms": self._load_time_ms,
            "total_query_time_ms": self._query_time_ms,
            "average_query_time_ms": (
                self._query_time_ms / self._queries_run
                if self._queries_run > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset usage counters and timings."""
        self._documents_loaded = 0
        self._queries_run = 0
        self._load_time_ms = 0.0
        self._query_time_ms = 0.0

        self.logger.info("Session statistics reset")
