"""XPath selection over the node model.

:class:`XPathEngine` evaluates queries with lxml against an
:class:`~fluidxml.tree.mirror.LxmlMirror` of the tree and returns the matching
model nodes. The mirror is a snapshot: changes made to the node tree after the
engine was built are not visible to it.

Queries can be templates (see :mod:`fluidxml.query.templating`); arguments are
substituted before evaluation. A query given without arguments is evaluated
as written.
"""

from typing import Any, List, Optional, Union

from lxml import etree

from fluidxml.shared import QueryConfig, get_logger
from fluidxml.tree.mirror import LxmlMirror
from fluidxml.tree.nodes import (
    NodeCategory,
    XMLAttribute,
    XMLDocument,
    XMLElement,
    XMLNode,
)

from .templating import substitute

_CONTEXT_CATEGORIES = frozenset({
    NodeCategory.DOCUMENT,
    NodeCategory.ELEMENT,
    NodeCategory.COMMENT,
    NodeCategory.PROCESSING_INSTRUCTION,
})


class XPathQueryError(ValueError):
    """Raised when an XPath cannot be compiled or evaluated to a node set."""

    def __init__(self, message: str, xpath: str) -> None:
        super().__init__(message)
        self.xpath = xpath


def _context_root(node: XMLNode) -> Union[XMLDocument, XMLElement]:
    """Largest tree containing ``node`` that can be mirrored."""
    document = node.owner_document
    if document is not None and document.document_element is not None:
        return document
    top: XMLNode = node.owner_element if isinstance(node, XMLAttribute) else node
    if top is None:
        raise ValueError("Detached attribute nodes cannot be queried")
    while top.parent is not None:
        top = top.parent
    if not isinstance(top, (XMLDocument, XMLElement)):
        raise ValueError(f"Cannot query a detached {type(top).__name__}")
    return top


class XPathEngine:
    """Evaluates XPath templates against a snapshot of a node tree."""

    def __init__(
        self,
        node: XMLNode,
        config: Optional[QueryConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Mirror the tree containing ``node``.

        Args:
            node: Default context node; the whole tree it belongs to is mirrored
            config: Templating options
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or QueryConfig()
        self.context = node
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xpath")
        self.mirror = LxmlMirror(_context_root(node))

    def materialize(self, xpath: str, *arguments: Any) -> str:
        """Return the concrete query that would be evaluated."""
        if not arguments:
            return xpath
        return substitute(xpath, arguments, self.config)

    def select_many(
        self,
        xpath: str,
        *arguments: Any,
        context: Optional[XMLNode] = None,
    ) -> List[XMLNode]:
        """Evaluate ``xpath`` and return matching nodes in document order.

        Args:
            xpath: Query or query template
            *arguments: Values for the template placeholders, in order
            context: Context node; defaults to the node the engine was built on

        Raises:
            ArgumentError: If there are fewer arguments than placeholders
            XPathQueryError: If the query is invalid or does not select nodes
        """
        query = self.materialize(xpath, *arguments)
        target = self._lxml_context(context if context is not None else self.context)

        # lxml never returns the document node itself
        if query.strip() == "/":
            return [self._document_node(query)]

        try:
            result = target.xpath(query)
        except etree.XPathError as e:
            self.logger.warning(
                f"XPath evaluation failed: {e}", extra={"xpath": query}
            )
            raise XPathQueryError(f"Invalid XPath {query!r}: {e}", query) from e

        if not isinstance(result, list):
            raise XPathQueryError(
                f"XPath {query!r} evaluated to {type(result).__name__}, not a node set",
                query,
            )

        nodes = []
        for item in result:
            node = self.mirror.model_node(item)
            if node is None:
                raise XPathQueryError(
                    f"XPath {query!r} selected a value with no corresponding node",
                    query,
                )
            nodes.append(node)
        return nodes

    def select_single(
        self,
        xpath: str,
        *arguments: Any,
        context: Optional[XMLNode] = None,
    ) -> Optional[XMLNode]:
        """Return the first node selected by ``xpath``, or None."""
        nodes = self.select_many(xpath, *arguments, context=context)
        return nodes[0] if nodes else None

    def _document_node(self, query: str) -> XMLNode:
        document = self.mirror.model_node(self.mirror.tree)
        if document is None:
            raise XPathQueryError(
                f"XPath {query!r} selects the document node of a tree without one",
                query,
            )
        return document

    def _lxml_context(self, node: XMLNode) -> Any:
        # Attributes and text have no lxml node to evaluate from
        if node.category not in _CONTEXT_CATEGORIES:
            raise ValueError(
                f"{type(node).__name__} cannot be used as an XPath context"
            )
        return self.mirror.lxml_node(node)


def xpath_select_many(
    node: Optional[XMLNode],
    xpath: str,
    *arguments: Any,
    config: Optional[QueryConfig] = None,
) -> List[XMLNode]:
    """Select nodes relative to ``node``; a None node selects nothing.

    Each call mirrors the whole tree containing ``node`` into lxml, so its
    cost grows with the document rather than the result. For repeated or
    nested queries over one tree, build a single :class:`XPathEngine` and
    pass ``context=`` to its ``select_many``/``select_single``.

    Example:
        >>> xpath_select_many(doc, "//PersVeh[@id = $veh]/Coverage", "Veh1")
    """
    if node is None:
        return []
    return XPathEngine(node, config).select_many(xpath, *arguments)


def xpath_select_single(
    node: Optional[XMLNode],
    xpath: str,
    *arguments: Any,
    config: Optional[QueryConfig] = None,
) -> Optional[XMLNode]:
    """Select the first node relative to ``node``, or None.

    Mirrors the whole tree on every call, like :func:`xpath_select_many`.

    Example:
        >>> xpath_select_single(doc, "PersVeh[@id = $id]", "Veh1")
    """
    if node is None:
        return None
    return XPathEngine(node, config).select_single(xpath, *arguments)
