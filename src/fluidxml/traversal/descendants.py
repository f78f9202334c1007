"""Document-order traversal of node trees.

The traverser walks a tree depth-first and emits every node only after all of
its descendants, left to right, so ``R(A(A1, A2), B)`` is emitted as
``A1, A2, A, B, R``. The walk is driven by an explicit stack of frames rather
than recursion, so trees deeper than the interpreter's recursion limit are
handled in O(number of nodes).

The tree must not be structurally modified while an iterator over it is in
progress. When ``TraversalConfig.detect_mutation`` is on, a change in the
number of children of any node on the current path raises
:class:`TreeMutationError`; other modifications are not detected and give
undefined results.
"""

import logging
from typing import AbstractSet, Any, Iterable, Iterator, List, Optional, Sequence

from fluidxml.shared import TraversalConfig, get_logger
from fluidxml.tree.nodes import NodeCategory, TraversableNode


class TreeMutationError(RuntimeError):
    """Raised when a tree changes size underneath an active traversal."""


class _Frame:
    """One level of the explicit traversal stack."""

    __slots__ = ("node", "children", "child_count", "cursor")

    def __init__(self, node: Any) -> None:
        self.node = node
        self.children: Sequence[Any] = node.child_nodes
        self.child_count = len(self.children)
        self.cursor = 0


def _normalize_categories(
    categories: Optional[Iterable[NodeCategory]],
) -> Optional[AbstractSet[NodeCategory]]:
    """Return the category filter, or None when every category is wanted."""
    if isinstance(categories, NodeCategory):
        categories = (categories,)
    wanted = frozenset(categories or ())
    for category in wanted:
        if not isinstance(category, NodeCategory):
            raise TypeError(f"Expected NodeCategory, got {category!r}")
    if not wanted or NodeCategory.NONE in wanted:
        return None
    return wanted


def _document_element(node: Any) -> Optional[Any]:
    element = getattr(node, "document_element", None)
    if element is not None:
        return element
    for child in node.child_nodes:
        if child.category is NodeCategory.ELEMENT:
            return child
    return None


class DocumentOrderTraverser:
    """Lazily enumerates a tree in document order with category filtering.

    Filtering rules:

    - No categories (or ``NodeCategory.NONE``): every node is emitted except
      attribute nodes, which are never emitted implicitly.
    - Otherwise a node is emitted only if its category was requested. If
      ``NodeCategory.ATTRIBUTE`` was requested, the attribute nodes of every
      visited element are emitted right after that element, whether or not
      ``NodeCategory.ELEMENT`` was requested.
    """

    def __init__(
        self,
        config: Optional[TraversalConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or TraversalConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "traversal")

    def traverse(
        self,
        root: Optional[TraversableNode],
        categories: Optional[Iterable[NodeCategory]] = None,
    ) -> Iterator[Any]:
        """Iterate ``root`` and its descendants in document order.

        Args:
            root: Node to start from; a document starts at its document
                element. ``None`` produces an empty iterator.
            categories: Categories to emit; empty or None means all

        Returns:
            A single-pass iterator; abandoning it early is safe

        Raises:
            TypeError: If categories contains something other than NodeCategory
        """
        wanted = _normalize_categories(categories)
        return self._walk(root, wanted)

    def _walk(
        self,
        root: Optional[TraversableNode],
        wanted: Optional[AbstractSet[NodeCategory]],
    ) -> Iterator[Any]:
        if root is None:
            return
        if (
            self.config.start_at_document_element
            and root.category is NodeCategory.DOCUMENT
        ):
            root = _document_element(root)
            if root is None:
                return

        emit_attributes = wanted is not None and NodeCategory.ATTRIBUTE in wanted
        detect_mutation = self.config.detect_mutation
        debug = self.logger.is_enabled_for(logging.DEBUG)
        visited = emitted = 0
        if debug:
            self.logger.debug(
                "Traversal started",
                extra={
                    "root": type(root).__name__,
                    "categories": sorted(c.name for c in wanted or ()),
                },
            )

        stack: List[_Frame] = [_Frame(root)]
        try:
            while stack:
                frame = stack[-1]
                if detect_mutation and len(frame.children) != frame.child_count:
                    raise TreeMutationError(
                        "Tree changed size during traversal"
                    )

                if frame.cursor < len(frame.children):
                    stack.append(_Frame(frame.children[frame.cursor]))
                    continue

                # Fully visited: emit, then hand control back to the parent
                stack.pop()
                if stack:
                    stack[-1].cursor += 1
                node = frame.node
                category = node.category
                visited += 1

                if wanted is None:
                    if category is not NodeCategory.ATTRIBUTE:
                        emitted += 1
                        yield node
                    continue

                if category in wanted:
                    emitted += 1
                    yield node
                if emit_attributes and category is NodeCategory.ELEMENT:
                    for attribute in node.attribute_nodes:
                        emitted += 1
                        yield attribute
        finally:
            if debug:
                self.logger.debug(
                    "Traversal finished" if not stack else "Traversal abandoned",
                    extra={"nodes_visited": visited, "nodes_emitted": emitted},
                )


def descendants(
    root: Optional[TraversableNode],
    *categories: NodeCategory,
    config: Optional[TraversalConfig] = None,
) -> Iterator[Any]:
    """Depth-first, children-before-parent traversal of ``root``.

    Example:
        >>> doc = load_string("<R><A><A1/><A2/></A><B/></R>")
        >>> [e.tag for e in descendants(doc, NodeCategory.ELEMENT)]
        ['A1', 'A2', 'A', 'B', 'R']
    """
    return DocumentOrderTraverser(config).traverse(root, categories)


def elements(node: Optional[TraversableNode], name: Optional[str] = None) -> Iterator[Any]:
    """Yield the direct child elements of ``node``.

    Args:
        node: Parent node; ``None`` yields nothing
        name: Optional tag or local name the children must have
    """
    if node is None:
        return
    for child in node.child_nodes:
        if child.category is not NodeCategory.ELEMENT:
            continue
        if name and name not in (child.tag, getattr(child, "local_name", child.tag)):
            continue
        yield child
