"""Tests for the document-order traversal engine."""

import logging
import sys

import pytest

from fluidxml.shared import TraversalConfig
from fluidxml.traversal import (
    DocumentOrderTraverser,
    TreeMutationError,
    descendants,
    elements,
)
from fluidxml.tree import (
    NodeCategory,
    XMLAttribute,
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLText,
    load_string,
)


def build_sample_tree():
    """R(A(A1, A2), B), all elements."""
    a1 = XMLElement(tag="A1")
    a2 = XMLElement(tag="A2")
    a = XMLElement(tag="A", children=[a1, a2])
    b = XMLElement(tag="B")
    r = XMLElement(tag="R", children=[a, b])
    return r, a, b, a1, a2


class TestTraversalOrder:
    """Emission order is children-before-parent, left to right."""

    def test_unfiltered_order(self) -> None:
        """Test children-before-parent order."""
        r, a, b, a1, a2 = build_sample_tree()

        result = list(descendants(r))

        assert result == [a1, a2, a, b, r]

    def test_each_node_follows_all_its_descendants(self) -> None:
        """Test that every node comes after its whole subtree."""
        doc = load_string("<r><a><b><c/>t</b></a><d>x<e/></d></r>")

        order = list(descendants(doc))

        for position, node in enumerate(order):
            stack = list(node.child_nodes)
            while stack:
                child = stack.pop()
                assert order.index(child) < position
                stack.extend(child.child_nodes)

    def test_nodes_are_emitted_once(self) -> None:
        """Test that no node is emitted twice."""
        doc = load_string("<r><a>1</a><a>1</a><a>1</a></r>")

        result = list(descendants(doc))

        assert len(result) == len({id(node) for node in result}) == 7

    def test_identical_subtrees_are_distinct(self) -> None:
        """Test that equal-looking nodes are kept apart."""
        first = XMLElement(tag="same")
        second = XMLElement(tag="same")
        root = XMLElement(tag="root", children=[first, second])

        result = list(descendants(root))

        assert result[0] is first
        assert result[1] is second

    def test_document_starts_at_document_element(self) -> None:
        """Test that a document starts at its element."""
        doc = load_string("<!--c--><root><child/></root>")

        result = list(descendants(doc))

        assert [node.tag for node in result] == ["child", "root"]
        assert doc not in result

    def test_document_wrapper_when_configured(self) -> None:
        """Test traversal including the document node."""
        doc = load_string("<!--c--><root/>")
        traverser = DocumentOrderTraverser(
            TraversalConfig(start_at_document_element=False)
        )

        result = list(traverser.traverse(doc))

        assert isinstance(result[0], XMLComment)
        assert result[1] is doc.document_element
        assert result[2] is doc

    def test_empty_document_yields_nothing(self) -> None:
        """Test a document with no element."""
        assert list(descendants(XMLDocument())) == []

    def test_mixed_content_order(self) -> None:
        """Test order with text and elements mixed."""
        doc = load_string("<p>Hello <b>big</b> world</p>")

        values = [
            node.value if isinstance(node, XMLText) else node.tag
            for node in descendants(doc)
        ]

        assert values == ["Hello ", "big", "b", " world", "p"]


class TestTraversalFiltering:
    """Category filters, including attribute side-emission."""

    def test_element_filter_matches_unfiltered_for_element_only_tree(self) -> None:
        """Test that an element filter changes nothing on an element-only tree."""
        r = build_sample_tree()[0]

        assert list(descendants(r, NodeCategory.ELEMENT)) == list(descendants(r))

    def test_text_filter_on_tree_without_text(self) -> None:
        """Test a text filter on a tree with no text."""
        r = build_sample_tree()[0]

        assert list(descendants(r, NodeCategory.TEXT)) == []

    def test_text_filter(self) -> None:
        """Test filtering to text nodes."""
        doc = load_string("<r>one<a>two</a>three</r>")

        result = [node.value for node in descendants(doc, NodeCategory.TEXT)]

        assert result == ["one", "two", "three"]

    def test_attributes_only(self) -> None:
        """Test filtering to attributes."""
        attr1 = XMLAttribute(name="attr1", value="1")
        attr2 = XMLAttribute(name="attr2", value="2")
        element = XMLElement(tag="E", attributes=[attr1, attr2])

        result = list(descendants(element, NodeCategory.ATTRIBUTE))

        assert result == [attr1, attr2]

    def test_attributes_follow_their_element(self) -> None:
        """Test that attributes come right after their element."""
        doc = load_string('<r id="r"><a id="a" ref="x"/></r>')
        a = doc.document_element.children[0]
        r = doc.document_element

        result = list(descendants(doc, NodeCategory.ELEMENT, NodeCategory.ATTRIBUTE))

        assert result == [
            a, a.attributes[0], a.attributes[1],
            r, r.attributes[0],
        ]

    def test_attributes_never_emitted_without_filter(self) -> None:
        """Test that attributes need an explicit filter."""
        doc = load_string('<r id="1"><a x="y"/></r>')

        result = list(descendants(doc))

        assert all(node.category is not NodeCategory.ATTRIBUTE for node in result)

    def test_none_category_means_everything(self) -> None:
        """Test the NONE category."""
        doc = load_string('<r id="1">t<!--c--></r>')

        assert list(descendants(doc, NodeCategory.NONE)) == list(descendants(doc))

    def test_none_with_attribute_still_means_everything(self) -> None:
        """Test NONE combined with ATTRIBUTE."""
        doc = load_string('<r id="1"/>')

        result = list(descendants(doc, NodeCategory.NONE, NodeCategory.ATTRIBUTE))

        assert result == [doc.document_element]

    def test_comment_filter(self) -> None:
        """Test filtering to comments."""
        doc = load_string("<r><!--one--><a><!--two--></a></r>")

        result = [node.value for node in descendants(doc, NodeCategory.COMMENT)]

        assert result == ["one", "two"]

    def test_traverse_accepts_single_category(self) -> None:
        """Test a single category instead of a collection."""
        r, a, b, a1, a2 = build_sample_tree()

        result = list(DocumentOrderTraverser().traverse(r, NodeCategory.ELEMENT))

        assert result == [a1, a2, a, b, r]

    def test_invalid_category_raises(self) -> None:
        """Test a filter entry that is not a category."""
        with pytest.raises(TypeError, match="Expected NodeCategory"):
            DocumentOrderTraverser().traverse(XMLElement(tag="r"), ["ELEMENT"])


class TestTraversalEdgeCases:
    """Absent roots, leaves, depth, laziness and mutation."""

    def test_none_root_yields_nothing(self) -> None:
        """Test a None root."""
        assert list(descendants(None)) == []
        assert list(descendants(None, NodeCategory.ATTRIBUTE)) == []

    def test_childless_root_emitted_alone(self) -> None:
        """Test a root with no children."""
        leaf = XMLElement(tag="leaf")

        assert list(descendants(leaf)) == [leaf]
        assert list(descendants(leaf, NodeCategory.TEXT)) == []

    def test_deeper_than_recursion_limit(self) -> None:
        """Test traversal beyond the recursion limit."""
        depth = sys.getrecursionlimit() * 3
        node = XMLElement(tag="leaf")
        leaf = node
        for _ in range(depth - 1):
            node = XMLElement(tag="level", children=[node])

        iterator = descendants(node)

        assert next(iterator) is leaf
        assert sum(1 for _ in iterator) == depth - 1

    def test_iteration_is_lazy(self) -> None:
        """Test that nothing is visited before iteration."""
        class CountingElement(XMLElement):
            reads = 0

            @property
            def child_nodes(self):
                CountingElement.reads += 1
                return self.children

        root = CountingElement(
            tag="r", children=[CountingElement(tag="a"), CountingElement(tag="b")]
        )

        iterator = descendants(root)
        assert CountingElement.reads == 0
        next(iterator)
        assert CountingElement.reads == 2

    def test_abandoning_iteration_is_safe(self) -> None:
        """Test stopping iteration early."""
        doc = load_string("<r><a/><b/><c/></r>")
        iterator = descendants(doc)

        first = next(iterator)
        iterator.close()

        assert first.tag == "a"
        assert list(iterator) == []

    def test_mutation_is_detected(self) -> None:
        """Test that a tree change during iteration raises."""
        doc = load_string("<r><a/><b/></r>")
        root = doc.document_element
        iterator = descendants(doc)

        next(iterator)
        root.children.append(XMLElement(tag="c"))

        with pytest.raises(TreeMutationError, match="changed size"):
            list(iterator)

    def test_mutation_detection_can_be_disabled(self) -> None:
        """Test iteration over a changing tree without detection."""
        doc = load_string("<r><a/><b/></r>")
        root = doc.document_element
        traverser = DocumentOrderTraverser(TraversalConfig(detect_mutation=False))
        iterator = traverser.traverse(doc)

        next(iterator)
        root.children.append(XMLElement(tag="c"))

        assert [node.tag for node in iterator] == ["b", "c", "r"]

    def test_foreign_tree_with_same_capabilities(self) -> None:
        """Test traversal of another node type with the same interface."""
        class Node:
            def __init__(self, name, children=()):
                self.name = name
                self.category = NodeCategory.ELEMENT
                self.child_nodes = list(children)
                self.attribute_nodes = []

        tree = Node("r", [Node("a", [Node("a1")]), Node("b")])

        assert [n.name for n in descendants(tree)] == ["a1", "a", "b", "r"]

    def test_debug_logging_reports_counts(self, caplog) -> None:
        """Test the finish record and its counts."""
        r = build_sample_tree()[0]

        with caplog.at_level(logging.DEBUG, logger="fluidxml.traversal.descendants"):
            list(descendants(r))

        record = caplog.records[-1]
        assert record.getMessage() == "Traversal finished"
        assert record.nodes_visited == 5
        assert record.component == "traversal"

    def test_debug_logging_reports_start(self, caplog) -> None:
        """Test the start record."""
        r = build_sample_tree()[0]

        with caplog.at_level(logging.DEBUG, logger="fluidxml.traversal.descendants"):
            list(descendants(r, NodeCategory.ELEMENT))

        messages = [record.getMessage() for record in caplog.records]
        assert messages == ["Traversal started", "Traversal finished"]
        assert caplog.records[0].root == type(r).__name__
        assert caplog.records[0].categories == ["ELEMENT"]

    def test_debug_logging_abandoned(self, caplog) -> None:
        """Test the record for an abandoned traversal."""
        r = build_sample_tree()[0]

        with caplog.at_level(logging.DEBUG, logger="fluidxml.traversal.descendants"):
            iterator = descendants(r)
            next(iterator)
            iterator.close()

        assert [record.getMessage() for record in caplog.records] == [
            "Traversal started",
            "Traversal abandoned",
        ]


class TestElements:
    """Direct child element enumeration."""

    def test_child_elements_only(self) -> None:
        """Test that only child elements are returned."""
        doc = load_string("<r>text<a/><!--c--><b><c/></b></r>")

        result = [e.tag for e in elements(doc.document_element)]

        assert result == ["a", "b"]

    def test_filter_by_name(self) -> None:
        """Test filtering children by tag."""
        doc = load_string("<r><Item/><Other/><Item/></r>")

        result = list(elements(doc.document_element, "Item"))

        assert len(result) == 2
        assert all(e.tag == "Item" for e in result)

    def test_filter_by_local_name(self) -> None:
        """Test filtering children by local name."""
        doc = load_string('<r xmlns:p="urn:p"><p:Item/></r>')

        result = list(elements(doc.document_element, "Item"))

        assert [e.local_name for e in result] == ["Item"]

    def test_none_node(self) -> None:
        """Test a None parent."""
        assert list(elements(None)) == []
