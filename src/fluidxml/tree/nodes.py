"""In-memory node model for XML documents.

Every node exposes the same small capability set used by the traversal
engine: a ``category`` tag, an ordered ``child_nodes`` list and, for elements,
an ordered ``attribute_nodes`` list. Nodes compare by identity, so two
structurally identical nodes at different positions are distinct.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional, Protocol, Sequence, Union


class NodeCategory(Enum):
    """Kind of a node in a document tree."""

    NONE = auto()                    # Filter pseudo-category meaning "everything"
    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()
    ATTRIBUTE = auto()
    COMMENT = auto()
    PROCESSING_INSTRUCTION = auto()


class TraversableNode(Protocol):
    """Capability set a tree must offer to be walked in document order."""

    @property
    def category(self) -> NodeCategory: ...

    @property
    def child_nodes(self) -> Sequence["TraversableNode"]: ...

    @property
    def attribute_nodes(self) -> Sequence["TraversableNode"]: ...


class NoXmlDocumentError(Exception):
    """Raised when an operation needs an owning document and there is none."""


_EMPTY: Sequence["XMLNode"] = ()


@dataclass(eq=False)
class XMLNode:
    """Base class for all nodes; identity-compared."""

    parent: Optional["XMLNode"] = field(default=None, init=False, repr=False)

    @property
    def category(self) -> NodeCategory:
        raise NotImplementedError

    @property
    def child_nodes(self) -> Sequence["XMLNode"]:
        return _EMPTY

    @property
    def attribute_nodes(self) -> Sequence["XMLNode"]:
        return _EMPTY

    @property
    def inner_text(self) -> str:
        """Concatenated text of all descendant text nodes, in document order."""
        parts = []
        stack = list(reversed(self.child_nodes))
        while stack:
            node = stack.pop()
            if isinstance(node, XMLText):
                parts.append(node.value)
            else:
                stack.extend(reversed(node.child_nodes))
        return "".join(parts)

    @property
    def owner_document(self) -> Optional["XMLDocument"]:
        """Document this node belongs to, or None if detached."""
        node: Optional[XMLNode] = self
        while node is not None:
            if isinstance(node, XMLDocument):
                return node
            node = node.parent
        return None

    def owner_document_or_raise(self) -> "XMLDocument":
        document = self.owner_document
        if document is None:
            raise NoXmlDocumentError(
                "Node doesn't contain a reference to an XMLDocument"
            )
        return document

    def get_depth(self) -> int:
        """Number of ancestors above this node."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth


@dataclass(eq=False)
class XMLText(XMLNode):
    """Character data; CDATA sections load as plain text."""

    value: str = ""

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.TEXT

    @property
    def inner_text(self) -> str:
        return self.value

    @property
    def is_whitespace(self) -> bool:
        return not self.value.strip()


@dataclass(eq=False)
class XMLComment(XMLNode):
    value: str = ""

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.COMMENT


@dataclass(eq=False)
class XMLProcessingInstruction(XMLNode):
    target: str = ""
    value: str = ""

    def __post_init__(self) -> None:
        if not self.target:
            raise ValueError("Processing instruction target cannot be empty")

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.PROCESSING_INSTRUCTION


@dataclass(eq=False)
class XMLAttribute(XMLNode):
    """Attribute node; its ``parent`` is the owning element."""

    name: str = ""
    value: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Attribute name cannot be empty")

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.ATTRIBUTE

    @property
    def inner_text(self) -> str:
        return self.value

    @property
    def owner_element(self) -> Optional["XMLElement"]:
        return self.parent if isinstance(self.parent, XMLElement) else None

    @property
    def owner_document(self) -> Optional["XMLDocument"]:
        owner = self.owner_element
        return owner.owner_document if owner is not None else None


ChildNode = Union["XMLElement", XMLText, XMLComment, XMLProcessingInstruction]


@dataclass(eq=False)
class XMLElement(XMLNode):
    """Element with ordered children and ordered attribute nodes."""

    tag: str = ""
    attributes: List[XMLAttribute] = field(default_factory=list)
    children: List[ChildNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the tag and adopt initial children and attributes."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")
        seen = set()
        for attribute in self.attributes:
            if attribute.name in seen:
                raise ValueError(f"Duplicate attribute: {attribute.name}")
            seen.add(attribute.name)
            attribute.parent = self
        for child in self.children:
            child.parent = self

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.ELEMENT

    @property
    def child_nodes(self) -> Sequence[ChildNode]:
        return self.children

    @property
    def attribute_nodes(self) -> Sequence[XMLAttribute]:
        return self.attributes

    @property
    def local_name(self) -> str:
        """Tag name without namespace prefix or Clark-notation URI."""
        if self.tag.startswith("{"):
            return self.tag.split("}", 1)[1]
        if ":" in self.tag:
            return self.tag.split(":", 1)[1]
        return self.tag

    def iter_child_elements(self) -> Iterator["XMLElement"]:
        return (child for child in self.children if isinstance(child, XMLElement))

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        node = self.get_attribute_node(name)
        return node.value if node is not None else default

    def get_attribute_node(self, name: str) -> Optional[XMLAttribute]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute_node(name) is not None


@dataclass(eq=False)
class XMLDocument(XMLNode):
    """Document wrapper holding prolog nodes and a single document element."""

    children: List[ChildNode] = field(default_factory=list)
    encoding: str = "utf-8"
    version: str = "1.0"
    standalone: Optional[bool] = None
    source: Optional[str] = None

    def __post_init__(self) -> None:
        """Adopt children and check there is at most one top-level element."""
        elements = [c for c in self.children if isinstance(c, XMLElement)]
        if len(elements) > 1:
            raise ValueError("Document can only have one document element")
        if any(isinstance(c, XMLText) for c in self.children):
            raise ValueError("Document cannot contain top-level text")
        for child in self.children:
            child.parent = self

    @property
    def category(self) -> NodeCategory:
        return NodeCategory.DOCUMENT

    @property
    def child_nodes(self) -> Sequence[ChildNode]:
        return self.children

    @property
    def document_element(self) -> Optional[XMLElement]:
        for child in self.children:
            if isinstance(child, XMLElement):
                return child
        return None

    @property
    def owner_document(self) -> Optional["XMLDocument"]:
        return self
