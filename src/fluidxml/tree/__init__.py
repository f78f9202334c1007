"""Node model for XML documents.

Key Components:
    NodeCategory: Kind of a node (element, text, attribute, ...)
    XMLDocument, XMLElement, XMLText, XMLAttribute, XMLComment,
    XMLProcessingInstruction: Identity-compared tree nodes
    TraversableNode: Protocol for foreign trees walked by the traversal engine
    load_string, load_bytes, load_file, to_xml: lxml-backed (de)serialization
    LxmlMirror: lxml snapshot of a node tree used for XPath evaluation
"""

from .nodes import (
    NodeCategory,
    NoXmlDocumentError,
    TraversableNode,
    XMLAttribute,
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLNode,
    XMLProcessingInstruction,
    XMLText,
)
from .loader import (
    DocumentLoadError,
    load_bytes,
    load_file,
    load_string,
    to_xml,
)
from .mirror import LxmlMirror

__all__ = [
    "NodeCategory",
    "NoXmlDocumentError",
    "TraversableNode",
    "XMLAttribute",
    "XMLComment",
    "XMLDocument",
    "XMLElement",
    "XMLNode",
    "XMLProcessingInstruction",
    "XMLText",
    "DocumentLoadError",
    "load_bytes",
    "load_file",
    "load_string",
    "to_xml",
    "LxmlMirror",
]
