"""Loading XML text into the node model, and serializing it back.

Parsing is delegated to lxml; the resulting lxml tree is converted into
:mod:`fluidxml.tree.nodes` objects with an explicit stack, so documents of any
depth can be loaded.
"""

import html
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from lxml import etree

from fluidxml.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    TreeConfig,
    get_logger,
)

from .mirror import LxmlMirror
from .nodes import (
    XMLAttribute,
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLNode,
    XMLProcessingInstruction,
    XMLText,
)


class DocumentLoadError(ValueError):
    """Raised when input cannot be parsed as a well-formed XML document."""

    def __init__(self, message: str, diagnostic: DiagnosticEntry) -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


def _make_parser(config: TreeConfig, force_utf8: bool) -> etree.XMLParser:
    return etree.XMLParser(
        encoding="utf-8" if force_utf8 else None,
        remove_comments=config.remove_comments,
        remove_pis=config.remove_processing_instructions,
        resolve_entities=config.resolve_entities,
        huge_tree=config.huge_tree,
        no_network=True,
    )


def _convert_node(lxml_node: Any) -> Optional[XMLNode]:
    if isinstance(lxml_node, etree._Comment):
        return XMLComment(value=lxml_node.text or "")
    if isinstance(lxml_node, etree._ProcessingInstruction):
        return XMLProcessingInstruction(
            target=lxml_node.target, value=lxml_node.text or ""
        )
    if isinstance(lxml_node, etree._Entity):
        return XMLText(value=lxml_node.text)
    return XMLElement(
        tag=lxml_node.tag,
        attributes=[
            XMLAttribute(name=name, value=value)
            for name, value in lxml_node.attrib.items()
        ],
    )


def _text_node(value: Optional[str], config: TreeConfig) -> Optional[XMLText]:
    if not value:
        return None
    if config.drop_whitespace_text and not value.strip():
        return None
    return XMLText(value=value)


def _adopt(parent: Union[XMLDocument, XMLElement], child: Optional[XMLNode]) -> None:
    if child is None:
        return
    child.parent = parent
    parent.children.append(child)  # type: ignore[arg-type]


def _build_document(tree: Any, config: TreeConfig) -> XMLDocument:
    lxml_root = tree.getroot()
    docinfo = tree.docinfo

    prolog = []
    sibling = lxml_root.getprevious()
    while sibling is not None:
        prolog.append(sibling)
        sibling = sibling.getprevious()
    epilog = []
    sibling = lxml_root.getnext()
    while sibling is not None:
        epilog.append(sibling)
        sibling = sibling.getnext()

    document = XMLDocument(
        encoding=docinfo.encoding or "utf-8",
        version=docinfo.xml_version or "1.0",
        standalone=docinfo.standalone,
        source=docinfo.URL,
    )
    for node in reversed(prolog):
        _adopt(document, _convert_node(node))

    root = _convert_node(lxml_root)
    _adopt(document, root)

    stack: List[Tuple[Any, XMLElement]] = [(lxml_root, root)]
    while stack:
        lxml_parent, model_parent = stack.pop()
        _adopt(model_parent, _text_node(lxml_parent.text, config))
        for lxml_child in lxml_parent:
            model_child = _convert_node(lxml_child)
            _adopt(model_parent, model_child)
            if isinstance(model_child, XMLElement):
                stack.append((lxml_child, model_child))
            _adopt(model_parent, _text_node(lxml_child.tail, config))

    for node in epilog:
        _adopt(document, _convert_node(node))
    return document


def _load(
    source: Any,
    config: Optional[TreeConfig],
    correlation_id: Optional[str],
    force_utf8: bool = False,
) -> XMLDocument:
    config = config or TreeConfig()
    logger = get_logger(__name__, correlation_id, "loader")
    parser = _make_parser(config, force_utf8)
    try:
        if isinstance(source, Path):
            tree = etree.parse(str(source), parser)
        else:
            tree = etree.fromstring(source, parser).getroottree()
    except etree.XMLSyntaxError as e:
        line, column = e.position
        diagnostic = DiagnosticEntry(
            severity=DiagnosticSeverity.ERROR,
            message=str(e) or "Malformed XML",
            component="loader",
            position={"line": line, "column": column},
            correlation_id=correlation_id,
        )
        logger.error(f"Failed to load XML document: {e}", exc_info=False)
        raise DocumentLoadError(diagnostic.message, diagnostic) from e

    document = _build_document(tree, config)
    logger.debug(
        "Loaded XML document",
        extra={"document_element": tree.getroot().tag},
    )
    return document


def load_string(
    text: str,
    config: Optional[TreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse an XML string into an :class:`XMLDocument`.

    Any encoding named in the XML declaration is ignored; the string is
    already decoded.

    Raises:
        DocumentLoadError: If the text is not well-formed XML
    """
    return _load(text.encode("utf-8"), config, correlation_id, force_utf8=True)


def load_bytes(
    data: bytes,
    config: Optional[TreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse encoded XML, honouring the declared or detected encoding.

    Raises:
        DocumentLoadError: If the data is not well-formed XML
    """
    return _load(bytes(data), config, correlation_id)


def load_file(
    path: Union[str, Path],
    config: Optional[TreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> XMLDocument:
    """Parse an XML file into an :class:`XMLDocument`.

    Raises:
        OSError: If the file cannot be read
        DocumentLoadError: If the file is not well-formed XML
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"XML file not found: {path}")
    return _load(path, config, correlation_id)


def to_xml(node: XMLNode) -> str:
    """Serialize a node (the equivalent of ``InnerXml`` for documents)."""
    if isinstance(node, XMLDocument):
        return etree.tostring(LxmlMirror(node).tree, encoding="unicode")
    if isinstance(node, XMLElement):
        return etree.tostring(LxmlMirror(node).root, encoding="unicode")
    if isinstance(node, XMLText):
        return html.escape(node.value, quote=False)
    if isinstance(node, XMLAttribute):
        return f'{node.name}="{html.escape(node.value, quote=True)}"'
    if isinstance(node, XMLComment):
        return f"<!--{node.value}-->"
    if isinstance(node, XMLProcessingInstruction):
        if node.value:
            return f"<?{node.target} {node.value}?>"
        return f"<?{node.target}?>"
    raise TypeError(f"Cannot serialize {type(node).__name__}")
