"""lxml mirrors of node trees.

An :class:`LxmlMirror` copies a node tree into lxml once and remembers which
lxml object came from which model node, so XPath results evaluated by lxml
can be handed back to callers as the original model nodes.

lxml stores character data as ``text``/``tail`` strings rather than nodes.
Adjacent text nodes in the model are therefore merged in the mirror, and a
text result maps back to the first model text node of the merged run.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from lxml import etree

from .nodes import (
    XMLAttribute,
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLNode,
    XMLProcessingInstruction,
    XMLText,
)

LxmlNode = Union[etree._Element, etree._Comment, etree._ProcessingInstruction]


class LxmlMirror:
    """Read-only lxml snapshot of a document or element subtree."""

    def __init__(self, node: Union[XMLDocument, XMLElement]) -> None:
        """Build the mirror.

        Args:
            node: Document (mirrored with its prolog) or element subtree

        Raises:
            ValueError: If a document has no document element, or a tag or
                attribute name is not acceptable to lxml
        """
        self.source = node
        self._model_by_lxml: Dict[Any, XMLNode] = {}
        self._lxml_by_model: Dict[int, Any] = {}
        self._text_by_owner: Dict[Any, XMLText] = {}
        self._tail_by_owner: Dict[Any, XMLText] = {}

        if isinstance(node, XMLDocument):
            element = node.document_element
            if element is None:
                raise ValueError("Document has no document element to mirror")
            self.root = self._mirror_subtree(element)
            self._mirror_prolog(node, element)
            self.tree = self.root.getroottree()
            self._lxml_by_model[id(node)] = self.tree
        elif isinstance(node, XMLElement):
            self.root = self._mirror_subtree(node)
            self.tree = self.root.getroottree()
        else:
            raise TypeError(
                f"Only documents and elements can be mirrored, got {type(node).__name__}"
            )

    def lxml_node(self, node: XMLNode) -> Any:
        """Return the lxml counterpart of a model element, comment, PI or document."""
        try:
            return self._lxml_by_model[id(node)]
        except KeyError:
            raise KeyError("Node is not part of this mirror") from None

    def model_node(self, result: Any) -> Optional[XMLNode]:
        """Map one XPath result item back to its model node.

        Returns None for results with no model counterpart, such as computed
        strings or the text of an element that has no text node.
        """
        if isinstance(result, etree._ElementTree):
            return self.source if isinstance(self.source, XMLDocument) else None
        if isinstance(result, str):
            owner = getattr(result, "getparent", None)
            if owner is None:
                return None
            owner = owner()
            if owner is None:
                return None
            if result.is_attribute:
                model_owner = self._model_by_lxml.get(owner)
                if isinstance(model_owner, XMLElement):
                    return model_owner.get_attribute_node(self._attribute_name(result))
                return None
            if result.is_tail:
                return self._tail_by_owner.get(owner)
            if result.is_text:
                return self._text_by_owner.get(owner)
            return None
        return self._model_by_lxml.get(result)

    @staticmethod
    def _attribute_name(result: Any) -> str:
        name = result.attrname
        return name.decode("utf-8") if isinstance(name, bytes) else name

    def _register(self, model: XMLNode, lxml_node: Any) -> None:
        self._model_by_lxml[lxml_node] = model
        self._lxml_by_model[id(model)] = lxml_node

    def _new_lxml(self, model: XMLNode) -> Any:
        if isinstance(model, XMLElement):
            lxml_node = etree.Element(model.tag)
            for attribute in model.attributes:
                lxml_node.set(attribute.name, attribute.value)
        elif isinstance(model, XMLComment):
            lxml_node = etree.Comment(model.value)
        elif isinstance(model, XMLProcessingInstruction):
            lxml_node = etree.ProcessingInstruction(model.target, model.value or None)
        else:
            raise TypeError(f"Cannot mirror {type(model).__name__}")
        self._register(model, lxml_node)
        return lxml_node

    def _mirror_subtree(self, element: XMLElement) -> etree._Element:
        root = self._new_lxml(element)
        stack: List[Tuple[XMLElement, Any]] = [(element, root)]
        while stack:
            model_parent, lxml_parent = stack.pop()
            previous = None
            for child in model_parent.children:
                if isinstance(child, XMLText):
                    self._append_text(lxml_parent, previous, child)
                    continue
                lxml_child = self._new_lxml(child)
                lxml_parent.append(lxml_child)
                previous = lxml_child
                if isinstance(child, XMLElement):
                    stack.append((child, lxml_child))
        return root

    def _append_text(self, lxml_parent: Any, previous: Any, text: XMLText) -> None:
        if previous is None:
            lxml_parent.text = (lxml_parent.text or "") + text.value
            self._text_by_owner.setdefault(lxml_parent, text)
        else:
            previous.tail = (previous.tail or "") + text.value
            self._tail_by_owner.setdefault(previous, text)

    def _mirror_prolog(self, document: XMLDocument, element: XMLElement) -> None:
        index = document.children.index(element)
        for sibling in document.children[:index]:
            self.root.addprevious(self._new_lxml(sibling))
        anchor = self.root
        for sibling in document.children[index + 1:]:
            lxml_sibling = self._new_lxml(sibling)
            anchor.addnext(lxml_sibling)
            anchor = lxml_sibling
