"""fluidxml.

Read-path helpers for XML documents: document-order traversal with category
filtering, and XPath templates with positional, quote-aware argument
substitution.

Progressive API Disclosure:
- Level 1: Simple functions - descendants(), elements(), substitute(),
  xpath_select_many(), xpath_select_single(), load_string(), load_file()
- Level 2: Configured objects - FluidXML sessions, DocumentOrderTraverser,
  XPathEngine and XPathTemplate with FluidConfig / TraversalConfig / QueryConfig
"""

__version__ = "0.1.0"
__author__ = "fluidxml Team"

# Level 1: Simple functions
from .query import (
    ArgumentError,
    XPathQueryError,
    substitute,
    xpath_select_many,
    xpath_select_single,
)
from .traversal import TreeMutationError, descendants, elements
from .tree import DocumentLoadError, load_bytes, load_file, load_string, to_xml

# Level 2: Configured objects
from .query import XPathEngine, XPathTemplate
from .api import FluidXML
from .shared import (
    FluidConfig,
    GlobalConfig,
    QueryConfig,
    TraversalConfig,
    TreeConfig,
    configure_logging,
)
from .traversal import DocumentOrderTraverser

# Node model
from .tree import (
    NodeCategory,
    XMLAttribute,
    XMLDocument,
    XMLElement,
    XMLText,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "descendants",
    "elements",
    "substitute",
    "xpath_select_many",
    "xpath_select_single",
    "load_string",
    "load_bytes",
    "load_file",
    "to_xml",

    # Level 2: Configured objects
    "FluidXML",
    "DocumentOrderTraverser",
    "XPathEngine",
    "XPathTemplate",
    "FluidConfig",
    "GlobalConfig",
    "QueryConfig",
    "TraversalConfig",
    "TreeConfig",
    "configure_logging",

    # Node model
    "NodeCategory",
    "XMLAttribute",
    "XMLDocument",
    "XMLElement",
    "XMLText",

    # Errors
    "ArgumentError",
    "DocumentLoadError",
    "TreeMutationError",
    "XPathQueryError",
]
