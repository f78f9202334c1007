"""XPath templating and selection.

Key Components:
    substitute: Fill positional placeholders in an XPath template
    find_placeholders: Quote-aware placeholder scanner
    XPathTemplate: Pre-scanned, reusable template
    XPathEngine: lxml-backed evaluation returning model nodes
    xpath_select_many, xpath_select_single: One-shot selection helpers
"""

from .templating import (
    ArgumentError,
    Placeholder,
    XPathTemplate,
    find_placeholders,
    quote_argument,
    substitute,
)
from .xpath import (
    XPathEngine,
    XPathQueryError,
    xpath_select_many,
    xpath_select_single,
)

__all__ = [
    "ArgumentError",
    "Placeholder",
    "XPathTemplate",
    "find_placeholders",
    "quote_argument",
    "substitute",
    "XPathEngine",
    "XPathQueryError",
    "xpath_select_many",
    "xpath_select_single",
]
