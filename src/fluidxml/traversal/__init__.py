"""Document-order traversal engine.

Key Components:
    DocumentOrderTraverser: Explicit-stack, children-before-parent walker
    descendants: Convenience wrapper returning a lazy iterator
    elements: Direct child elements, optionally filtered by name
    TreeMutationError: Raised when the tree changes size mid-traversal
"""

from .descendants import (
    DocumentOrderTraverser,
    TreeMutationError,
    descendants,
    elements,
)

__all__ = [
    "DocumentOrderTraverser",
    "TreeMutationError",
    "descendants",
    "elements",
]
