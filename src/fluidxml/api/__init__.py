"""Configured session API.

Key Components:
    FluidXML: Session applying one FluidConfig to loading, traversal and queries
"""

from .session import FluidXML

__all__ = ["FluidXML"]
