"""
Domain models — Pydantic types for the module graph.

    from modgraph.core.models import Module, ModuleGraph
"""

from modgraph.core.models.graph import ModuleGraph
from modgraph.core.models.module import Module

__all__ = [
    "Module",
    "ModuleGraph",
]
