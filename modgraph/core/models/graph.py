"""
Module graph — coordinate-indexed store over assembled modules.

Edges are stored on each record as coordinates and resolved through the
index on demand, so traversals can carry a visited set and never loop
on malformed (cyclic) input.
"""

from __future__ import annotations

from collections.abc import Iterator

from modgraph.core.models.module import Module


class ModuleGraph:
    """An assembled, replacement-aware module graph.

    Lookups by an original coordinate yield the replacement when one is
    set. A replacement's own coordinate is indexed as well, unless an
    original coordinate already claims it.
    """

    def __init__(self, modules: list[Module], index: dict[str, Module]) -> None:
        self.modules = modules
        self._index = index

    def __len__(self) -> int:
        return len(self.modules)

    def __contains__(self, coordinates: object) -> bool:
        return coordinates in self._index

    def get(self, coordinates: str) -> Module | None:
        """Look up the effective module for a coordinate."""
        return self._index.get(coordinates)

    @property
    def main_module(self) -> Module | None:
        for module in self.modules:
            if module.main:
                return module
        return None

    def dependencies(self, module: Module) -> list[Module]:
        """Direct dependencies of ``module`` in edge order, duplicates kept."""
        resolved: list[Module] = []
        for coordinates in module.effective.dependencies:
            dependency = self._index.get(coordinates)
            if dependency is not None:
                resolved.append(dependency)
        return resolved

    def walk(self, root: Module | None = None) -> Iterator[Module]:
        """Depth-first pre-order traversal, each effective module once.

        Starts at ``root`` (default: the main module). Without a main
        module, every record is used as a starting point in list order.
        """
        if root is None:
            root = self.main_module
        starts = [root] if root is not None else list(self.modules)

        seen: set[int] = set()
        for start in starts:
            stack = [start.effective]
            while stack:
                module = stack.pop()
                if id(module) in seen:
                    continue
                seen.add(id(module))
                yield module
                # Reverse so the first dependency is visited first
                stack.extend(reversed(self.dependencies(module)))

    def to_dict(self) -> dict:
        main = self.main_module
        return {
            "main": main.coordinates if main is not None else None,
            "modules": [m.to_dict() for m in self.modules],
        }
