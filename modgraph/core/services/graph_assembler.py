"""
Graph assembler — link module records with dependency edges.

The edge stream is ``go mod graph`` output: one ``dependant dependency``
coordinate pair per line. Endpoints are resolved through a
replacement-aware index, so an edge naming a replaced module attaches to
(or points at) its replacement.
"""

from __future__ import annotations

import logging

from modgraph.core.errors import MalformedRecordError
from modgraph.core.models.graph import ModuleGraph
from modgraph.core.models.module import Module

logger = logging.getLogger(__name__)


def index_modules(modules: list[Module]) -> dict[str, Module]:
    """Build the coordinate → effective module index.

    Original coordinates are keyed first and always win. A replaced
    record's own coordinate maps to its replacement, never to itself.
    Replacement coordinates are added afterwards where still free.
    """
    index: dict[str, Module] = {}
    for module in modules:
        index.setdefault(module.coordinates, module.effective)
    for module in modules:
        if module.replace is not None:
            index.setdefault(module.replace.coordinates, module.replace)
    return index


def find_module(index: dict[str, Module], coordinates: str) -> Module | None:
    """Resolve a coordinate, following one level of replacement."""
    module = index.get(coordinates)
    if module is None:
        return None
    return module.effective


def link_dependencies(text: str, index: dict[str, Module]) -> int:
    """Attach edges from ``text`` to the indexed modules.

    Edges whose endpoints are not indexed are dropped: filtered or partial
    enumerations are expected. Duplicate edges accumulate.

    Returns:
        Number of edges dropped.

    Raises:
        MalformedRecordError: On a line that is not exactly two fields.
    """
    dropped = 0
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        fields = line.split()
        if len(fields) != 2:
            raise MalformedRecordError(
                f"expected two fields per line, but got {len(fields)}: {line}"
            )

        dependant = find_module(index, fields[0])
        dependency = find_module(index, fields[1])
        if dependant is None or dependency is None:
            logger.debug("Dropping dangling edge: %s", line)
            dropped += 1
            continue

        reference = dependency.coordinates
        if index.get(reference) is not dependency:
            # Replacement identity shadowed by another original coordinate
            reference = fields[1]
        dependant.dependencies.append(reference)

    return dropped


def assemble_graph(modules: list[Module], edges: str) -> ModuleGraph:
    """Index ``modules``, link ``edges`` and return the graph."""
    index = index_modules(modules)
    dropped = link_dependencies(edges, index)
    if dropped:
        logger.info("Dropped %d edges referencing unknown modules", dropped)
    return ModuleGraph(modules, index)
