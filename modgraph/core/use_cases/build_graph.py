"""
Graph build use case — parse, assemble, resolve, enrich.

Ties together the go adapter, the record parser, local replacement
resolution, graph assembly and per-module enrichment. Stages run in a
fixed order; assembly and replacement resolution complete before any
enrichment starts, since enrichment reads rewritten identities.

Each stage wraps failures in ``GraphBuildError`` naming the stage, with
the original exception chained.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from modgraph.adapters.go.command import GoCommand
from modgraph.core.config.loader import Settings
from modgraph.core.errors import GraphBuildError, ModGraphError, NotAModuleError
from modgraph.core.models.graph import ModuleGraph
from modgraph.core.models.module import Module
from modgraph.core.services.content_hash import (
    GO_SUM_FILE,
    load_sum_ledger,
    module_hash,
    verify_module,
)
from modgraph.core.services.graph_assembler import assemble_graph
from modgraph.core.services.local_replace import resolve_local_replacements
from modgraph.core.services.module_probes import VENDOR_MANIFEST, is_go_module, is_vendoring
from modgraph.core.services.privacy import PrivatePatterns, is_private
from modgraph.core.services.record_parser import (
    parse_main_module,
    parse_modules,
    parse_vendored_modules,
)

logger = logging.getLogger(__name__)

DISCOVERY_STAGE = "discovery"
PARSING_STAGE = "parsing"
LINKING_STAGE = "graph linking"
ENRICHMENT_STAGE = "enrichment"


@dataclass
class ModuleDetails:
    """Per-module enrichment results."""

    hash: str | None = None   # None for vendored modules or when hashing is off
    private: bool = False
    verified: bool | None = None   # go.sum comparison, None without an entry


@dataclass
class BuildResult:
    """Result of the build use case."""

    graph: ModuleGraph
    details: dict[str, ModuleDetails] = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = self.graph.to_dict()
        for entry, module in zip(result["modules"], self.graph.modules):
            details = self.details.get(module.coordinates)
            if details is None:
                continue
            entry["private"] = details.private
            if details.hash is not None:
                entry["hash"] = details.hash
            if details.verified is not None:
                entry["verified"] = details.verified
        return result


def _discover(root: Path, go: GoCommand) -> list[Module]:
    if not is_vendoring(root):
        try:
            listing = go.list_modules(root)
        except ModGraphError as e:
            raise GraphBuildError(DISCOVERY_STAGE, f"listing modules failed: {e}") from e
        try:
            return parse_modules(listing)
        except ModGraphError as e:
            raise GraphBuildError(PARSING_STAGE, f"parsing modules failed: {e}") from e

    try:
        manifest = (root / VENDOR_MANIFEST).read_text(encoding="utf-8")
    except OSError as e:
        raise GraphBuildError(DISCOVERY_STAGE, f"reading vendor manifest failed: {e}") from e
    try:
        modules = parse_vendored_modules(root, manifest)
    except ModGraphError as e:
        raise GraphBuildError(PARSING_STAGE, f"parsing vendored modules failed: {e}") from e

    # The manifest never lists the main module
    try:
        listing = go.get_module(root)
    except ModGraphError as e:
        raise GraphBuildError(DISCOVERY_STAGE, f"listing main module failed: {e}") from e
    try:
        main = parse_main_module(listing)
    except ModGraphError as e:
        raise GraphBuildError(PARSING_STAGE, f"parsing main module failed: {e}") from e

    return [main, *modules]


def get_modules(
    root: Path | str,
    settings: Settings | None = None,
    go: GoCommand | None = None,
) -> ModuleGraph:
    """Build the module graph for the module rooted at ``root``.

    Raises:
        NotAModuleError: If ``root`` has no go.mod.
        GraphBuildError: If any stage fails.
    """
    settings = settings or Settings()
    root = Path(root).resolve()
    if not is_go_module(root):
        raise NotAModuleError(str(root))

    go = go or GoCommand(settings.go_binary, timeout=settings.command_timeout)

    modules = _discover(root, go)
    logger.info("Discovered %d modules in %s", len(modules), root)

    resolved = resolve_local_replacements(root, modules, go, settings)
    if resolved:
        logger.info("Resolved %d local replacements", resolved)

    try:
        edges = go.module_graph(root)
    except ModGraphError as e:
        raise GraphBuildError(DISCOVERY_STAGE, f"listing module graph failed: {e}") from e
    try:
        graph = assemble_graph(modules, edges)
    except ModGraphError as e:
        raise GraphBuildError(LINKING_STAGE, f"parsing module graph failed: {e}") from e

    return graph


def _details(
    module: Module,
    patterns: PrivatePatterns,
    with_hash: bool,
    ledger: dict[tuple[str, str], str],
) -> ModuleDetails:
    details = ModuleDetails(private=is_private(module, patterns))
    if not with_hash:
        return details
    details.hash = module_hash(module)
    if details.hash is not None and ledger:
        details.verified = verify_module(module, ledger, details.hash)
    return details


def enrich_modules(
    graph: ModuleGraph,
    patterns: PrivatePatterns,
    workers: int = 4,
    with_hash: bool = True,
    ledger: dict[tuple[str, str], str] | None = None,
) -> dict[str, ModuleDetails]:
    """Hash and classify every module concurrently.

    Each worker writes a distinct entry keyed by the module's original
    coordinates. Hashes are compared with ``ledger`` (go.sum entries)
    when one is given. The first failure cancels work that has not started.

    Raises:
        GraphBuildError: If hashing a module fails.
    """
    details: dict[str, ModuleDetails] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_details, module, patterns, with_hash, ledger or {}): module
            for module in graph.modules
        }
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()

        for future in done:
            module = futures[future]
            try:
                details[module.coordinates] = future.result()
            except (OSError, ValueError) as e:
                raise GraphBuildError(
                    ENRICHMENT_STAGE, f"hashing {module.effective.coordinates} failed: {e}"
                ) from e

    return details


def build_graph(
    root: Path | str,
    settings: Settings | None = None,
    patterns: PrivatePatterns | None = None,
    with_hash: bool = True,
    go: GoCommand | None = None,
) -> BuildResult:
    """Build the graph and enrich every module with hash and privacy.

    With hashing on, hashes are checked against the main module's go.sum.
    """
    settings = settings or Settings()
    if patterns is None:
        patterns = PrivatePatterns.from_env(extra=settings.private_patterns)

    graph = get_modules(root, settings, go=go)

    ledger = None
    if with_hash:
        try:
            ledger = load_sum_ledger(Path(root) / GO_SUM_FILE)
        except OSError as e:
            raise GraphBuildError(ENRICHMENT_STAGE, f"reading {GO_SUM_FILE} failed: {e}") from e

    details = enrich_modules(
        graph, patterns, workers=settings.workers, with_hash=with_hash, ledger=ledger,
    )
    return BuildResult(graph=graph, details=details)
