"""
Local replacement resolver — re-derive identity of directory replacements.

A replacement written in go.mod as a filesystem path (``=> ../lib``)
carries that path where a module path is expected. The real module path
is read from the target directory itself, and a version is derived from
its git history when none is declared.
"""

from __future__ import annotations

import logging
from pathlib import Path

from modgraph.adapters.go.command import GoCommand
from modgraph.core.config.loader import Settings
from modgraph.core.errors import (
    GraphBuildError,
    ModGraphError,
    NotAModuleError,
    VersionUnresolvableError,
)
from modgraph.core.models.module import Module
from modgraph.core.services.module_probes import is_go_module, is_local_path
from modgraph.core.services.record_parser import parse_main_module
from modgraph.core.services.version_resolver import get_module_version

logger = logging.getLogger(__name__)

REPLACEMENT_STAGE = "replacement resolution"


def _in_module_cache(directory: str, cache_dir: str | None) -> bool:
    if not directory or not cache_dir:
        return False
    return Path(directory).resolve().is_relative_to(Path(cache_dir).resolve())


def resolve_local_module(
    main_root: Path,
    replacement: Module,
    go: GoCommand,
    settings: Settings,
    cache_dir: str | None = None,
) -> None:
    """Overwrite ``replacement``'s path (and empty version) in place.

    Args:
        main_root: Root of the main module; relative paths resolve here.
        replacement: The ``replace`` record of some module.
        go: Go command adapter.
        settings: Build settings (git binary, timeout).
        cache_dir: Shared module cache root. Replacements already
            materialized there are authoritative and left untouched.

    Raises:
        NotAModuleError: If the target directory has no go.mod.
        ExternalToolError: If querying the target module fails.
        MalformedRecordError: If the go tool's answer cannot be parsed.
    """
    if is_go_module(replacement.dir) and _in_module_cache(replacement.dir, cache_dir):
        logger.debug("%s is in the module cache", replacement.coordinates)
        return

    target = Path(replacement.path)
    if not target.is_absolute():
        target = main_root / target
    target = target.resolve()

    if not is_go_module(target):
        raise NotAModuleError(str(target))

    local = parse_main_module(go.get_module(target))
    logger.debug("Local replacement %s is module %s", replacement.path, local.path)
    replacement.path = local.path

    if replacement.version:
        return

    try:
        replacement.version = get_module_version(
            target,
            git_binary=settings.git_binary,
            timeout=settings.command_timeout,
        )
    except VersionUnresolvableError as e:
        # Uncommitted trees and non-git checkouts are common here
        logger.warning("failed to resolve version of local module %s: %s", replacement.path, e)


def resolve_local_replacements(
    main_root: Path,
    modules: list[Module],
    go: GoCommand,
    settings: Settings,
) -> int:
    """Resolve every replacement that points at a local directory.

    Returns:
        Number of replacements resolved.

    Raises:
        GraphBuildError: The first failure, annotated with the
            replacement's coordinates. The cause is chained.
    """
    local = [
        m.replace for m in modules
        if m.replace is not None and is_local_path(m.replace.path)
    ]
    if not local:
        return 0

    try:
        cache_dir = settings.module_cache_dir or go.module_cache_dir(main_root)
    except ModGraphError as e:
        raise GraphBuildError(REPLACEMENT_STAGE, f"locating module cache failed: {e}") from e

    for replacement in local:
        coordinates = replacement.coordinates
        try:
            resolve_local_module(main_root, replacement, go, settings, cache_dir=cache_dir)
        except ModGraphError as e:
            raise GraphBuildError(
                REPLACEMENT_STAGE,
                f"resolving local module {coordinates} failed: {e}",
            ) from e
    return len(local)
