"""
Error taxonomy for graph building.

Every failure raised by the core derives from ``ModGraphError`` so the
CLI can catch one type. Dangling dependency edges are not errors: they
are dropped and logged at DEBUG by the graph assembler.
"""

from __future__ import annotations


class ModGraphError(Exception):
    """Base class for all modgraph failures."""


class NotAModuleError(ModGraphError):
    """Raised when a path is not a module root (no go.mod)."""

    def __init__(self, path: str) -> None:
        super().__init__(f"not a Go module: {path}")
        self.path = path


class MalformedRecordError(ModGraphError):
    """Raised when listing, manifest or edge input has an unknown shape."""


class VersionUnresolvableError(ModGraphError):
    """Raised when neither a tag nor a pseudo-version could be derived.

    Both underlying failures are kept for diagnostics.
    """

    def __init__(self, directory: str, tag_error: Exception, pseudo_error: Exception) -> None:
        super().__init__(
            f"cannot resolve version of {directory}: "
            f"tag lookup failed ({tag_error}); pseudo-version failed ({pseudo_error})"
        )
        self.directory = directory
        self.tag_error = tag_error
        self.pseudo_error = pseudo_error


class ExternalToolError(ModGraphError):
    """Raised when an external command (go, git) fails. Never retried."""

    def __init__(
        self,
        command: list[str],
        message: str,
        return_code: int | None = None,
    ) -> None:
        super().__init__(f"{' '.join(command)}: {message}")
        self.command = command
        self.return_code = return_code


class GraphBuildError(ModGraphError):
    """A fatal failure in one stage of the build, wrapping its cause."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage
