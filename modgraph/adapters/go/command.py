"""
Go command adapter — module enumeration through the go CLI.

Each method returns the raw text the core parses; nothing here knows
about the shape of that text.
"""

from __future__ import annotations

import logging
from pathlib import Path

from modgraph.adapters.base import ToolAdapter

logger = logging.getLogger(__name__)


class GoCommand(ToolAdapter):
    """Queries against the go toolchain."""

    def __init__(self, binary: str = "go", timeout: float | None = None) -> None:
        super().__init__(binary, timeout)

    @property
    def name(self) -> str:
        return "go"

    def list_modules(self, module_dir: Path) -> str:
        """Concatenated JSON records for the build list (``go list -m -json all``)."""
        return self._run(["list", "-mod", "readonly", "-json", "-m", "all"], module_dir)

    def get_module(self, module_dir: Path) -> str:
        """A single JSON record describing the module rooted at ``module_dir``."""
        return self._run(["list", "-mod", "readonly", "-json", "-m"], module_dir)

    def module_graph(self, module_dir: Path) -> str:
        """``dependant dependency`` coordinate pairs, one per line."""
        return self._run(["mod", "graph"], module_dir)

    def module_cache_dir(self, module_dir: Path) -> str:
        """The shared module cache root (``GOMODCACHE``)."""
        return self._run(["env", "GOMODCACHE"], module_dir).strip()
