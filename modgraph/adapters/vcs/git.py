"""
Git adapter — read-only repository history queries.

Uses the git CLI, never raw object access. A directory only counts as a
repository when it is the top level of a work tree; a module nested
inside another project's checkout is not versioned by that checkout.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from modgraph.adapters.base import ToolAdapter
from modgraph.core.errors import ExternalToolError

logger = logging.getLogger(__name__)

TAG_REF_PREFIX = "refs/tags/"


class GitRepository(ToolAdapter):
    """History queries for the repository rooted at ``path``."""

    def __init__(self, path: Path | str, binary: str = "git", timeout: float | None = None) -> None:
        super().__init__(binary, timeout)
        self.path = Path(path)

    @property
    def name(self) -> str:
        return "git"

    def _git(self, *args: str) -> str:
        return self._run(list(args), self.path)

    def ensure_root(self) -> None:
        """Fail unless ``path`` is the top level of a git work tree."""
        if not self.path.is_dir():
            raise ExternalToolError([self.binary], f"{self.path} is not a directory")
        toplevel = self._git("rev-parse", "--show-toplevel").strip()
        if Path(toplevel).resolve() != self.path.resolve():
            raise ExternalToolError(
                [self.binary, "rev-parse", "--show-toplevel"],
                f"{self.path} is not a repository root (inside {toplevel})",
            )

    def head(self) -> str:
        """Full hash of the commit currently checked out."""
        return self._git("rev-parse", "--verify", "HEAD^{commit}").strip()

    def tags(self) -> list[tuple[str, str]]:
        """All tags as ``(ref name, target commit)`` in git's enumeration order.

        Annotated tags are peeled to the commit they point at, through any
        number of tag objects. Tags on trees or blobs are left out.
        """
        output = self._git(
            "for-each-ref",
            "--format=%(refname) %(objecttype) %(objectname) %(*objecttype) %(*objectname)",
            "refs/tags",
        )
        tags: list[tuple[str, str]] = []
        for line in output.splitlines():
            fields = line.split()
            if len(fields) < 3:
                continue
            ref_name = fields[0]
            # Last type/name pair is the peeled target when there is one
            object_type, target = fields[-2], fields[-1]
            if object_type == "tag":
                target = self._peel(ref_name)
            elif object_type != "commit":
                target = None
            if target is None:
                logger.debug("Tag %s does not point at a commit", ref_name)
                continue
            tags.append((ref_name, target))
        return tags

    def _peel(self, ref_name: str) -> str | None:
        try:
            return self._git("rev-parse", "--verify", "--quiet", f"{ref_name}^{{commit}}").strip()
        except ExternalToolError:
            return None

    def head_commit(self) -> tuple[str, datetime]:
        """Hash and author time (UTC) of the HEAD commit."""
        output = self._git("log", "-1", "--format=%H %at", "HEAD").strip()
        commit_hash, _, timestamp = output.partition(" ")
        if not commit_hash or not timestamp.isdigit():
            raise ExternalToolError([self.binary, "log"], f"unexpected output: {output!r}")
        return commit_hash, datetime.fromtimestamp(int(timestamp), UTC)
