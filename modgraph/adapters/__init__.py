"""
Adapters — the only code that talks to external tools.

    from modgraph.adapters import GoCommand, GitRepository
"""

from modgraph.adapters.go.command import GoCommand
from modgraph.adapters.vcs.git import GitRepository

__all__ = ["GitRepository", "GoCommand"]
