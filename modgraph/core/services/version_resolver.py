"""
Version resolver — derive a module version from git history.

Strategies, in order:

1. A tag named ``v...`` pointing at the checked-out commit.
2. A pseudo-version ``v0.0.0-<yyyymmddhhmmss>-<12 hex>`` built from the
   HEAD commit's author time (UTC) and hash.

See https://go.dev/ref/mod#pseudo-versions
"""

from __future__ import annotations

import logging
from pathlib import Path

from modgraph.adapters.vcs.git import TAG_REF_PREFIX, GitRepository
from modgraph.core.errors import ExternalToolError, ModGraphError, VersionUnresolvableError

logger = logging.getLogger(__name__)

SEMVER_TAG_PREFIX = "v"
PSEUDO_VERSION_BASE = "v0.0.0"
PSEUDO_TIME_FORMAT = "%Y%m%d%H%M%S"
ABBREVIATED_HASH_LENGTH = 12


class TagNotFoundError(ModGraphError):
    """No semantic version tag points at the current commit."""


def version_from_tag(repo: GitRepository) -> str:
    """Return the name of the first ``v`` tag targeting HEAD.

    Tags are taken in git's enumeration order; no extra sorting.

    Raises:
        ExternalToolError: If ``repo`` is not a repository root or git fails.
        TagNotFoundError: If no matching tag exists.
    """
    repo.ensure_root()
    head = repo.head()

    for ref_name, target in repo.tags():
        if target != head:
            continue
        if ref_name.startswith(TAG_REF_PREFIX + SEMVER_TAG_PREFIX):
            return ref_name.removeprefix(TAG_REF_PREFIX)

    raise TagNotFoundError(f"no version tag points at {head[:ABBREVIATED_HASH_LENGTH]}")


def pseudo_version(repo: GitRepository) -> str:
    """Build a pseudo-version for the HEAD commit.

    Raises:
        ExternalToolError: If ``repo`` is not a repository root or has no commits.
    """
    repo.ensure_root()
    commit_hash, author_time = repo.head_commit()
    return "-".join((
        PSEUDO_VERSION_BASE,
        author_time.strftime(PSEUDO_TIME_FORMAT),
        commit_hash[:ABBREVIATED_HASH_LENGTH],
    ))


def get_module_version(
    directory: Path | str,
    git_binary: str = "git",
    timeout: float | None = None,
) -> str:
    """Best-effort version of the module checked out at ``directory``.

    Raises:
        VersionUnresolvableError: If both strategies fail. The caller
            decides whether that is fatal.
    """
    repo = GitRepository(directory, binary=git_binary, timeout=timeout)

    try:
        return version_from_tag(repo)
    except (TagNotFoundError, ExternalToolError) as tag_error:
        logger.debug("No tag version for %s: %s", directory, tag_error)
        try:
            return pseudo_version(repo)
        except ExternalToolError as pseudo_error:
            raise VersionUnresolvableError(str(directory), tag_error, pseudo_error) from pseudo_error
