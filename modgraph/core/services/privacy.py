"""
Privacy classifier — which modules must not be looked up externally.

Patterns come from ``GONOPROXY`` and ``GOPRIVATE`` (comma-separated
globs). They are merged once at startup into a ``PrivatePatterns`` value
that is passed around and only ever read.

Matching follows the go command: a pattern with N path elements is
matched, with ``path.Match`` semantics, against the first N elements of
the module path. So ``github.com/acme`` covers ``github.com/acme/lib``
and ``*.corp.example.com`` covers every module on those hosts.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache

from modgraph.core.models.module import Module

logger = logging.getLogger(__name__)

PRIVATE_PATTERN_VARIABLES = ("GONOPROXY", "GOPRIVATE")


def merge_patterns(*sources: str | Iterable[str] | None) -> tuple[str, ...]:
    """Merge comma-separated pattern lists into a sorted, de-duplicated tuple.

    Each source is either one comma-separated string or an iterable of
    patterns. Blank entries and surrounding whitespace are dropped.
    """
    patterns: set[str] = set()
    for source in sources:
        if not source:
            continue
        items = source.split(",") if isinstance(source, str) else source
        for item in items:
            pattern = item.strip()
            if pattern:
                patterns.add(pattern)
    return tuple(sorted(patterns))


@dataclass(frozen=True)
class PrivatePatterns:
    """Immutable set of private module patterns, safe to share across threads."""

    patterns: tuple[str, ...] = ()

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        extra: Iterable[str] = (),
    ) -> PrivatePatterns:
        """Merge ``GONOPROXY``, ``GOPRIVATE`` and any configured extras."""
        env = os.environ if environ is None else environ
        merged = merge_patterns(*(env.get(var, "") for var in PRIVATE_PATTERN_VARIABLES), extra)
        if merged:
            logger.debug("Private module patterns: %s", ", ".join(merged))
        return cls(merged)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def matches(self, module_path: str) -> bool:
        return any(match_prefix(pattern, module_path) for pattern in self.patterns)


# ── Glob matching ───────────────────────────────────────────────────


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    """Translate a ``path.Match`` glob into a regex.

    ``*`` and ``?`` never match ``/``; classes are ``[...]`` with ``^``
    for negation; ``\\`` escapes the next character.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            i += 1
            if i >= n:
                raise ValueError(f"syntax error in pattern: {pattern!r}")
            out.append(re.escape(pattern[i]))
        elif c == "[":
            i, cls = _compile_class(pattern, i + 1)
            out.append(cls)
            continue
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


def _compile_class(pattern: str, i: int) -> tuple[int, str]:
    """Translate the class starting after ``[``; return (next index, regex)."""
    n = len(pattern)
    negate = i < n and pattern[i] == "^"
    if negate:
        i += 1

    ranges: list[str] = []
    first = True
    while True:
        if i >= n:
            raise ValueError(f"syntax error in pattern: {pattern!r}")
        if pattern[i] == "]" and not first:
            i += 1
            break
        first = False

        lo, i = _class_char(pattern, i)
        hi = lo
        if i < n and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
            if hi < lo:
                raise ValueError(f"syntax error in pattern: {pattern!r}")
        ranges.append(re.escape(lo) if lo == hi else f"{re.escape(lo)}-{re.escape(hi)}")

    body = "".join(ranges)
    # Classes never match the separator either
    return i, f"[^/{body}]" if negate else f"(?!/)[{body}]"


def _class_char(pattern: str, i: int) -> tuple[str, int]:
    n = len(pattern)
    if i >= n or pattern[i] in "-]":
        raise ValueError(f"syntax error in pattern: {pattern!r}")
    if pattern[i] == "\\":
        i += 1
        if i >= n:
            raise ValueError(f"syntax error in pattern: {pattern!r}")
    return pattern[i], i + 1


def match_path(pattern: str, name: str) -> bool:
    """Shell-glob match where wildcards stay within one path element.

    Raises:
        ValueError: If ``pattern`` is malformed.
    """
    return _compile(pattern).match(name) is not None


def match_prefix(pattern: str, module_path: str) -> bool:
    """Match ``pattern`` against the leading elements of ``module_path``."""
    pattern = pattern.rstrip("/")
    if not pattern:
        return False

    elements = pattern.count("/") + 1
    parts = module_path.split("/")
    if len(parts) < elements:
        return False

    try:
        return match_path(pattern, "/".join(parts[:elements]))
    except ValueError:
        logger.warning("Ignoring malformed private module pattern %r", pattern)
        return False


def is_private(module: Module, patterns: PrivatePatterns) -> bool:
    """Whether network-based enrichment must be skipped for ``module``.

    Both the declared path and the replacement's path are checked, so a
    public module replaced by a private fork is private.
    """
    return patterns.matches(module.path) or patterns.matches(module.effective.path)
