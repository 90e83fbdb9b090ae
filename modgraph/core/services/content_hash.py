"""
Content hasher — the "h1:" directory hash used by go.sum.

Each file is listed as ``<prefix>/<path relative to the directory>``
(forward slashes). The sorted list becomes a summary of
``<sha256 hex>  <name>`` lines whose SHA-256, base64-encoded, is the
hash. The same value appears in go.sum and the checksum database, so a
module can be verified against them.

See golang.org/x/mod/sumdb/dirhash.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from pathlib import Path

from modgraph.core.models.module import Module

logger = logging.getLogger(__name__)

HASH_PREFIX = "h1:"
GO_SUM_FILE = "go.sum"

_CHUNK_SIZE = 1 << 16


def dir_files(directory: Path | str, prefix: str) -> list[str]:
    """All files under ``directory`` as ``prefix/relative/path`` names.

    Links are not followed. A link to a directory is listed like a file,
    so reading it fails instead of its content being skipped.
    """
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"{root} is not a directory")

    files: list[str] = []
    for current, dirs, names in os.walk(root):
        linked = [d for d in dirs if os.path.islink(os.path.join(current, d))]
        for name in [*names, *linked]:
            relative = (Path(current) / name).relative_to(root).as_posix()
            files.append(f"{prefix}/{relative}" if prefix else relative)
    return files


def _file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hash_dir(directory: Path | str, prefix: str) -> str:
    """Compute the h1 hash of ``directory``, namespaced by ``prefix``.

    Raises:
        NotADirectoryError: If ``directory`` is not a directory.
        ValueError: If a file name contains a newline.
        OSError: If a file cannot be read.
    """
    root = Path(directory)
    summary = hashlib.sha256()

    for name in sorted(dir_files(root, prefix)):
        if "\n" in name:
            raise ValueError(f"dirhash: filenames with newlines are not supported: {name!r}")
        relative = name[len(prefix) + 1:] if prefix else name
        summary.update(f"{_file_digest(root / relative)}  {name}\n".encode())

    return HASH_PREFIX + base64.b64encode(summary.digest()).decode("ascii")


def module_hash(module: Module) -> str | None:
    """Hash of a module's content, read through its replacement.

    Vendored modules hold a filtered file set, so they never get a hash.
    Neither do modules the go command has not downloaded (no ``dir``).
    """
    effective = module.effective
    if effective.vendored:
        return None
    if not effective.dir:
        logger.debug("%s has no directory, not hashing", effective.coordinates)
        return None
    return hash_dir(effective.dir, effective.coordinates)


def load_sum_ledger(path: Path | str) -> dict[tuple[str, str], str]:
    """Read go.sum into ``{(module path, version): h1 hash}``.

    ``/go.mod`` entries hash only the go.mod file and are skipped.
    Returns an empty ledger when the file does not exist.
    """
    ledger: dict[tuple[str, str], str] = {}
    sum_file = Path(path)
    if not sum_file.is_file():
        return ledger

    for line in sum_file.read_text(encoding="utf-8").splitlines():
        fields = line.split()
        if len(fields) != 3:
            continue
        module_path, version, checksum = fields
        if version.endswith("/go.mod"):
            continue
        ledger[(module_path, version)] = checksum
    logger.debug("Loaded %d checksums from %s", len(ledger), sum_file)
    return ledger


def verify_module(
    module: Module,
    ledger: dict[tuple[str, str], str],
    checksum: str | None = None,
) -> bool | None:
    """Compare a module's content hash with its go.sum entry.

    ``checksum`` is an already computed hash; without it the module is
    hashed here.

    Returns:
        ``True``/``False`` on match/mismatch, ``None`` when there is
        nothing to compare (vendored, or no ledger entry).
    """
    effective = module.effective
    if effective.vendored:
        return None
    expected = ledger.get((effective.path, effective.version))
    if expected is None:
        return None
    if checksum is None:
        checksum = module_hash(module)
        if checksum is None:
            return None
    if checksum != expected:
        logger.warning("checksum mismatch for %s: go.sum has %s", effective.coordinates, expected)
        return False
    return True
