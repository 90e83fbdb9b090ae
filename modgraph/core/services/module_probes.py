"""
Module probes — cheap filesystem checks on module directories.

Pure functions, no subprocess.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath

GO_MOD_FILE = "go.mod"
VENDOR_MANIFEST = Path("vendor") / "modules.txt"


def is_go_module(directory: Path | str) -> bool:
    """Whether ``directory`` is a module root (contains go.mod)."""
    return bool(str(directory)) and (Path(directory) / GO_MOD_FILE).is_file()


def is_vendoring(directory: Path | str) -> bool:
    """Whether the module at ``directory`` builds from a vendor tree."""
    return (Path(directory) / VENDOR_MANIFEST).is_file()


def is_local_path(module_path: str) -> bool:
    """Whether a replacement path names a directory instead of a module.

    Mirrors go.mod rules: absolute paths and paths starting with ``./``
    or ``../`` (either separator) are filesystem paths.
    """
    if PurePosixPath(module_path).is_absolute() or PureWindowsPath(module_path).is_absolute():
        return True
    return module_path.startswith(("./", "../", ".\\", "..\\")) or module_path in (".", "..")
