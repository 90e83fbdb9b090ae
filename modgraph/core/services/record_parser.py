"""
Record parser — turn module-tool output into Module records.

Two input shapes are recognized:

- the flat listing of ``go list -m -json all``: JSON objects written one
  after another with no enclosing array;
- the vendor manifest (``vendor/modules.txt``): lines starting with
  ``# `` describe modules, everything else is ignored.

Upstream order is preserved in both cases.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from modgraph.core.errors import MalformedRecordError
from modgraph.core.models.module import Module

logger = logging.getLogger(__name__)

REPLACE_ARROW = "=>"

_decoder = json.JSONDecoder()


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _decode_record(text: str, pos: int) -> tuple[Module, int]:
    try:
        data, end = _decoder.raw_decode(text, pos)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid module record at offset {pos}: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedRecordError(
            f"expected a JSON object at offset {pos}, got {type(data).__name__}"
        )
    try:
        return Module.model_validate(data), end
    except ValidationError as e:
        raise MalformedRecordError(f"invalid module record at offset {pos}: {e}") from e


def parse_modules(text: str) -> list[Module]:
    """Parse a concatenated stream of JSON module records.

    Each record is decoded on its own. A clean end of stream (only
    whitespace left) ends the sequence; anything else that does not
    decode, including a truncated final record, raises.

    Raises:
        MalformedRecordError: On any undecodable record.
    """
    modules: list[Module] = []
    pos = _skip_whitespace(text, 0)
    while pos < len(text):
        module, pos = _decode_record(text, pos)
        modules.append(module)
        pos = _skip_whitespace(text, pos)
    return modules


def parse_main_module(text: str) -> Module:
    """Parse the single record ``go list -m -json`` prints for one module."""
    modules = parse_modules(text)
    if len(modules) != 1:
        raise MalformedRecordError(f"expected exactly one module record, got {len(modules)}")
    return modules[0]


def parse_vendored_modules(root: Path | str, text: str) -> list[Module]:
    """Parse a vendor manifest into Module records.

    Descriptive lines look like ``# Path Version`` or
    ``# Path [Version] => Path [Version]``. Every record is marked as
    vendored and lives under ``<root>/vendor/<path>``. A replacement is
    copied into its original's vendor directory, so the replacement's
    ``dir`` is derived from the *original* path, not its own.

    Raises:
        MalformedRecordError: On a descriptive line with the wrong shape.
    """
    vendor_dir = Path(root) / "vendor"
    modules: list[Module] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line.startswith("# "):
            continue

        fields = line[2:].split()
        if REPLACE_ARROW not in fields:
            if len(fields) != 2:
                raise MalformedRecordError(
                    f"expected two fields per line, but got {len(fields)}: {line}"
                )
            path, version = fields
            modules.append(
                Module(
                    path=path,
                    version=version,
                    dir=str(vendor_dir / path),
                    vendored=True,
                )
            )
            continue

        arrow = fields.index(REPLACE_ARROW)
        replacement_fields = fields[arrow + 1:]
        if arrow not in (1, 2) or len(replacement_fields) not in (1, 2):
            raise MalformedRecordError(f"malformed replacement line: {line}")

        path = fields[0]
        version = fields[1] if arrow == 2 else ""
        replacement = Module(
            path=replacement_fields[0],
            version=replacement_fields[1] if len(replacement_fields) == 2 else "",
            dir=str(vendor_dir / path),
            vendored=True,
        )
        modules.append(Module(path=path, version=version, replace=replacement))

    logger.debug("Parsed %d vendored modules", len(modules))
    return modules
