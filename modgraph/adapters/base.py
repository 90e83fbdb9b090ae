"""
Adapter base — the contract between the core and external tools.

The core never spawns processes itself; it calls adapters. Unlike
fire-and-forget actions, every call here is a query whose output the
core depends on, so failures raise ``ExternalToolError`` instead of
being captured. Nothing is retried: retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path

from modgraph.core.errors import ExternalToolError

logger = logging.getLogger(__name__)


class ToolAdapter(ABC):
    """Abstract base class for command-line tool adapters.

    Args:
        binary: Executable name or path.
        timeout: Deadline in seconds for every call. ``None`` means the
            call blocks until the tool exits; on expiry the child process
            is killed.
    """

    def __init__(self, binary: str, timeout: float | None = None) -> None:
        self.binary = binary
        self.timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'go', 'git')."""

    def is_available(self) -> bool:
        """Check if the underlying tool is on PATH. Never raises."""
        return shutil.which(self.binary) is not None

    def _run(self, args: list[str], cwd: Path | str) -> str:
        """Run the tool and return stdout.

        Raises:
            ExternalToolError: Missing binary, timeout, or non-zero exit.
        """
        command = [self.binary, *args]
        logger.debug("Executing: %s (cwd=%s)", " ".join(command), cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(command, f"{self.binary} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(command, f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise ExternalToolError(command, str(e)) from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s %s finished in %dms (rc=%d)", self.name, args[0], elapsed_ms, result.returncode)

        if result.returncode != 0:
            raise ExternalToolError(
                command,
                result.stderr.strip() or f"exit code {result.returncode}",
                return_code=result.returncode,
            )
        return result.stdout

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} binary={self.binary!r}>"
