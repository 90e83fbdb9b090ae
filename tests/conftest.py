"""
Shared test fixtures and configuration.
"""

import json
import subprocess
from pathlib import Path

import pytest

from modgraph.adapters.go.command import GoCommand

# Fixed author time for reproducible pseudo-versions
AUTHOR_DATE = "2021-03-04 05:06:07 +0000"


class FakeGo(GoCommand):
    """GoCommand that answers from canned output instead of the go tool."""

    def __init__(
        self,
        listing: str = "",
        main: str = "",
        graph: str = "",
        modules: dict[Path, str] | None = None,
        cache_dir: str = "/nonexistent/gomodcache",
    ) -> None:
        super().__init__("go")
        self.listing = listing
        self.main = main
        self.graph = graph
        self.modules = {Path(k).resolve(): v for k, v in (modules or {}).items()}
        self.cache_dir = cache_dir
        self.calls: list[tuple[str, Path]] = []

    def list_modules(self, module_dir: Path) -> str:
        self.calls.append(("list_modules", Path(module_dir)))
        return self.listing

    def get_module(self, module_dir: Path) -> str:
        self.calls.append(("get_module", Path(module_dir)))
        return self.modules.get(Path(module_dir).resolve(), self.main)

    def module_graph(self, module_dir: Path) -> str:
        self.calls.append(("module_graph", Path(module_dir)))
        return self.graph

    def module_cache_dir(self, module_dir: Path) -> str:
        self.calls.append(("module_cache_dir", Path(module_dir)))
        return self.cache_dir


def _records(*objects: dict) -> str:
    return "\n".join(json.dumps(obj, indent="\t") for obj in objects) + "\n"


@pytest.fixture
def records():
    """Return a helper rendering module records the way `go list -json` does."""
    return _records


@pytest.fixture
def fake_go() -> type[FakeGo]:
    """Return the FakeGo class for building canned go adapters."""
    return FakeGo


@pytest.fixture
def go_module(tmp_path: Path):
    """Return a factory creating a directory with a go.mod."""

    def _make(relative: str, module_path: str) -> Path:
        directory = tmp_path / relative
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "go.mod").write_text(f"module {module_path}\n\ngo 1.21\n")
        return directory

    return _make


@pytest.fixture
def git_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate git from user config and pin identities and dates."""
    home = tmp_path / "home"
    home.mkdir(exist_ok=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Test")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "test@example.com")
        monkeypatch.setenv(f"GIT_{role}_DATE", AUTHOR_DATE)


@pytest.fixture
def run_git(git_env):
    """Return a helper running git in a directory and returning stdout."""

    def _run(cwd: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    return _run


@pytest.fixture
def git_repo(tmp_path: Path, run_git) -> Path:
    """A git repository holding one committed module."""
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "go.mod").write_text("module example.com/local\n\ngo 1.21\n")
    run_git(repo, "init", "-q")
    run_git(repo, "add", "-A")
    run_git(repo, "commit", "-q", "-m", "initial")
    return repo
