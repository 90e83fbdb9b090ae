"""
Tests for the content hasher — h1 directory hashes and go.sum verification.
"""

import base64
import hashlib
from pathlib import Path

import pytest

from modgraph.core.models import Module
from modgraph.core.services.content_hash import (
    dir_files,
    hash_dir,
    load_sum_ledger,
    module_hash,
    verify_module,
)

PREFIX = "example.com/lib@v1.0.0"


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    d = tmp_path / "lib"
    (d / "internal").mkdir(parents=True)
    (d / "go.mod").write_text("module example.com/lib\n")
    (d / "lib.go").write_text("package lib\n")
    (d / "internal" / "x.go").write_text("package internal\n")
    return d


class TestDirFiles:
    def test_prefixed_forward_slash_names(self, module_dir: Path):
        assert sorted(dir_files(module_dir, PREFIX)) == [
            f"{PREFIX}/go.mod",
            f"{PREFIX}/internal/x.go",
            f"{PREFIX}/lib.go",
        ]

    def test_not_a_directory(self, tmp_path: Path):
        with pytest.raises(NotADirectoryError):
            dir_files(tmp_path / "missing", PREFIX)


class TestHashDir:
    def test_matches_h1_construction(self, module_dir: Path):
        summary = ""
        for rel in ["go.mod", "internal/x.go", "lib.go"]:
            digest = hashlib.sha256((module_dir / rel).read_bytes()).hexdigest()
            summary += f"{digest}  {PREFIX}/{rel}\n"
        expected = "h1:" + base64.b64encode(hashlib.sha256(summary.encode()).digest()).decode()

        assert hash_dir(module_dir, PREFIX) == expected

    def test_deterministic(self, module_dir: Path):
        assert hash_dir(module_dir, PREFIX) == hash_dir(module_dir, PREFIX)

    def test_modifying_a_file_changes_hash(self, module_dir: Path):
        before = hash_dir(module_dir, PREFIX)
        (module_dir / "lib.go").write_text("package lib\n\nvar X = 1\n")
        assert hash_dir(module_dir, PREFIX) != before

    def test_adding_a_file_changes_hash(self, module_dir: Path):
        before = hash_dir(module_dir, PREFIX)
        (module_dir / "extra.go").write_text("package lib\n")
        assert hash_dir(module_dir, PREFIX) != before

    def test_removing_a_file_changes_hash(self, module_dir: Path):
        before = hash_dir(module_dir, PREFIX)
        (module_dir / "internal" / "x.go").unlink()
        assert hash_dir(module_dir, PREFIX) != before

    def test_renaming_with_same_content_changes_hash(self, module_dir: Path):
        before = hash_dir(module_dir, PREFIX)
        (module_dir / "lib.go").rename(module_dir / "lib2.go")
        assert hash_dir(module_dir, PREFIX) != before

    def test_prefix_is_part_of_hash(self, module_dir: Path):
        assert hash_dir(module_dir, PREFIX) != hash_dir(module_dir, "example.com/lib@v1.0.1")

    def test_empty_directory(self, tmp_path: Path):
        expected = "h1:" + base64.b64encode(hashlib.sha256(b"").digest()).decode()
        assert hash_dir(tmp_path, PREFIX) == expected

    def test_newline_in_file_name(self, module_dir: Path):
        (module_dir / "bad\nname.go").write_text("x")
        with pytest.raises(ValueError, match="newline"):
            hash_dir(module_dir, PREFIX)

    def test_linked_directory_listed_as_file(self, module_dir: Path, tmp_path: Path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "a.go").write_text("package real\n")
        (module_dir / "sub").symlink_to(real, target_is_directory=True)

        files = dir_files(module_dir, PREFIX)
        assert f"{PREFIX}/sub" in files
        assert f"{PREFIX}/sub/a.go" not in files

    def test_linked_directory_fails_hashing(self, module_dir: Path, tmp_path: Path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "a.go").write_text("package real\n")
        (module_dir / "sub").symlink_to(real, target_is_directory=True)

        # Content behind the link is never silently left out of the hash
        with pytest.raises(OSError):
            hash_dir(module_dir, PREFIX)

    def test_linked_file_hashed_through_link(self, module_dir: Path, tmp_path: Path):
        target = tmp_path / "shared.go"
        target.write_text("package lib\n")
        (module_dir / "shared.go").symlink_to(target)
        before = hash_dir(module_dir, PREFIX)
        target.write_text("package lib // changed\n")
        assert hash_dir(module_dir, PREFIX) != before


class TestModuleHash:
    def test_uses_coordinates_as_prefix(self, module_dir: Path):
        m = Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir))
        assert module_hash(m) == hash_dir(module_dir, PREFIX)

    def test_read_through_replacement(self, module_dir: Path, tmp_path: Path):
        m = Module(
            path="example.com/orig", version="v0.1.0", dir=str(tmp_path),
            replace=Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir)),
        )
        assert module_hash(m) == hash_dir(module_dir, PREFIX)

    def test_vendored_module_has_no_hash(self, module_dir: Path):
        m = Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir), vendored=True)
        assert module_hash(m) is None

    def test_module_without_dir_has_no_hash(self):
        assert module_hash(Module(path="example.com/lib", version="v1.0.0")) is None


class TestSumLedger:
    def _write_sum(self, tmp_path: Path, module_dir: Path) -> Path:
        h1 = hash_dir(module_dir, PREFIX)
        go_sum = tmp_path / "go.sum"
        go_sum.write_text(
            f"example.com/lib v1.0.0 {h1}\n"
            "example.com/lib v1.0.0/go.mod h1:AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA=\n"
            "example.com/other v0.1.0 h1:BBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBB=\n"
        )
        return go_sum

    def test_load_skips_go_mod_entries(self, tmp_path: Path, module_dir: Path):
        ledger = load_sum_ledger(self._write_sum(tmp_path, module_dir))
        assert set(ledger) == {("example.com/lib", "v1.0.0"), ("example.com/other", "v0.1.0")}

    def test_missing_file(self, tmp_path: Path):
        assert load_sum_ledger(tmp_path / "go.sum") == {}

    def test_verify_match(self, tmp_path: Path, module_dir: Path):
        ledger = load_sum_ledger(self._write_sum(tmp_path, module_dir))
        m = Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir))
        assert verify_module(m, ledger) is True

    def test_verify_tampered(self, tmp_path: Path, module_dir: Path):
        ledger = load_sum_ledger(self._write_sum(tmp_path, module_dir))
        (module_dir / "lib.go").write_text("package lib // tampered\n")
        m = Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir))
        assert verify_module(m, ledger) is False

    def test_verify_without_entry(self, tmp_path: Path, module_dir: Path):
        ledger = load_sum_ledger(self._write_sum(tmp_path, module_dir))
        m = Module(path="example.com/unknown", version="v1.0.0", dir=str(module_dir))
        assert verify_module(m, ledger) is None

    def test_verify_vendored(self, tmp_path: Path, module_dir: Path):
        ledger = load_sum_ledger(self._write_sum(tmp_path, module_dir))
        m = Module(path="example.com/lib", version="v1.0.0", dir=str(module_dir), vendored=True)
        assert verify_module(m, ledger) is None
