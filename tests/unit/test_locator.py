from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from lai_bootstrap.errors import BinaryNotFound
from lai_bootstrap import locator
from lai_bootstrap.locator import list_files, locate_binary


def _touch(root: Path, rel: str, data: bytes = b"x") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_locates_nested_binary(tmp_path: Path) -> None:
    expected = _touch(tmp_path, "bin/af_ollama_plugin")
    _touch(tmp_path, "README.md")

    assert locate_binary(tmp_path, "af_ollama_plugin") == expected


def test_files_before_subdirectories(tmp_path: Path) -> None:
    _touch(tmp_path, "a/af_ollama_plugin", b"nested")
    top = _touch(tmp_path, "af_ollama_plugin", b"top")

    assert locate_binary(tmp_path, "af_ollama_plugin") == top


def test_lexicographic_between_subdirectories(tmp_path: Path) -> None:
    _touch(tmp_path, "zeta/af_ollama_plugin")
    first = _touch(tmp_path, "alpha/deep/af_ollama_plugin")

    assert locate_binary(tmp_path, "af_ollama_plugin") == first


def test_directory_with_binary_name_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "af_ollama_plugin").mkdir()
    expected = _touch(tmp_path, "af_ollama_plugin/af_ollama_plugin")

    assert locate_binary(tmp_path, "af_ollama_plugin") == expected


@pytest.mark.skipif(os.name != "posix", reason="symlinks")
def test_symlinks_are_not_matched(tmp_path: Path) -> None:
    real = _touch(tmp_path, "real/plugin-binary")
    (tmp_path / "af_ollama_plugin").symlink_to(real)

    with pytest.raises(BinaryNotFound):
        locate_binary(tmp_path, "af_ollama_plugin")


def test_not_found_carries_listing(tmp_path: Path) -> None:
    _touch(tmp_path, "lib/libfoo.so")
    _touch(tmp_path, "README.md")
    _touch(tmp_path, "bin/other_plugin")

    with pytest.raises(BinaryNotFound) as excinfo:
        locate_binary(tmp_path, "af_ollama_plugin")

    assert excinfo.value.name == "af_ollama_plugin"
    assert excinfo.value.listing == ["README.md", "bin/other_plugin", "lib/libfoo.so"]


def test_list_files_empty_tree(tmp_path: Path) -> None:
    assert list_files(tmp_path) == []


def test_unreadable_directory_is_logged_and_skipped(tmp_path: Path, monkeypatch, caplog) -> None:
    _touch(tmp_path, "locked/af_ollama_plugin")
    expected = _touch(tmp_path, "open/af_ollama_plugin")
    real_scandir = os.scandir

    def scandir(path):
        if Path(path).name == "locked":
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(locator.os, "scandir", scandir)

    with caplog.at_level(logging.WARNING, logger="lai_bootstrap.locator"):
        found = locate_binary(tmp_path, "af_ollama_plugin")

    assert found == expected
    skipped = [r for r in caplog.records if getattr(r, "event", None) == "locator_skipped_dir"]
    assert len(skipped) == 1
    assert "locked" in skipped[0].getMessage()
