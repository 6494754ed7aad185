"""Locate the plugin executable inside an unpacked release tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from .errors import BinaryNotFound
from .logging_setup import get_logger

LOGGER = get_logger("locator")


def _walk(root: Path) -> Iterator[Path]:
    """Yield regular files depth-first.

    At each level the directory's files come first in lexicographic order, then
    its subdirectories are descended in lexicographic order. Symlinks are skipped.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        LOGGER.warning(f"skipping unreadable directory {root}: {exc}", extra={"event": "locator_skipped_dir"})
        return

    subdirs = []
    for entry in entries:
        if entry.is_symlink():
            continue
        if entry.is_file(follow_symlinks=False):
            yield Path(entry.path)
        elif entry.is_dir(follow_symlinks=False):
            subdirs.append(entry)

    for entry in subdirs:
        yield from _walk(Path(entry.path))


def list_files(root: Path) -> list[str]:
    return sorted(path.relative_to(root).as_posix() for path in _walk(root))


def locate_binary(root: Path, name: str) -> Path:
    for path in _walk(root):
        if path.name == name:
            LOGGER.info(f"found {name} at {path.relative_to(root).as_posix()}", extra={"event": "binary_located"})
            return path

    listing = list_files(root)
    LOGGER.error(
        f"{name} not found among {len(listing)} extracted files",
        extra={"event": "binary_not_found"},
    )
    raise BinaryNotFound(name, listing)
