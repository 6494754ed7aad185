"""Temporary workspace owned by a single installer run."""

from __future__ import annotations

import signal
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .logging_setup import get_logger

LOGGER = get_logger("workspace")

WORKSPACE_PREFIX = "lai-install-"


@dataclass(frozen=True)
class Workspace:
    root: Path
    download_dir: Path
    extract_dir: Path


def _raise_on_sigterm(signum, _frame) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def _sigterm_unwinds() -> Iterator[None]:
    # SIGTERM normally kills the process without running finally blocks.
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGTERM, _raise_on_sigterm)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@contextmanager
def open_workspace(parent: Path | None = None) -> Iterator[Workspace]:
    """Yield a fresh workspace that is removed recursively on every exit path."""
    with _sigterm_unwinds():
        with tempfile.TemporaryDirectory(prefix=WORKSPACE_PREFIX, dir=parent) as tmp:
            root = Path(tmp)
            workspace = Workspace(root=root, download_dir=root / "download", extract_dir=root / "extract")
            workspace.download_dir.mkdir()
            workspace.extract_dir.mkdir()
            LOGGER.debug(f"workspace opened at {root}", extra={"event": "workspace_opened"})
            try:
                yield workspace
            finally:
                LOGGER.debug(f"removing workspace {root}", extra={"event": "workspace_removed"})
