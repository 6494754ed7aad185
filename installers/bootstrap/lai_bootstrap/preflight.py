"""Checks that must pass before any network or filesystem work starts."""

from __future__ import annotations

import importlib.util
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .errors import MissingDependency, PrivilegeRequired
from .logging_setup import get_logger

LOGGER = get_logger("preflight")


@dataclass(frozen=True)
class Capability:
    name: str
    modules: tuple[str, ...]
    hint: str | None = None


REQUIRED_CAPABILITIES: tuple[Capability, ...] = (
    Capability(
        name="network-fetch",
        modules=("ssl", "urllib.request", "certifi"),
        hint="You can install it with: pip install certifi",
    ),
    Capability(name="json-parse", modules=("json",)),
    Capability(
        name="archive-extract",
        modules=("zipfile", "tarfile", "zlib"),
        hint="Python must be built with zlib support (e.g. sudo apt install zlib1g-dev)",
    ),
)


def module_available(module: str) -> bool:
    try:
        return importlib.util.find_spec(module) is not None
    except (ImportError, ValueError):
        return False


def check_capabilities(
    capabilities: Sequence[Capability] = REQUIRED_CAPABILITIES,
    is_available: Callable[[str], bool] = module_available,
) -> None:
    """Raise ``MissingDependency`` listing every capability that cannot be used."""
    missing: list[tuple[str, str | None]] = []
    for capability in capabilities:
        absent = [m for m in capability.modules if not is_available(m)]
        if absent:
            LOGGER.error(
                f"capability {capability.name} unavailable, missing modules: {', '.join(absent)}",
                extra={"event": "preflight_missing"},
            )
            missing.append((capability.name, capability.hint))

    if missing:
        raise MissingDependency(missing)
    LOGGER.debug("preflight ok", extra={"event": "preflight_ok"})


def _nearest_existing(path: Path) -> Path:
    current = path
    while not current.exists() and current.parent != current:
        current = current.parent
    return current


def check_install_privilege(dest_dir: Path) -> None:
    """Fail fast when ``dest_dir`` (or the ancestor it would be created in) is not writable."""
    target = _nearest_existing(dest_dir.expanduser().absolute())
    if not os.access(target, os.W_OK):
        raise PrivilegeRequired(str(target))
