"""Copy the located plugin binary into its install directory."""

from __future__ import annotations

import os
import platform
import shutil
import stat
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from .errors import InstallError
from .logging_setup import get_logger
from .resolver import Platform

LOGGER = get_logger("installer")

EXECUTABLE_MODE = 0o755


def default_install_dir(target: Platform) -> Path:
    if target is Platform.WINDOWS:
        base = os.environ.get("LOCALAPPDATA", "C:\\Program Files")
        return Path(base) / "Programs" / "appflowy_plugin"
    return Path("/usr/local/bin")


def binary_filename(name: str, target: Platform) -> str:
    if target is Platform.WINDOWS and not name.lower().endswith(".exe"):
        return name + ".exe"
    return name


def _clear_quarantine(path: Path) -> None:
    if platform.system() != "Darwin":
        return
    try:
        code = subprocess.call(
            ["xattr", "-d", "com.apple.quarantine", str(path)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        LOGGER.warning(f"could not run xattr on {path}: {exc}")
        return
    if code != 0:
        LOGGER.debug(f"no quarantine attribute on {path}")


def install_binary(source: Path, dest_dir: Path, name: str) -> Path:
    """Install ``source`` as ``dest_dir/name`` with mode 0755.

    The file is staged next to its final path and renamed into place, so a
    previous install is replaced atomically and a failure leaves nothing behind.
    """
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InstallError(f"could not create {dest_dir}: {exc}") from exc

    target = dest_dir / name
    staged: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(dir=dest_dir, prefix=f".{name}.", suffix=".partial", delete=False) as tmp:
            staged = Path(tmp.name)
            with source.open("rb") as src:
                shutil.copyfileobj(src, tmp, 1024 * 1024)
        staged.chmod(EXECUTABLE_MODE)
        os.replace(staged, target)
        staged = None
    except OSError as exc:
        raise InstallError(f"could not install {name} into {dest_dir}: {exc}") from exc
    finally:
        if staged is not None:
            staged.unlink(missing_ok=True)

    _clear_quarantine(target)
    LOGGER.info(f"installed {target}", extra={"event": "binary_installed"})
    return target


def plugin_status(dest_dir: Path, name: str) -> dict[str, Any]:
    target = dest_dir / name
    installed = target.is_file()
    executable = installed and bool(target.stat().st_mode & stat.S_IXUSR)
    on_path = shutil.which(name)
    return {
        "path": str(target),
        "installed": installed,
        "executable": executable,
        "on_path": on_path,
        "ready": (installed and executable) or on_path is not None,
    }
