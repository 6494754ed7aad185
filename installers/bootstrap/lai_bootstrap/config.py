"""Persistent installer settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .logging_setup import config_root


CONFIG_VERSION = 1
DEFAULT_REPO = "AppFlowy-IO/AppFlowy-LAI"
DEFAULT_BINARY = "af_ollama_plugin"
PLATFORM_NAMES = ("linux", "macos", "windows")


@dataclass
class ReleaseConfig:
    repo: str = DEFAULT_REPO
    version: str = "latest"
    strict_asset: bool = False
    verify_checksums: bool = True


@dataclass
class InstallConfig:
    binary_name: str = DEFAULT_BINARY
    dest_dir: str | None = None
    platform: str | None = None


@dataclass
class NetworkConfig:
    api_timeout_s: int = 30
    download_timeout_s: int = 180


@dataclass
class InstallerConfig:
    config_version: int = CONFIG_VERSION
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)


def config_path() -> Path:
    return config_root() / "config.json"


_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off")


def _coerce(default: Any, value: Any) -> Any:
    """Return ``value`` shaped like ``default``, or ``default`` when it cannot be."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        return default
    if isinstance(default, int):
        # Range and parse checks happen in _normalize.
        return value
    if default is None:
        return value if value is None or isinstance(value, str) else None
    return value if isinstance(value, str) else default


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, _coerce(getattr(defaults, k), v))
    return defaults


def _clamp_timeout(value: Any, default: int) -> int:
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return default
    return max(5, min(600, seconds))


def _normalize(cfg: InstallerConfig) -> None:
    cfg.network.api_timeout_s = _clamp_timeout(cfg.network.api_timeout_s, 30)
    cfg.network.download_timeout_s = _clamp_timeout(cfg.network.download_timeout_s, 180)
    if cfg.install.platform is not None:
        name = str(cfg.install.platform).lower()
        cfg.install.platform = name if name in PLATFORM_NAMES else None
    if not str(cfg.release.version or "").strip():
        cfg.release.version = "latest"
    if not str(cfg.install.binary_name or "").strip():
        cfg.install.binary_name = DEFAULT_BINARY


def _apply_env(cfg: InstallerConfig) -> None:
    repo = os.environ.get("LAI_BOOTSTRAP_REPO", "").strip()
    if repo:
        cfg.release.repo = repo
    dest = os.environ.get("LAI_BOOTSTRAP_DEST", "").strip()
    if dest:
        cfg.install.dest_dir = dest


def load_config(path: Path | None = None) -> InstallerConfig:
    path = path or config_path()
    cfg = InstallerConfig()

    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            raw = None
        if isinstance(raw, dict):
            cfg = InstallerConfig(
                config_version=CONFIG_VERSION,
                release=_merge(ReleaseConfig, raw.get("release", {})),
                install=_merge(InstallConfig, raw.get("install", {})),
                network=_merge(NetworkConfig, raw.get("network", {})),
            )

    _apply_env(cfg)
    _normalize(cfg)
    return cfg


def save_config(cfg: InstallerConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
