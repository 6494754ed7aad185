"""Release metadata model and platform specific asset selection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Sequence
from urllib.parse import urlsplit

from .errors import AmbiguousAsset, NoMatchingAsset, ResolutionError
from .logging_setup import get_logger

LOGGER = get_logger("resolver")


class Platform(enum.Enum):
    LINUX = "Linux"
    MACOS = "macOS"
    WINDOWS = "Windows"

    @property
    def token(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "Platform":
        return cls[name.upper()]


@dataclass(frozen=True)
class AssetDescriptor:
    name: str
    url: str


@dataclass(frozen=True)
class ReleaseMetadata:
    tag_name: str
    assets: tuple[AssetDescriptor, ...]

    @property
    def version(self) -> str:
        return self.tag_name[1:] if self.tag_name.startswith("v") else self.tag_name


AssetMatcher = Callable[[str, Platform], bool]


def resolve_platform(system: str) -> Platform:
    s = system.lower()
    if s.startswith("win"):
        return Platform.WINDOWS
    if s.startswith("darwin") or s.startswith("mac"):
        return Platform.MACOS
    return Platform.LINUX


def contains_token(asset_name: str, platform: Platform) -> bool:
    return platform.token in asset_name


def parse_release(payload: Any) -> ReleaseMetadata:
    if not isinstance(payload, dict):
        raise ResolutionError("release index returned an unexpected document")

    tag_name = payload.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise ResolutionError("release index response has no tag_name")

    raw_assets = payload.get("assets", [])
    if not isinstance(raw_assets, list):
        raise ResolutionError("release index response has a malformed asset list")

    assets = []
    for index, item in enumerate(raw_assets):
        if not isinstance(item, dict):
            raise ResolutionError(f"release asset #{index} is not an object")
        name = item.get("name")
        url = item.get("browser_download_url")
        if not isinstance(name, str) or not name or not isinstance(url, str) or not url:
            raise ResolutionError(f"release asset #{index} lacks a name or download url")
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ResolutionError(f"release asset #{index} has a malformed download url: {url!r}")
        assets.append(AssetDescriptor(name=name, url=url))

    return ReleaseMetadata(tag_name=tag_name.strip(), assets=tuple(assets))


def select_asset(
    assets: Sequence[AssetDescriptor],
    platform: Platform,
    matcher: AssetMatcher = contains_token,
    strict: bool = False,
) -> AssetDescriptor:
    """Return the first asset whose name matches ``platform``.

    Several matches are not an error unless ``strict`` is set; the first one in
    release order wins and the rest are logged.
    """
    candidates = [asset for asset in assets if matcher(asset.name, platform)]
    if not candidates:
        raise NoMatchingAsset(platform.token)

    if len(candidates) > 1:
        names = [asset.name for asset in candidates]
        if strict:
            raise AmbiguousAsset(platform.token, names)
        LOGGER.warning(
            f"{len(names)} assets match {platform.token}, using {names[0]} (also: {', '.join(names[1:])})",
            extra={"event": "asset_ambiguous"},
        )

    return candidates[0]


def find_checksums_asset(assets: Sequence[AssetDescriptor]) -> AssetDescriptor | None:
    for asset in assets:
        if asset.name.lower() == "checksums.txt":
            return asset
    return None
