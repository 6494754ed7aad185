"""Release installer for the AppFlowy LAI plugin binary."""

from .errors import (
    AmbiguousAsset,
    BinaryNotFound,
    DownloadError,
    ExtractionError,
    InstallError,
    InstallerError,
    MissingDependency,
    NoMatchingAsset,
    PrivilegeRequired,
    ResolutionError,
)
from .resolver import AssetDescriptor, Platform, ReleaseMetadata, resolve_platform, select_asset
from .service import InstalledArtifact, InstallResult, fetch_release, install_plugin

__all__ = [
    "AmbiguousAsset",
    "AssetDescriptor",
    "BinaryNotFound",
    "DownloadError",
    "ExtractionError",
    "InstallError",
    "InstallResult",
    "InstalledArtifact",
    "InstallerError",
    "MissingDependency",
    "NoMatchingAsset",
    "Platform",
    "PrivilegeRequired",
    "ReleaseMetadata",
    "ResolutionError",
    "fetch_release",
    "install_plugin",
    "resolve_platform",
    "select_asset",
]
