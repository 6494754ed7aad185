"""Release download and install pipeline shared by the CLI entrypoints."""

from __future__ import annotations

import hashlib
import http.client
import json
import os
import shutil
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .archive import extract_archive
from .errors import DownloadError, ResolutionError
from .installer import install_binary
from .locator import locate_binary
from .logging_setup import get_logger
from .preflight import check_capabilities, check_install_privilege
from .resolver import (
    AssetDescriptor,
    AssetMatcher,
    Platform,
    ReleaseMetadata,
    contains_token,
    find_checksums_asset,
    parse_release,
    select_asset,
)
from .workspace import open_workspace

LOGGER = get_logger("service")

ProgressCallback = Callable[[str], None]

USER_AGENT = "LAIBootstrap/0.1 (+https://github.com/AppFlowy-IO/AppFlowy-LAI)"
GITHUB_API = "https://api.github.com"


def _build_ssl_context() -> ssl.SSLContext:
    """Create TLS context for release downloads with explicit CA handling."""
    if os.environ.get("LAI_BOOTSTRAP_ALLOW_INSECURE_TLS", "").strip() == "1":
        return ssl._create_unverified_context()

    ca_bundle = os.environ.get("LAI_BOOTSTRAP_CA_BUNDLE", "").strip()
    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)

    # Imported here so a missing certifi is reported by the preflight check.
    import certifi

    return ssl.create_default_context(cafile=certifi.where())


def _headers(url: str, accept: str) -> dict[str, str]:
    headers = {"User-Agent": USER_AGENT, "Accept": accept}
    if url.startswith(GITHUB_API):
        headers["X-GitHub-Api-Version"] = "2022-11-28"
        token = os.environ.get("GITHUB_TOKEN", "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
    return headers


def _urlopen(url: str, timeout: int, accept: str = "*/*"):
    request = urllib.request.Request(url, headers=_headers(url, accept))
    return urllib.request.urlopen(request, timeout=timeout, context=_build_ssl_context())


def release_url(repo: str, version: str = "latest") -> str:
    if version == "latest":
        return f"{GITHUB_API}/repos/{repo}/releases/latest"
    return f"{GITHUB_API}/repos/{repo}/releases/tags/{version}"


def fetch_release(repo: str, version: str = "latest", timeout: int = 30) -> ReleaseMetadata:
    url = release_url(repo, version)
    LOGGER.info(f"querying {url}", extra={"event": "release_query"})
    try:
        with _urlopen(url, timeout=timeout, accept="application/vnd.github+json") as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise ResolutionError(f"release index returned HTTP {exc.code} for {url}") from exc
    except urllib.error.URLError as exc:
        raise ResolutionError(f"could not reach release index {url}: {exc.reason}") from exc
    except http.client.HTTPException as exc:
        raise ResolutionError(f"malformed response from release index {url}: {exc!r}") from exc
    except OSError as exc:
        raise ResolutionError(f"could not reach release index {url}: {exc}") from exc

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ResolutionError(f"release index returned invalid JSON: {exc}") from exc

    return parse_release(payload)


def download_file(url: str, dest: Path, timeout: int = 180) -> Path:
    try:
        with _urlopen(url, timeout=timeout) as response, dest.open("wb") as fh:
            shutil.copyfileobj(response, fh, 1024 * 1024)
    except urllib.error.HTTPError as exc:
        raise DownloadError(url, f"HTTP {exc.code}", not_found=exc.code == 404) from exc
    except urllib.error.URLError as exc:
        raise DownloadError(url, str(exc.reason)) from exc
    except http.client.HTTPException as exc:
        raise DownloadError(url, repr(exc)) from exc
    except OSError as exc:
        raise DownloadError(url, str(exc)) from exc
    except ValueError as exc:
        raise DownloadError(url, f"invalid download url: {exc}") from exc
    return dest


def parse_checksums(path: Path) -> dict[str, str]:
    out: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        parts = line.strip().split()
        if len(parts) >= 2:
            out[parts[1].lstrip("*")] = parts[0]
    return out


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_checksum(archive_path: Path, checksums_path: Path) -> bool:
    checksums = parse_checksums(checksums_path)
    expected = checksums.get(archive_path.name)
    if not expected:
        return True
    return sha256_file(archive_path).lower() == expected.lower()


@dataclass(frozen=True)
class InstalledArtifact:
    path: Path
    version: str
    asset_name: str
    sha256: str


@dataclass(frozen=True)
class InstallResult:
    target: Platform
    release: ReleaseMetadata
    asset: AssetDescriptor
    artifact: InstalledArtifact


def install_plugin(
    repo: str,
    dest_dir: Path,
    target: Platform,
    binary_name: str,
    version: str = "latest",
    strict_asset: bool = False,
    verify_checksums: bool = True,
    api_timeout_s: int = 30,
    download_timeout_s: int = 180,
    work_dir: Path | None = None,
    matcher: AssetMatcher = contains_token,
    progress: ProgressCallback | None = None,
) -> InstallResult:
    """Run the whole pipeline: preflight, resolve, select, download, extract, locate, install.

    Every step after the privilege check runs inside a temporary workspace that
    is removed whether the run succeeds or not. Failures surface as
    ``InstallerError`` subclasses.
    """
    progress = progress or (lambda _msg: None)

    progress("Checking for required tools")
    check_capabilities()
    check_install_privilege(dest_dir)

    with open_workspace(work_dir) as workspace:
        progress("Fetching latest release information" if version == "latest" else f"Fetching release {version}")
        release = fetch_release(repo, version, timeout=api_timeout_s)
        progress(f"{'Latest version' if version == 'latest' else 'Version'}: {release.tag_name}")

        asset = select_asset(release.assets, target, matcher=matcher, strict=strict_asset)
        LOGGER.info(f"selected asset {asset.name}", extra={"event": "asset_selected"})

        progress(f"Downloading {asset.name}")
        archive_path = workspace.download_dir / Path(asset.name).name
        download_file(asset.url, archive_path, timeout=download_timeout_s)

        checksums_asset = find_checksums_asset(release.assets)
        if verify_checksums and checksums_asset is not None:
            progress("Verifying checksum")
            checksums_path = workspace.download_dir / "checksums.txt"
            download_file(checksums_asset.url, checksums_path, timeout=api_timeout_s)
            try:
                matches = verify_checksum(archive_path, checksums_path)
            except (OSError, UnicodeDecodeError) as exc:
                raise DownloadError(checksums_asset.url, f"checksum file unreadable: {exc}") from exc
            if not matches:
                raise DownloadError(asset.url, "checksum verification failed")

        progress("Extracting files")
        extract_archive(archive_path, workspace.extract_dir)

        binary_path = locate_binary(workspace.extract_dir, binary_name)

        progress(f"Installing {binary_name} to {dest_dir}")
        installed = install_binary(binary_path, dest_dir, binary_name)
        artifact = InstalledArtifact(
            path=installed,
            version=release.tag_name,
            asset_name=asset.name,
            sha256=sha256_file(installed),
        )

    LOGGER.info(f"{binary_name} {release.tag_name} installed", extra={"event": "install_complete"})
    return InstallResult(target=target, release=release, asset=asset, artifact=artifact)
