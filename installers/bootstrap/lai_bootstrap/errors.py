"""Installer failure taxonomy; every error is terminal for the run."""

from __future__ import annotations


class InstallerError(Exception):
    stage = "installer"
    exit_code = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def diagnosis(self) -> str:
        return f"error [{self.stage}]: {self.message}"


class MissingDependency(InstallerError):
    stage = "preflight"
    exit_code = 2

    def __init__(self, missing: list[tuple[str, str | None]]) -> None:
        self.missing = list(missing)
        parts = []
        for capability, hint in self.missing:
            parts.append(f"{capability} ({hint})" if hint else capability)
        super().__init__("missing required capability: " + ", ".join(parts))

    @property
    def capabilities(self) -> list[str]:
        return [capability for capability, _hint in self.missing]


class PrivilegeRequired(InstallerError):
    stage = "privilege"
    exit_code = 3

    def __init__(self, directory: str) -> None:
        self.directory = directory
        super().__init__(f"no write access to {directory}; run as root or with sudo")


class ResolutionError(InstallerError):
    stage = "resolve"
    exit_code = 4


class NoMatchingAsset(InstallerError):
    stage = "select"
    exit_code = 5

    def __init__(self, platform: str, message: str | None = None) -> None:
        self.platform = platform
        super().__init__(message or f"could not find a release asset for {platform}")


class AmbiguousAsset(NoMatchingAsset):
    def __init__(self, platform: str, candidates: list[str]) -> None:
        self.candidates = list(candidates)
        super().__init__(
            platform,
            f"{len(self.candidates)} release assets match {platform}: " + ", ".join(self.candidates),
        )


class DownloadError(InstallerError):
    stage = "download"
    exit_code = 6

    def __init__(self, url: str, reason: str, not_found: bool = False) -> None:
        self.url = url
        self.reason = reason
        self.not_found = not_found
        kind = "resource not found" if not_found else "transport failure"
        super().__init__(f"{kind} for {url}: {reason}")


class ExtractionError(InstallerError):
    stage = "extract"
    exit_code = 7


class BinaryNotFound(InstallerError):
    stage = "locate"
    exit_code = 8

    def __init__(self, name: str, listing: list[str]) -> None:
        self.name = name
        self.listing = list(listing)
        super().__init__(f"could not find the {name} binary in the extracted files")


class InstallError(InstallerError):
    stage = "install"
    exit_code = 9
