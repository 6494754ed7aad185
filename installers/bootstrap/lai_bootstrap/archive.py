"""Archive unpacking for downloaded release assets."""

from __future__ import annotations

import os
import shutil
import stat
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from .errors import ExtractionError
from .logging_setup import get_logger

LOGGER = get_logger("archive")


def _member_target(dest_dir: Path, member_name: str) -> Path:
    name = member_name.replace("\\", "/")
    pure = PurePosixPath(name)
    if pure.is_absolute() or ".." in pure.parts or (pure.parts and pure.parts[0].endswith(":")):
        raise ExtractionError(f"archive member escapes the extraction directory: {member_name}")
    return dest_dir.joinpath(*pure.parts)


def _extract_zip(archive_path: Path, dest_dir: Path) -> int:
    count = 0
    with zipfile.ZipFile(archive_path) as zf:
        for info in zf.infolist():
            target = _member_target(dest_dir, info.filename)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, target.open("wb") as dst:
                shutil.copyfileobj(src, dst, 1024 * 1024)

            # Upper 16 bits carry the Unix mode when the archive was built on Unix.
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                target.chmod(mode | stat.S_IRUSR | stat.S_IWUSR)
            count += 1
    return count


def _extract_tar(archive_path: Path, dest_dir: Path) -> int:
    with tarfile.open(archive_path, mode="r:*", errorlevel=2) as tf:
        members = tf.getmembers()
        for member in members:
            _member_target(dest_dir, member.name)
        tf.extractall(path=dest_dir, members=members, filter="data")
        return sum(1 for m in members if m.isfile())


def extract_archive(archive_path: Path, dest_dir: Path) -> int:
    """Unpack ``archive_path`` into ``dest_dir`` and return the number of files written.

    The container format is detected from the content. Any failing member aborts
    the whole extraction with ``ExtractionError``.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    kind = archive_kind(archive_path)
    if kind is None:
        raise ExtractionError(f"{archive_path.name} is not a supported archive (zip or tar)")

    try:
        if kind == "zip":
            count = _extract_zip(archive_path, dest_dir)
        else:
            count = _extract_tar(archive_path, dest_dir)
    except ExtractionError:
        raise
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error) as exc:
        raise ExtractionError(f"corrupt zip archive {archive_path.name}: {exc}") from exc
    except (tarfile.TarError, EOFError) as exc:
        raise ExtractionError(f"corrupt tar archive {archive_path.name}: {exc}") from exc
    except (OSError, RuntimeError) as exc:
        raise ExtractionError(f"could not extract {archive_path.name}: {exc}") from exc

    LOGGER.info(f"extracted {count} files from {archive_path.name}", extra={"event": "archive_extracted"})
    return count


def archive_kind(archive_path: Path) -> str | None:
    if zipfile.is_zipfile(archive_path):
        return "zip"
    if os.path.isfile(archive_path) and tarfile.is_tarfile(str(archive_path)):
        return "tar"
    return None
