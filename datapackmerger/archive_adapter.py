from __future__ import annotations

import gzip
import shutil
import tarfile
import zipfile
import zlib
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Tuple

from .errors import ArchiveCodecError, UnknownArchiveFormatError
from .file_utils import ensure_directory, safe_join, sanitize_entry_name, scratch_directory
from .logging_utils import log_warn
from .tree_builder import DATA_FOLDER, PACK_METADATA

_ZIP_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError)
_TAR_ERRORS = (tarfile.TarError, gzip.BadGzipFile, zlib.error, EOFError)


class ArchiveFormat(str, Enum):
    DIRECTORY = "directory"
    ZIP = "zip"
    TAR_GZ = "tar.gz"


def archive_format(source: Path) -> ArchiveFormat:
    if source.is_dir():
        return ArchiveFormat.DIRECTORY
    name = source.name.lower()
    if name.endswith(".zip"):
        return ArchiveFormat.ZIP
    if name.endswith((".tar.gz", ".tgz", ".gz")):
        return ArchiveFormat.TAR_GZ
    raise UnknownArchiveFormatError(source)


def source_name(source: Path) -> str:
    """Pack name of a source: its file name without the archive extension."""

    name = source.name
    if source.is_dir():
        return name
    lowered = name.lower()
    for suffix in (".tar.gz", ".tgz", ".zip", ".gz"):
        if lowered.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def _is_directory_entry(name: str) -> bool:
    return name.replace("\\", "/").endswith("/")


def _write_stream(reader, target: Path) -> None:
    ensure_directory(target.parent)
    with target.open("wb") as writer:
        shutil.copyfileobj(reader, writer)


def _extract_zip(source: Path, destination: Path) -> None:
    try:
        with zipfile.ZipFile(source) as archive:
            for info in archive.infolist():
                relative = sanitize_entry_name(info.filename)
                if relative is None:
                    continue
                target = safe_join(destination, relative)
                if _is_directory_entry(info.filename):
                    ensure_directory(target)
                    continue
                with archive.open(info) as reader:
                    _write_stream(reader, target)
    except _ZIP_ERRORS as exc:
        raise ArchiveCodecError(f"Unable to extract '{source}': {exc}") from exc


def _extract_tar(source: Path, destination: Path) -> None:
    try:
        with tarfile.open(source, mode="r|gz") as archive:
            for member in archive:
                relative = sanitize_entry_name(member.name)
                if relative is None:
                    continue
                target = safe_join(destination, relative)
                if member.isdir() or _is_directory_entry(member.name):
                    ensure_directory(target)
                elif member.isfile():
                    reader = archive.extractfile(member)
                    if reader is None:
                        continue
                    with reader:
                        _write_stream(reader, target)
                else:
                    log_warn(f"Skipping non-regular archive member '{member.name}' in {source.name}",
                             indent=2)
    except _TAR_ERRORS as exc:
        raise ArchiveCodecError(f"Unable to extract '{source}': {exc}") from exc


def materialize(source: Path, scratch_dir: Path) -> Path:
    """Return a directory holding the contents of ``source``.

    Directories are returned as they are. Archives are extracted into
    ``scratch_dir``, which the caller owns and must remove.
    """

    fmt = archive_format(source)
    if fmt is ArchiveFormat.DIRECTORY:
        return source

    ensure_directory(scratch_dir)
    if fmt is ArchiveFormat.ZIP:
        _extract_zip(source, scratch_dir)
    else:
        _extract_tar(source, scratch_dir)
    return scratch_dir


@contextmanager
def materialized(source: Path, scratch_root: Path | None = None) -> Iterator[Path]:
    """Materialize ``source`` for the duration of the ``with`` block."""

    if archive_format(source) is ArchiveFormat.DIRECTORY:
        yield source
        return
    with scratch_directory(scratch_root) as scratch:
        yield materialize(source, scratch)


def _candidate_name(candidate: str) -> str:
    relative = sanitize_entry_name(candidate)
    if relative is None:
        raise ValueError(f"Invalid candidate path: {candidate!r}")
    return relative.as_posix()


def _peek_zip(source: Path, candidate: str) -> Tuple[bool, bool]:
    target = _candidate_name(candidate)
    prefix = f"{target}/"
    try:
        with zipfile.ZipFile(source) as archive:
            found = None
            implied = False
            for info in archive.infolist():
                relative = sanitize_entry_name(info.filename)
                if relative is None:
                    continue
                name = relative.as_posix()
                if name == target:
                    found = _is_directory_entry(info.filename)
                elif name.startswith(prefix):
                    # Archives may omit explicit directory entries.
                    implied = True
            if found is not None:
                return not found, found
            if implied:
                return False, True
    except _ZIP_ERRORS as exc:
        raise ArchiveCodecError(f"Unable to read '{source}': {exc}") from exc
    return False, False


def _peek_tar(source: Path, candidate: str, scratch_root: Path | None) -> Tuple[bool, bool]:
    target = _candidate_name(candidate)
    prefix = f"{target}/"
    try:
        with tarfile.open(source, mode="r|gz") as archive:
            for member in archive:
                relative = sanitize_entry_name(member.name)
                if relative is None:
                    continue
                name = relative.as_posix()
                if name.startswith(prefix):
                    return False, True
                if name != target:
                    continue
                if not (member.isdir() or member.isfile()):
                    return False, False
                with scratch_directory(scratch_root, prefix="datapack-peek-") as scratch:
                    location = safe_join(scratch, relative)
                    if member.isdir():
                        ensure_directory(location)
                    else:
                        reader = archive.extractfile(member)
                        if reader is None:
                            return False, False
                        with reader:
                            _write_stream(reader, location)
                    return location.is_file(), location.is_dir()
    except _TAR_ERRORS as exc:
        raise ArchiveCodecError(f"Unable to read '{source}': {exc}") from exc
    return False, False


def peek(source: Path, candidate: str, scratch_root: Path | None = None) -> Tuple[bool, bool]:
    """Return ``(is_file, is_directory)`` for ``candidate`` inside ``source``.

    At most the one matching entry is written to disk, and only for tar
    sources; it is removed again before returning.
    """

    if not source.exists():
        return False, False
    try:
        fmt = archive_format(source)
    except UnknownArchiveFormatError:
        return False, False

    if fmt is ArchiveFormat.DIRECTORY:
        target = source / candidate
        return target.is_file(), target.is_dir()
    if fmt is ArchiveFormat.ZIP:
        return _peek_zip(source, candidate)
    return _peek_tar(source, candidate, scratch_root)


def is_pack(source: Path, scratch_root: Path | None = None) -> bool:
    """A pack has a ``pack.mcmeta`` file and a ``data/`` folder at its root."""

    try:
        metadata_is_file, _ = peek(source, PACK_METADATA, scratch_root)
        _, data_is_dir = peek(source, f"{DATA_FOLDER}/", scratch_root)
    except ArchiveCodecError as exc:
        log_warn(f"Skipping unreadable archive {source.name}: {exc}")
        return False
    return metadata_is_file and data_is_dir


__all__ = [
    "ArchiveFormat",
    "archive_format",
    "source_name",
    "materialize",
    "materialized",
    "peek",
    "is_pack",
]
