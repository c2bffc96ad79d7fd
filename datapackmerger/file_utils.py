from __future__ import annotations

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Iterator

from .errors import UnsafeEntryError
from .logging_utils import log_info, log_warn


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def backup_file(source: Path, backup_dir: Path) -> Path:
    if not source.exists():
        raise FileNotFoundError(f"Cannot backup missing file: {source}")
    backup_dir.mkdir(parents=True, exist_ok=True)
    destination = backup_dir / (source.name + ".bak")
    shutil.copy2(source, destination)
    log_info(f"Created backup: {destination}")
    return destination


@contextmanager
def scratch_directory(scratch_root: Path | None = None, prefix: str = "datapack-merger-") -> Iterator[Path]:
    """Yield a private temporary directory that is removed on every exit path."""

    if scratch_root is not None:
        ensure_directory(scratch_root)
    location = Path(tempfile.mkdtemp(prefix=prefix, dir=scratch_root))
    try:
        yield location
    finally:
        shutil.rmtree(location, ignore_errors=True)
        if location.exists():
            log_warn(f"Could not remove scratch directory {location}")


def sanitize_entry_name(name: str) -> PurePosixPath | None:
    """Turn an archive entry name into a safe relative path.

    Leading slashes, drive letters, ``.`` and ``..`` components are dropped.
    Returns ``None`` when nothing is left of the name.
    """

    parts = []
    for part in name.replace("\\", "/").split("/"):
        if part in ("", ".", ".."):
            continue
        if not parts and len(part) == 2 and part[1] == ":":
            continue
        parts.append(part)
    if not parts:
        return None
    return PurePosixPath(*parts)


def safe_join(root: Path, relative: PurePosixPath) -> Path:
    target = root.joinpath(*relative.parts)
    resolved_root = root.resolve()
    resolved = target.resolve()
    if resolved != resolved_root and resolved_root not in resolved.parents:
        raise UnsafeEntryError(str(relative))
    return target
