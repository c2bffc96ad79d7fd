from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional

from .errors import (
    BlacklistedEntryError,
    FileInNamespaceError,
    FileInPackError,
    MissingPackMetadataError,
    StructuralError,
    TreeBuildError,
)
from .logging_utils import log_skip, log_warn
from .models import ContentNode, ContentType, MergeOutcome, Namespace, Pack
from .progress import ProgressCallback, notify

PACK_METADATA = "pack.mcmeta"
DATA_FOLDER = "data"
DEFAULT_BLACKLIST = (".DS_Store", "Thumbs.db", "desktop.ini")


def is_blacklisted(path: Path, blacklist: Iterable[str] = DEFAULT_BLACKLIST) -> bool:
    name = path.name
    return any(name == entry or name.endswith(entry) for entry in blacklist)


def _read_payload(path: Path) -> bytes:
    return path.read_bytes()


def _sorted_entries(path: Path) -> list[Path]:
    return sorted(path.iterdir(), key=lambda entry: entry.name)


def generate(
    path: Path,
    content_type: ContentType,
    *,
    progress: Optional[ProgressCallback] = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
) -> MergeOutcome[ContentNode]:
    """Build a ContentNode tree from ``path``.

    Every leaf below ``path`` gets ``content_type``. A directory entry that
    fails to build is reported and left out; the rest of the subtree is kept.
    """

    blacklist = tuple(blacklist)
    name = path.name
    if path.is_dir():
        children: Dict[str, ContentNode] = {}
        units = 0
        for entry in _sorted_entries(path):
            try:
                outcome = generate(entry, content_type, progress=progress,
                                   blacklist=blacklist, size_weighted=size_weighted)
            except BlacklistedEntryError as exc:
                log_skip(str(exc), indent=2)
                continue
            except (OSError, TreeBuildError) as exc:
                log_warn(f"Unable to read '{entry}': {exc}", indent=2)
                continue
            children[outcome.key] = outcome.result
            units += outcome.unit_delta
        return MergeOutcome(ContentNode.directory(name, children), units, name)

    if is_blacklisted(path, blacklist):
        raise BlacklistedEntryError(path)

    payload = _read_payload(path)
    units = len(payload) if size_weighted else 1
    notify(progress, units)
    return MergeOutcome(ContentNode.leaf(name, payload, content_type), units, name)


def generate_namespace(
    path: Path,
    *,
    progress: Optional[ProgressCallback] = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
) -> MergeOutcome[Namespace]:
    if not path.is_dir():
        raise FileInNamespaceError(path)

    blacklist = tuple(blacklist)
    children: Dict[str, ContentNode] = {}
    units = 0
    for entry in _sorted_entries(path):
        if not entry.is_dir():
            if not is_blacklisted(entry, blacklist):
                log_warn(f"'{entry}' is a file directly inside a namespace. Skipping...",
                         indent=2)
            continue
        content_type = ContentType.from_folder(entry.name)
        try:
            outcome = generate(entry, content_type, progress=progress,
                               blacklist=blacklist, size_weighted=size_weighted)
        except (OSError, TreeBuildError) as exc:
            log_warn(f"Unable to read '{entry}': {exc}", indent=2)
            continue
        children[outcome.key] = outcome.result
        units += outcome.unit_delta

    return MergeOutcome(Namespace(name=path.name, children=children), units, path.name)


def generate_pack(
    path: Path,
    *,
    name: str | None = None,
    source_location: Path | None = None,
    progress: Optional[ProgressCallback] = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
) -> MergeOutcome[Pack]:
    """Build a Pack from a materialized pack directory.

    ``name`` and ``source_location`` default to the directory itself;
    callers that extracted an archive pass the archive instead of the
    scratch directory.
    """

    if not path.is_dir():
        raise FileInPackError(path)

    metadata_path = path / PACK_METADATA
    if not metadata_path.is_file():
        raise MissingPackMetadataError(path)

    blacklist = tuple(blacklist)
    pack_name = name or path.name
    root_metadata = _read_payload(metadata_path)
    notify(progress, len(root_metadata) if size_weighted else 1)
    units = len(root_metadata) if size_weighted else 1

    root_files: Dict[str, ContentNode] = {}
    for entry in _sorted_entries(path):
        if entry.name in (PACK_METADATA, DATA_FOLDER):
            continue
        try:
            outcome = generate(entry, ContentType.UNKNOWN, progress=progress,
                               blacklist=blacklist, size_weighted=size_weighted)
        except BlacklistedEntryError as exc:
            log_skip(str(exc), indent=2)
            continue
        except (OSError, TreeBuildError) as exc:
            log_warn(f"Unable to read '{entry}': {exc}", indent=2)
            continue
        root_files[outcome.key] = outcome.result
        units += outcome.unit_delta

    namespaces: Dict[str, Namespace] = {}
    data_path = path / DATA_FOLDER
    if data_path.is_dir():
        for entry in _sorted_entries(data_path):
            try:
                outcome = generate_namespace(entry, progress=progress,
                                             blacklist=blacklist, size_weighted=size_weighted)
            except StructuralError as exc:
                if not is_blacklisted(entry, blacklist):
                    log_warn(str(exc), indent=2)
                continue
            except (OSError, TreeBuildError) as exc:
                log_warn(f"Unable to read namespace '{entry}': {exc}", indent=2)
                continue
            namespaces[outcome.key] = outcome.result
            units += outcome.unit_delta
    else:
        log_warn(f"Pack '{pack_name}' has no {DATA_FOLDER}/ folder", indent=2)

    pack = Pack(
        name=pack_name,
        source_location=source_location or path,
        root_metadata=root_metadata,
        namespaces=namespaces,
        root_files=root_files,
        total_unit_count=units,
    )
    return MergeOutcome(pack, units, pack_name)


__all__ = [
    "DEFAULT_BLACKLIST",
    "PACK_METADATA",
    "DATA_FOLDER",
    "is_blacklisted",
    "generate",
    "generate_namespace",
    "generate_pack",
]
