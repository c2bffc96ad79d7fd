from __future__ import annotations

import os
import stat
import time
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .file_utils import ensure_directory
from .models import CompileOptions, ContentNode, Pack
from .progress import ProgressCallback, notify
from .tree_builder import DATA_FOLDER, PACK_METADATA

# (archive path, payload); a payload of None marks a directory entry.
ArchiveEntry = Tuple[str, Optional[bytes]]

_MSDOS_DIRECTORY = 0x10


def _flatten_node(node: ContentNode, prefix: str, entries: List[ArchiveEntry]) -> None:
    path = f"{prefix}{node.name}"
    if node.is_leaf:
        entries.append((path, node.payload))
        return
    entries.append((f"{path}/", None))
    for key in sorted(node.children):
        _flatten_node(node.children[key], f"{path}/", entries)


def _flatten_children(children: Dict[str, ContentNode], prefix: str, entries: List[ArchiveEntry]) -> None:
    for key in sorted(children):
        _flatten_node(children[key], prefix, entries)


def flatten_pack(pack: Pack) -> List[ArchiveEntry]:
    """Return the archive entries of ``pack`` in write order.

    Directory entries always come before anything inside them.
    """

    entries: List[ArchiveEntry] = [(PACK_METADATA, pack.root_metadata)]
    _flatten_children(pack.root_files, "", entries)
    entries.append((f"{DATA_FOLDER}/", None))
    for namespace_name in sorted(pack.namespaces):
        namespace = pack.namespaces[namespace_name]
        prefix = f"{DATA_FOLDER}/{namespace.name}/"
        entries.append((prefix, None))
        _flatten_children(namespace.children, prefix, entries)
    return entries


def _zip_info(name: str, is_directory: bool, options: CompileOptions) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=time.localtime(time.time())[:6])
    info.compress_type = zipfile.ZIP_STORED if is_directory else options.compression.zip_constant
    if options.permissions is not None and os.name == "posix":
        file_type = stat.S_IFDIR if is_directory else stat.S_IFREG
        info.create_system = 3
        info.external_attr = ((file_type | (options.permissions & 0o7777)) & 0xFFFF) << 16
        if is_directory:
            info.external_attr |= _MSDOS_DIRECTORY
    elif is_directory:
        info.external_attr = _MSDOS_DIRECTORY
    return info


def compile_pack(
    pack: Pack,
    output_location: Path,
    progress: Optional[ProgressCallback] = None,
    options: CompileOptions | None = None,
) -> Path:
    """Write ``pack`` into a zip archive at ``output_location``.

    The archive is written in place; a failure part-way leaves a partial file.
    """

    options = options or CompileOptions()
    ensure_directory(output_location.parent)
    with zipfile.ZipFile(output_location, "w", compression=options.compression.zip_constant) as archive:
        for name, payload in flatten_pack(pack):
            is_directory = payload is None
            archive.writestr(_zip_info(name, is_directory, options), b"" if is_directory else payload)
            notify(progress, 0 if is_directory else 1)
    return output_location


__all__ = ["ArchiveEntry", "flatten_pack", "compile_pack"]
