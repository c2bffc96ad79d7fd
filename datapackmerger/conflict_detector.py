from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List

from .archive_adapter import is_pack
from .models import ConflictRecord, ContentNode, ContentType, Pack


def discover_packs(packs_root: Path, scratch_root: Path | None = None) -> List[Path]:
    """Return every pack source (directory or archive) directly inside ``packs_root``."""

    sources: List[Path] = []
    for entry in sorted(packs_root.iterdir(), key=lambda path: path.name):
        if is_pack(entry, scratch_root):
            sources.append(entry)
    return sources


def _collect_node(node: ContentNode, prefix: str, identifiers: Dict[str, ContentType]) -> None:
    path = f"{prefix}/{node.name}" if prefix else node.name
    if node.is_leaf:
        identifiers[path] = node.content_type
        return
    for child in node.children.values():
        _collect_node(child, path, identifiers)


def collect_identifiers(pack: Pack) -> Dict[str, ContentType]:
    """Map ``namespace:category/path`` of every leaf in ``pack`` to its content type."""

    identifiers: Dict[str, ContentType] = {}
    for namespace in pack.namespaces.values():
        for category in namespace.children.values():
            leaves: Dict[str, ContentType] = {}
            _collect_node(category, "", leaves)
            for path, content_type in leaves.items():
                identifiers[f"{namespace.name}:{path}"] = content_type
    return identifiers


def detect_duplicates(packs: Iterable[Pack]) -> Dict[str, List[str]]:
    """Group identifiers that more than one pack provides, keeping pack order."""

    grouped: Dict[str, List[str]] = defaultdict(list)
    for pack in packs:
        for identifier in collect_identifiers(pack):
            grouped[identifier].append(pack.name)

    return {
        identifier: names
        for identifier, names in sorted(grouped.items())
        if len(set(names)) > 1
    }


def build_conflict_records(packs: List[Pack]) -> List[ConflictRecord]:
    types: Dict[str, ContentType] = {}
    for pack in packs:
        types.update(collect_identifiers(pack))

    return [
        ConflictRecord(identifier=identifier, content_type=types[identifier], packs=names)
        for identifier, names in detect_duplicates(packs).items()
    ]


__all__ = [
    "discover_packs",
    "collect_identifiers",
    "detect_duplicates",
    "build_conflict_records",
]
