from __future__ import annotations

from pathlib import Path


class PackMergerError(Exception):
    """Base class for every error raised by the merger."""


class TreeBuildError(PackMergerError):
    pass


class BlacklistedEntryError(TreeBuildError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Blacklisted entry: {path}")
        self.path = path


class StructuralError(TreeBuildError):
    """A file sits where a directory is expected inside a pack, or vice versa."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"'{path}' {message}")
        self.path = path


class FileInNamespaceError(StructuralError):
    def __init__(self, path: Path) -> None:
        super().__init__(path, "is a file where a namespace directory was expected. Skipping...")


class FileInPackError(StructuralError):
    def __init__(self, path: Path) -> None:
        super().__init__(path, "is a file where a pack directory was expected. Skipping...")


class MissingPackMetadataError(StructuralError):
    def __init__(self, path: Path) -> None:
        super().__init__(path, "has no pack.mcmeta descriptor")


class StructuralMismatchError(PackMergerError):
    """Two nodes under the same key cannot be merged (leaf against directory)."""

    def __init__(self, key: str, base_kind: str, incoming_kind: str) -> None:
        super().__init__(
            f"'{key}' is a {base_kind} in one pack and a {incoming_kind} in another"
        )
        self.key = key
        self.base_kind = base_kind
        self.incoming_kind = incoming_kind


class ArchiveCodecError(PackMergerError):
    pass


class UnknownArchiveFormatError(ArchiveCodecError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Unknown archive format: {path}")
        self.path = path


class UnsafeEntryError(ArchiveCodecError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Archive entry escapes the extraction root: {name!r}")
        self.name = name


class MergeCancelled(PackMergerError):
    def __init__(self) -> None:
        super().__init__("Cancelled.")
