from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Generic, List, TypeVar

T = TypeVar("T")


class ContentType(str, Enum):
    ADVANCEMENT = "advancements"
    FUNCTION = "functions"
    PREDICATE = "predicates"
    LOOT_TABLE = "loot_tables"
    RECIPE = "recipes"
    TAG = "tags"
    STRUCTURE = "structures"
    UNKNOWN = "unknown"

    @classmethod
    def from_folder(cls, folder_name: str) -> "ContentType":
        """Classify a first-level folder inside a namespace."""

        for member in cls:
            if member is not cls.UNKNOWN and member.value == folder_name:
                return member
        return cls.UNKNOWN


class CompressionMethod(str, Enum):
    STORED = "stored"
    DEFLATED = "deflated"
    BZIP2 = "bzip2"
    LZMA = "lzma"

    @property
    def zip_constant(self) -> int:
        return {
            CompressionMethod.STORED: zipfile.ZIP_STORED,
            CompressionMethod.DEFLATED: zipfile.ZIP_DEFLATED,
            CompressionMethod.BZIP2: zipfile.ZIP_BZIP2,
            CompressionMethod.LZMA: zipfile.ZIP_LZMA,
        }[self]

    @classmethod
    def parse(cls, raw: str) -> "CompressionMethod":
        normalized = raw.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown compression method '{raw}'. Expected one of: {choices}")


@dataclass(slots=True)
class ContentNode:
    """One node of a pack tree: a leaf with a payload or a directory with children."""

    name: str
    children: Dict[str, "ContentNode"] = field(default_factory=dict)
    payload: bytes | None = None
    content_type: ContentType | None = None

    def __post_init__(self) -> None:
        if self.payload is not None:
            if self.children:
                raise ValueError(f"Leaf '{self.name}' cannot have children")
            if self.content_type is None:
                raise ValueError(f"Leaf '{self.name}' needs a content type")
        elif self.content_type is not None:
            raise ValueError(f"Directory '{self.name}' cannot carry a content type")

    @classmethod
    def leaf(cls, name: str, payload: bytes, content_type: ContentType) -> "ContentNode":
        return cls(name=name, payload=bytes(payload), content_type=content_type)

    @classmethod
    def directory(
        cls, name: str, children: Dict[str, "ContentNode"] | None = None
    ) -> "ContentNode":
        return cls(name=name, children=dict(children or {}))

    @property
    def is_leaf(self) -> bool:
        return self.payload is not None

    @property
    def kind(self) -> str:
        return "file" if self.is_leaf else "directory"

    def leaf_count(self) -> int:
        if self.is_leaf:
            return 1
        return sum(child.leaf_count() for child in self.children.values())


@dataclass(slots=True)
class Namespace:
    name: str
    children: Dict[str, ContentNode] = field(default_factory=dict)

    def leaf_count(self) -> int:
        return sum(child.leaf_count() for child in self.children.values())


@dataclass(slots=True)
class Pack:
    name: str
    source_location: Path
    root_metadata: bytes
    namespaces: Dict[str, Namespace] = field(default_factory=dict)
    root_files: Dict[str, ContentNode] = field(default_factory=dict)
    total_unit_count: int = 0

    def leaf_count(self) -> int:
        namespace_leaves = sum(ns.leaf_count() for ns in self.namespaces.values())
        root_leaves = sum(node.leaf_count() for node in self.root_files.values())
        return namespace_leaves + root_leaves


@dataclass(slots=True)
class MergeOutcome(Generic[T]):
    result: T
    unit_delta: int
    key: str


@dataclass(slots=True)
class CompileOptions:
    compression: CompressionMethod = CompressionMethod.DEFLATED
    # Unix mode bits, only honoured on POSIX hosts.
    permissions: int | None = None


@dataclass(slots=True)
class PackSummary:
    name: str
    source: Path
    namespaces: int
    leaves: int
    units: int

    @classmethod
    def from_pack(cls, pack: Pack) -> "PackSummary":
        return cls(
            name=pack.name,
            source=pack.source_location,
            namespaces=len(pack.namespaces),
            leaves=pack.leaf_count(),
            units=pack.total_unit_count,
        )


@dataclass(slots=True)
class ConflictRecord:
    identifier: str
    content_type: ContentType
    packs: List[str] = field(default_factory=list)

    @property
    def winner(self) -> str:
        return self.packs[-1]

    @property
    def losers(self) -> List[str]:
        return self.packs[:-1]

    @property
    def policy(self) -> str:
        return "concatenate" if self.content_type is ContentType.TAG else "overwrite"
