from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class TagDocument:
    values: List[str] = field(default_factory=list)
    replace: bool | None = None

    def to_json(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        if self.replace is not None:
            document["replace"] = self.replace
        document["values"] = list(self.values)
        return document


def decode_tag(payload: bytes | None) -> TagDocument:
    """Decode a ``{"replace": bool?, "values": [str, ...]}`` tag file; anything else is an empty tag."""

    if not payload:
        return TagDocument()
    try:
        raw = json.loads(payload.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError):
        return TagDocument()
    if not isinstance(raw, dict):
        return TagDocument()

    values = raw.get("values")
    if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
        return TagDocument()

    replace = raw.get("replace")
    if not isinstance(replace, bool):
        replace = None
    return TagDocument(values=list(values), replace=replace)


def encode_tag(document: TagDocument) -> bytes:
    return json.dumps(document.to_json(), indent=2, ensure_ascii=False).encode("utf-8")


def merge_tag_documents(base: TagDocument, incoming: TagDocument) -> TagDocument:
    # The incoming replace flag is not interpreted; the base flag is kept as-is.
    return TagDocument(values=[*base.values, *incoming.values], replace=base.replace)


def merge_tag_payloads(base: bytes | None, incoming: bytes | None) -> bytes:
    merged = merge_tag_documents(decode_tag(base), decode_tag(incoming))
    return encode_tag(merged)


__all__ = [
    "TagDocument",
    "decode_tag",
    "encode_tag",
    "merge_tag_documents",
    "merge_tag_payloads",
]
