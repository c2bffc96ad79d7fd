from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional, TypeVar

from .errors import StructuralMismatchError
from .logging_utils import log_error
from .models import ContentNode, ContentType, MergeOutcome, Namespace, Pack
from .tag_merge import merge_tag_payloads

V = TypeVar("V")


def _merge_children(
    base: Dict[str, V],
    incoming: Dict[str, V],
    key: str,
    merge_child: Callable[[V, V, str], MergeOutcome[V]],
) -> MergeOutcome[Dict[str, V]]:
    """Keys only in ``incoming`` are adopted at one unit each; shared keys go through ``merge_child``."""

    merged = dict(base)
    units = 0
    for child_key, incoming_child in incoming.items():
        base_child = base.get(child_key)
        if base_child is None:
            merged[child_key] = incoming_child
            units += 1
            continue
        outcome = merge_child(base_child, incoming_child, f"{key}/{child_key}")
        merged[child_key] = outcome.result
        units += outcome.unit_delta
    return MergeOutcome(merged, units, key)


def _merge_leaves(base: ContentNode, incoming: ContentNode, key: str) -> MergeOutcome[ContentNode]:
    if base.content_type is not incoming.content_type:
        raise StructuralMismatchError(
            key, f"{base.content_type.value} file", f"{incoming.content_type.value} file"
        )

    if base.content_type is ContentType.TAG:
        payload = merge_tag_payloads(base.payload, incoming.payload)
        return MergeOutcome(ContentNode.leaf(base.name, payload, base.content_type), 1, key)

    return MergeOutcome(incoming, 1, key)


def merge_nodes(base: ContentNode, incoming: ContentNode, key: str) -> MergeOutcome[ContentNode]:
    """Return a new node; neither input is modified."""

    if base.is_leaf != incoming.is_leaf:
        raise StructuralMismatchError(key, base.kind, incoming.kind)

    if base.is_leaf:
        return _merge_leaves(base, incoming, key)

    children = _merge_children(base.children, incoming.children, key, merge_nodes)
    return MergeOutcome(ContentNode.directory(base.name, children.result), children.unit_delta, key)


def merge_namespaces(base: Namespace, incoming: Namespace, key: str) -> MergeOutcome[Namespace]:
    children = _merge_children(base.children, incoming.children, key, merge_nodes)
    return MergeOutcome(Namespace(name=base.name, children=children.result), children.unit_delta, key)


def merge_packs(base: Pack, incoming: Pack, key: str) -> MergeOutcome[Pack]:
    """Merge two packs; the incoming descriptor and root files win."""

    namespaces = _merge_children(base.namespaces, incoming.namespaces, f"{key}:data", merge_namespaces)
    root_files = _merge_children(base.root_files, incoming.root_files, key, merge_nodes)
    units = namespaces.unit_delta + root_files.unit_delta
    merged = Pack(
        name=base.name,
        source_location=base.source_location,
        root_metadata=incoming.root_metadata,
        namespaces=namespaces.result,
        root_files=root_files.result,
        total_unit_count=base.total_unit_count + units,
    )
    return MergeOutcome(merged, units, key)


def fold_packs(
    packs: Iterable[Pack],
    on_error: Optional[Callable[[Pack, StructuralMismatchError], None]] = None,
) -> MergeOutcome[Pack]:
    """Merge ``packs`` in order, the last pack winning leaf conflicts.

    A pack that cannot be merged into the running result is reported and
    excluded; the result is left as it was before that pack.
    """

    accumulated: MergeOutcome[Pack] | None = None
    for pack in packs:
        if accumulated is None:
            accumulated = MergeOutcome(pack, 0, pack.name)
            continue
        try:
            outcome = merge_packs(accumulated.result, pack, pack.name)
        except StructuralMismatchError as exc:
            log_error(f"Excluding pack '{pack.name}' from the merge: {exc}", indent=2)
            if on_error is not None:
                on_error(pack, exc)
            continue
        accumulated = MergeOutcome(outcome.result, accumulated.unit_delta + outcome.unit_delta, pack.name)

    if accumulated is None:
        raise ValueError("Cannot fold an empty list of packs")
    return accumulated


__all__ = [
    "merge_nodes",
    "merge_namespaces",
    "merge_packs",
    "fold_packs",
]
