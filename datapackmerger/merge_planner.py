from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List

from .archive_adapter import source_name

DEFAULT_LOW_PRIORITY = 9999


def _source_priority(source: Path, priority_lookup: Dict[str, int]) -> int:
    return priority_lookup.get(source_name(source), DEFAULT_LOW_PRIORITY)


def plan_merge_order(
    sources: Iterable[Path],
    priority_lookup: Dict[str, int] | None = None,
    core: str | None = None,
) -> List[Path]:
    """Order pack sources for the merge fold.

    Rank 0 in ``priority_lookup`` is the highest priority. Packs are merged
    lowest priority first so that higher priority packs win leaf conflicts;
    unlisted packs go first. The ``core`` pack, when given, is merged last.
    """

    lookup = priority_lookup or {}
    ordered = sorted(
        sources,
        key=lambda source: (-_source_priority(source, lookup), source_name(source)),
    )
    if core is None:
        return ordered

    core_sources = [source for source in ordered if source_name(source) == core]
    if not core_sources:
        available = ", ".join(source_name(source) for source in ordered)
        raise ValueError(f"Core pack '{core}' not found. Available packs: {available}")
    return [source for source in ordered if source_name(source) != core] + core_sources


def filter_ignored(sources: Iterable[Path], ignore_packs: Iterable[str]) -> List[Path]:
    ignored = {name.lower() for name in ignore_packs}
    return [source for source in sources if source_name(source).lower() not in ignored]


__all__ = ["DEFAULT_LOW_PRIORITY", "plan_merge_order", "filter_ignored"]
