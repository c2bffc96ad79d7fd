from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

from openpyxl import Workbook

from .logging_utils import log_conflict, log_ok
from .models import ConflictRecord, ContentNode, Pack, PackSummary


def print_conflict_details(conflicts: Sequence[ConflictRecord]) -> None:
    if not conflicts:
        log_ok("No duplicated identifiers found.")
        return
    log_conflict("Identifiers provided by more than one pack:")
    for conflict in conflicts:
        details = " < ".join(conflict.packs)
        log_conflict(f"{conflict.identifier} ({conflict.policy}): {details}", indent=2)


def _build_conflict_rows(conflicts: Sequence[ConflictRecord]) -> List[List[str]]:
    rows: List[List[str]] = []
    for conflict in conflicts:
        row = [
            conflict.identifier,            # identifier
            conflict.content_type.value,    # content_type
            conflict.policy,                # policy
            conflict.winner,                # winner
            ", ".join(conflict.losers),     # overridden
        ]
        rows.append(row)
    return rows


def _build_pack_rows(
    summaries: Sequence[PackSummary],
    conflicts: Sequence[ConflictRecord],
) -> List[List[object]]:
    conflict_counts: Dict[str, int] = {}
    win_counts: Dict[str, int] = {}
    for conflict in conflicts:
        for name in set(conflict.packs):
            conflict_counts[name] = conflict_counts.get(name, 0) + 1
        win_counts[conflict.winner] = win_counts.get(conflict.winner, 0) + 1

    rows: List[List[object]] = []
    for order, summary in enumerate(summaries):
        row = [
            order,                                  # merge_order
            summary.name,                           # pack_name
            str(summary.source),                    # source
            summary.namespaces,                     # namespaces
            summary.leaves,                         # files
            conflict_counts.get(summary.name, 0),   # conflicting_files
            win_counts.get(summary.name, 0),        # winning_files
        ]
        rows.append(row)
    return rows


def export_report(
    output_path: Path,
    summaries: Sequence[PackSummary],
    conflicts: Sequence[ConflictRecord],
) -> None:
    """Write an Excel report of the merged packs and their duplicated identifiers."""

    output_path.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()

    packs_sheet = workbook.active
    if not packs_sheet:
        packs_sheet = workbook.create_sheet("packs")
    else:
        packs_sheet.title = "packs"
    packs_sheet.append([
        "merge order",
        "pack name",
        "source",
        "namespaces",
        "files",
        "conflicting files",
        "winning files",
    ])
    for row in _build_pack_rows(summaries, conflicts):
        packs_sheet.append(row)

    conflicts_sheet = workbook.create_sheet("conflicts")
    conflicts_sheet.append(["identifier", "content type", "policy", "winner", "overridden"])
    for row in _build_conflict_rows(conflicts):
        conflicts_sheet.append(row)

    workbook.save(output_path)
    workbook.close()


def _dump_node(node: ContentNode, depth: int, lines: List[str]) -> None:
    pad = "  " * depth
    if node.is_leaf:
        lines.append(f"{pad}{node.name} [{node.content_type.value}, {len(node.payload)} bytes]")
        return
    lines.append(f"{pad}{node.name}/")
    for key in sorted(node.children):
        _dump_node(node.children[key], depth + 1, lines)


def dump_pack(pack: Pack) -> str:
    """Render the merged pack tree as indented text."""

    lines = [f"{pack.name} ({pack.total_unit_count} units)"]
    lines.append(f"  pack.mcmeta [{len(pack.root_metadata)} bytes]")
    for key in sorted(pack.root_files):
        _dump_node(pack.root_files[key], 1, lines)
    lines.append("  data/")
    for name in sorted(pack.namespaces):
        namespace = pack.namespaces[name]
        lines.append(f"    {namespace.name}/")
        for key in sorted(namespace.children):
            _dump_node(namespace.children[key], 3, lines)
    return "\n".join(lines)


__all__ = ["print_conflict_details", "export_report", "dump_pack"]
