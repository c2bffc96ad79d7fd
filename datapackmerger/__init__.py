"""Core package for Datapack Merger tooling."""

from .archive_adapter import is_pack, materialize, materialized, peek
from .compiler import compile_pack, flatten_pack
from .conflict_detector import (
    build_conflict_records,
    collect_identifiers,
    detect_duplicates,
    discover_packs,
)
from .load_config import MergeConfig, load_merge_config
from .merge_engine import fold_packs, merge_namespaces, merge_nodes, merge_packs
from .merge_executor import MergeRun, build_pack, build_packs, merge_sources, write_output
from .merge_planner import filter_ignored, plan_merge_order
from .models import (
    CompileOptions,
    CompressionMethod,
    ConflictRecord,
    ContentNode,
    ContentType,
    MergeOutcome,
    Namespace,
    Pack,
    PackSummary,
)
from .report import dump_pack, export_report, print_conflict_details
from .tree_builder import generate, generate_namespace, generate_pack

__all__ = [
    "CompileOptions",
    "CompressionMethod",
    "ConflictRecord",
    "ContentNode",
    "ContentType",
    "MergeConfig",
    "MergeOutcome",
    "MergeRun",
    "Namespace",
    "Pack",
    "PackSummary",
    "load_merge_config",
    "discover_packs",
    "filter_ignored",
    "plan_merge_order",
    "is_pack",
    "peek",
    "materialize",
    "materialized",
    "generate",
    "generate_namespace",
    "generate_pack",
    "merge_nodes",
    "merge_namespaces",
    "merge_packs",
    "fold_packs",
    "build_pack",
    "build_packs",
    "merge_sources",
    "write_output",
    "compile_pack",
    "flatten_pack",
    "collect_identifiers",
    "detect_duplicates",
    "build_conflict_records",
    "print_conflict_details",
    "export_report",
    "dump_pack",
]
