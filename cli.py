from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from datapackmerger import (
    PackSummary,
    build_conflict_records,
    discover_packs,
    dump_pack,
    export_report,
    filter_ignored,
    load_merge_config,
    merge_sources,
    plan_merge_order,
    print_conflict_details,
    write_output,
)
from datapackmerger.errors import PackMergerError
from datapackmerger.logging_utils import log_error, log_info, log_skip, log_warn
from datapackmerger.models import CompressionMethod


def _drop_output(sources: List[Path], output: Path) -> List[Path]:
    output = output.expanduser().resolve()
    kept: List[Path] = []
    for source in sources:
        if source.resolve() == output:
            log_skip(f"'{source.name}' is the merge output. Skipping...")
            continue
        kept.append(source)
    return kept


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Merge every datapack (folder, zip or tar.gz) found in a directory into one zip. "
            "Tag lists are concatenated; other files are taken from the highest priority pack."
        )
    )
    parser.add_argument(
        "--packs",
        required=True,
        type=Path,
        help="Directory that contains the datapacks to merge.",
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        default=Path("config.toml"),
        help="Path to the program configuration TOML file.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path of the merged zip file. Overrides 'output' from the config.",
    )
    parser.add_argument(
        "--core",
        default=None,
        help="Name of the authoritative pack; it is merged last and wins every conflict.",
    )
    parser.add_argument(
        "--compression",
        choices=[method.value for method in CompressionMethod],
        default=None,
        help="Compression method of the merged zip. Overrides 'compression' from the config.",
    )
    parser.add_argument(
        "--verbose-conflict",
        action="store_true",
        default=False,
        help="Print every identifier provided by more than one pack.",
    )
    parser.add_argument(
        "--export-path",
        type=Path,
        default=Path(""),
        help="Path to save the conflict report Excel file.",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        default=False,
        help="Print the merged pack tree.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Merge and report, but do not write the output archive.",
    )
    parser.add_argument(
        "--backup-dir",
        type=Path,
        default=None,
        help="Copy an existing output file here before overwriting it.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    packs_root = args.packs.expanduser().resolve()
    if not packs_root.is_dir():
        raise SystemExit(f"Packs directory {packs_root} does not exist.")

    config = load_merge_config(args.config_path.expanduser())
    if args.output is not None:
        config.output = args.output.expanduser()
    if args.compression is not None:
        config.compression = CompressionMethod.parse(args.compression)
    core = args.core or config.core

    sources = filter_ignored(discover_packs(packs_root, config.scratch_dir), config.ignore_packs)
    sources = _drop_output(sources, config.output)
    if not sources:
        log_warn("No datapacks found under the provided directory. Program exit.")
        return
    log_info(f"Found {len(sources)} datapack(s) in {packs_root}.")

    try:
        ordered = plan_merge_order(sources, config.priority_lookup, core=core)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    log_info("Merge order (last wins):")
    for position, source in enumerate(ordered):
        log_info(f"{position}: {source.name}", indent=2)

    try:
        run = merge_sources(
            ordered,
            max_workers=config.max_workers,
            scratch_root=config.scratch_dir,
            blacklist=config.blacklist,
            size_weighted=config.size_weighted,
        )
    except PackMergerError as exc:
        raise SystemExit(str(exc)) from exc

    for name, reason in run.excluded.items():
        log_warn(f"Pack '{name}' was left out: {reason}")

    conflicts = build_conflict_records(run.packs)
    if args.verbose_conflict:
        print_conflict_details(conflicts)
    else:
        log_info(f"{len(conflicts)} identifier(s) provided by more than one pack.")

    export_path = args.export_path
    if not export_path == Path(""):
        if export_path.suffix.lower() != ".xlsx":
            export_path = export_path / "merge_report.xlsx"
        summaries = [PackSummary.from_pack(pack) for pack in run.packs]
        export_report(output_path=export_path, summaries=summaries, conflicts=conflicts)
        log_info(f"Report saved to {export_path}")

    if args.dump:
        print(dump_pack(run.merged.result))

    try:
        write_output(
            run,
            config.output,
            options=config.compile_options,
            backup_dir=args.backup_dir.expanduser() if args.backup_dir else None,
            dry_run=args.dry_run,
        )
    except OSError as exc:
        log_error(f"Writing {config.output} failed; the file may be incomplete: {exc}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
