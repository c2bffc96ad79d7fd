from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .archive_adapter import materialized, source_name
from .compiler import compile_pack
from .errors import MergeCancelled, PackMergerError, StructuralMismatchError
from .file_utils import backup_file
from .logging_utils import log_error, log_info, log_ok
from .merge_engine import fold_packs
from .models import CompileOptions, MergeOutcome, Pack
from .progress import ProgressCallback, ProgressCounter
from .tree_builder import DEFAULT_BLACKLIST, generate_pack


@dataclass(slots=True)
class MergeRun:
    merged: MergeOutcome[Pack]
    packs: List[Pack] = field(default_factory=list)
    excluded: Dict[str, str] = field(default_factory=dict)
    output: Path | None = None


def build_pack(
    source: Path,
    *,
    scratch_root: Path | None = None,
    progress: Optional[ProgressCallback] = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
) -> Pack:
    """Materialize ``source`` and build its Pack; scratch files are gone on return."""

    with materialized(source, scratch_root) as location:
        outcome = generate_pack(
            location,
            name=source_name(source),
            source_location=source,
            progress=progress,
            blacklist=blacklist,
            size_weighted=size_weighted,
        )
    return outcome.result


def build_packs(
    sources: Sequence[Path],
    *,
    max_workers: int = 4,
    scratch_root: Path | None = None,
    progress: Optional[ProgressCallback] = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
    failures: Optional[Dict[str, str]] = None,
) -> List[Pack]:
    """Build every source in parallel and return the packs in source order.

    A source that fails to build is reported and left out. MergeCancelled
    raised by the progress callback stops the whole run.
    """

    blacklist = tuple(blacklist)
    built: Dict[Path, Pack] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_source = {
            executor.submit(
                build_pack,
                source,
                scratch_root=scratch_root,
                progress=progress,
                blacklist=blacklist,
                size_weighted=size_weighted,
            ): source
            for source in sources
        }

        for future in as_completed(future_to_source):
            source = future_to_source[future]
            try:
                built[source] = future.result()
            except MergeCancelled:
                for pending in future_to_source:
                    pending.cancel()
                raise
            except (OSError, PackMergerError) as exc:
                log_error(f"Unable to load pack '{source.name}': {exc}", indent=2)
                if failures is not None:
                    failures[source_name(source)] = str(exc)
                continue
            log_ok(f"Loaded pack '{source.name}'", indent=2)

    return [built[source] for source in sources if source in built]


def merge_sources(
    sources: Sequence[Path],
    *,
    max_workers: int = 4,
    scratch_root: Path | None = None,
    blacklist: Iterable[str] = DEFAULT_BLACKLIST,
    size_weighted: bool = False,
) -> MergeRun:
    """Build ``sources`` and fold them in the given order, last one winning."""

    seen: Dict[str, Path] = {}
    for source in sources:
        name = source_name(source)
        if name in seen:
            raise PackMergerError(
                f"Duplicate pack name detected: {name}. One: {seen[name]}, Other: {source}. "
                f"Rename or remove one of them."
            )
        seen[name] = source

    excluded: Dict[str, str] = {}
    counter = ProgressCounter("files read", report_every=1000)
    log_info(f"Loading {len(sources)} pack(s)...")
    packs = build_packs(
        sources,
        max_workers=max_workers,
        scratch_root=scratch_root,
        progress=counter,
        blacklist=blacklist,
        size_weighted=size_weighted,
        failures=excluded,
    )
    if not packs:
        raise PackMergerError("None of the packs could be loaded")
    log_info(f"Read {counter.count} unit(s) from {len(packs)} pack(s).")

    def _exclude(pack: Pack, exc: StructuralMismatchError) -> None:
        excluded[pack.name] = str(exc)

    merged = fold_packs(packs, on_error=_exclude)
    merged_packs = [pack for pack in packs if pack.name not in excluded]
    log_info(f"Merged {len(merged_packs)} pack(s), {merged.unit_delta} unit(s) of merge work.")
    return MergeRun(merged=merged, packs=merged_packs, excluded=excluded)


def write_output(
    run: MergeRun,
    output_path: Path,
    options: CompileOptions | None = None,
    backup_dir: Path | None = None,
    dry_run: bool = False,
) -> Path | None:
    pack = run.merged.result
    if dry_run:
        log_info(f"Dry run active. '{output_path}' was not written.")
        return None

    if backup_dir is not None and output_path.exists():
        backup_file(output_path, backup_dir)

    counter = ProgressCounter("entries written", report_every=1000)
    compile_pack(pack, output_path, progress=counter, options=options)
    log_ok(f"Wrote {counter.count} file(s) to {output_path}")
    run.output = output_path
    return output_path


__all__ = ["MergeRun", "build_pack", "build_packs", "merge_sources", "write_output"]
