from __future__ import annotations

import toml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .logging_utils import log_warn
from .models import CompileOptions, CompressionMethod
from .tree_builder import DEFAULT_BLACKLIST

DEFAULT_OUTPUT = Path("merged.zip")
DEFAULT_MAX_WORKERS = 4


@dataclass(slots=True)
class MergeConfig:
    priority: List[str] = field(default_factory=list)
    ignore_packs: List[str] = field(default_factory=list)
    core: str | None = None
    output: Path = DEFAULT_OUTPUT
    compression: CompressionMethod = CompressionMethod.DEFLATED
    permissions: int | None = None
    blacklist: List[str] = field(default_factory=lambda: list(DEFAULT_BLACKLIST))
    max_workers: int = DEFAULT_MAX_WORKERS
    size_weighted: bool = False
    scratch_dir: Path | None = None

    @property
    def priority_lookup(self) -> Dict[str, int]:
        return {name: rank for rank, name in enumerate(self.priority)}

    @property
    def compile_options(self) -> CompileOptions:
        return CompileOptions(compression=self.compression, permissions=self.permissions)


def parse_permissions(raw: Any) -> int | None:
    """Accept ``"644"``, ``"0o644"`` or an integer already holding the mode bits."""

    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValueError(f"Invalid permissions value: {raw!r}")
    if isinstance(raw, int):
        mode = raw
    else:
        text = str(raw).strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        try:
            mode = int(text, 8)
        except ValueError as exc:
            raise ValueError(f"Invalid permissions value: {raw!r}") from exc
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"Permissions out of range: {raw!r}")
    return mode


def _string_list(config: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = config.get(key, default)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return list(value)


def load_merge_config(config_path: Path) -> MergeConfig:
    """Load merge settings from a TOML file.

    A missing file yields the defaults. Relative ``output`` and
    ``scratch_dir`` paths are resolved against the file's directory.
    """

    merge_config = MergeConfig()

    if not config_path.exists():
        log_warn(f"Config file {config_path} not found. Proceeding with defaults.")
        return merge_config

    raw_text = config_path.read_text(encoding="utf-8")
    try:
        config = toml.loads(raw_text)
    except toml.TomlDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {config_path}") from exc

    base_dir = config_path.parent

    merge_config.priority = _string_list(config, "priority", [])
    merge_config.ignore_packs = _string_list(config, "ignore_packs", [])
    merge_config.blacklist = _string_list(config, "blacklist", list(DEFAULT_BLACKLIST))

    core = config.get("core")
    merge_config.core = str(core) if core else None

    if "output" in config:
        merge_config.output = base_dir / config["output"]
    if "scratch_dir" in config:
        merge_config.scratch_dir = base_dir / config["scratch_dir"]

    if "compression" in config:
        merge_config.compression = CompressionMethod.parse(str(config["compression"]))
    merge_config.permissions = parse_permissions(config.get("permissions"))

    max_workers = config.get("max_workers", DEFAULT_MAX_WORKERS)
    if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
        raise ValueError(f"'max_workers' must be a positive integer, got {max_workers!r}")
    merge_config.max_workers = max_workers
    merge_config.size_weighted = bool(config.get("size_weighted", False))

    return merge_config


__all__ = ["MergeConfig", "load_merge_config", "parse_permissions"]
