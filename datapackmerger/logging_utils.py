from __future__ import annotations

import threading

LEVEL_DEFAULT = "info"

_OUTPUT_LOCK = threading.Lock()


def _normalize_level(level: str | None) -> str:
    if not level:
        return LEVEL_DEFAULT
    return level.strip().lower() or LEVEL_DEFAULT


def log(message: str, level: str = LEVEL_DEFAULT, indent: int = 0) -> None:
    prefix = " " * max(indent, 0)
    normalized = _normalize_level(level)
    # Pack builds log from worker threads.
    with _OUTPUT_LOCK:
        print(f"{prefix}[{normalized}] {message}")


def log_info(message: str, indent: int = 0) -> None:
    log(message, "info", indent)


def log_warn(message: str, indent: int = 0) -> None:
    log(message, "warn", indent)


def log_error(message: str, indent: int = 0) -> None:
    log(message, "error", indent)


def log_conflict(message: str, indent: int = 0) -> None:
    log(message, "conflict", indent)


def log_ok(message: str, indent: int = 0) -> None:
    log(message, "ok", indent)


def log_skip(message: str, indent: int = 0) -> None:
    log(message, "skip", indent)
