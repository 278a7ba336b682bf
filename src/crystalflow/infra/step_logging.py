"""Log the subset of the loaded configuration that a command actually uses."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

StepLogFn = Callable[[str], None]


def _extract(obj: Any, path: str) -> Any:
    cur = obj
    for part in path.split('.'):
        if cur is None:
            return None
        if hasattr(cur, part):
            cur = getattr(cur, part)
        elif isinstance(cur, dict):
            cur = cur.get(part)
        else:
            return None
    return cur


def log_relevant_config(step: str, cfg: Any, fields: Iterable[str], log_fn: StepLogFn | None = None) -> dict[str, Any]:
    """Log selected dotted attribute paths from cfg as ``[step][cfg] key=value``.

    Enum values are shown by value. Returns the mapping.
    """
    summary: dict[str, Any] = {}
    for f in fields:
        val = _extract(cfg, f)
        summary[f] = getattr(val, "value", val)
    emit = log_fn or logging.info
    formatted = ", ".join(f"{k}={summary[k]!r}" for k in summary)
    emit(f"[{step}][cfg] {formatted}")
    return summary


__all__ = [
    'log_relevant_config',
]
