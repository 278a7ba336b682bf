"""Bounded retry around external calculations.

Host-side calculations (geometry optimisation, band-structure and E-field
runs) occasionally crash for reasons unrelated to the input. Callers wrap
them in :func:`retry_call`; the core never retries anything itself.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from crystalflow.errors import RetryLimitExceeded

__all__ = ["DEFAULT_MAX_TRIES", "retry_call"]

DEFAULT_MAX_TRIES = 3

T = TypeVar("T")


def retry_call(
    fn: Callable[..., T],
    *args,
    max_tries: int = DEFAULT_MAX_TRIES,
    label: str | None = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    **kwargs,
) -> T:
    """Call ``fn(*args, **kwargs)`` up to ``max_tries`` times.

    Each failure is logged as ``Failed try i of n``. After the last failure
    :class:`RetryLimitExceeded` is raised, chained to the final exception.
    """
    if max_tries < 1:
        raise ValueError(f"max_tries must be >= 1, got {max_tries}")
    name = label or getattr(fn, "__name__", "call")
    for attempt in range(1, max_tries + 1):
        try:
            result = fn(*args, **kwargs)
        except retry_on as exc:
            logging.warning("[retry] %s: Failed try %d of %d (%s)", name, attempt, max_tries, exc)
            if attempt == max_tries:
                raise RetryLimitExceeded(name, max_tries) from exc
            continue
        if attempt > 1:
            logging.info("[retry] %s: succeeded on try %d of %d", name, attempt, max_tries)
        return result
    raise AssertionError("unreachable")  # pragma: no cover
