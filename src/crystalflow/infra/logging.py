"""Central logging infrastructure for crystalflow.

Design goals:
    * Single active file handler per command invocation.
    * Optional console (stderr) emission without duplication.
    * Library modules only emit records; handlers are configured here.

Environment variables:
    CRYSTALFLOW_LOG_LEVEL   Override root log level (default: INFO).

Public API:
    setup_logging(path, also_console=True, suppress_initial_message=False)
    log_run_header(step_name)
    reset_logging()
"""
from __future__ import annotations

import logging
import os
from logging.handlers import WatchedFileHandler
from pathlib import Path

from crystalflow import __version__ as _crystalflow_version

__all__ = ["LOG_FORMAT", "setup_logging", "log_run_header", "reset_logging"]

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _is_console_handler(h: logging.Handler) -> bool:
    return isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)


def setup_logging(log_path, also_console: bool = True, suppress_initial_message: bool = False) -> None:
    """Configure the root logger for the current command.

    Parameters
    ----------
    log_path : str | Path
        Destination log file. A ``WatchedFileHandler`` is (re)used so external
        rotation/truncation tools are respected.
    also_console : bool, default True
        When True ensure exactly one stream handler to stderr. When False any
        existing non-file stream handlers are removed.
    suppress_initial_message : bool, default False
        Suppress the "Logging initialized" line.

    Behaviour
    ---------
    * Removes all previous ``FileHandler`` instances whose target path differs
      from ``log_path``.
    * Leaves a pre-existing handler for the same file intact (idempotent).
    * Does not downgrade an already more verbose root level (e.g. DEBUG).
    """
    path = Path(log_path).resolve()
    root = logging.getLogger()
    env_level = os.getenv("CRYSTALFLOW_LOG_LEVEL", "INFO").upper()
    desired_level = getattr(logging, env_level, logging.INFO)
    if root.level > desired_level or root.level == logging.NOTSET:
        root.setLevel(desired_level)
    effective_level = logging.getLevelName(root.level)
    fmt = logging.Formatter(LOG_FORMAT)

    existing_same = False
    for h in list(root.handlers):
        if not isinstance(h, logging.FileHandler):
            continue
        existing_path = Path(getattr(h, "baseFilename", ""))
        if existing_path.parent.exists() and existing_path.resolve() == path:
            existing_same = True
            continue
        root.removeHandler(h)
        h.close()

    console = [h for h in root.handlers if _is_console_handler(h)]
    if also_console:
        if not console:
            ch = logging.StreamHandler()
            ch.setLevel(root.level)
            ch.setFormatter(fmt)
            root.addHandler(ch)
    else:
        for h in console:
            root.removeHandler(h)
            h.close()

    if not existing_same:
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = WatchedFileHandler(path, mode="a", encoding="utf-8")
        fh.setLevel(root.level)
        fh.setFormatter(fmt)
        root.addHandler(fh)
        if not suppress_initial_message:
            root.info(f"Logging initialized. Log file: {path} (level={effective_level})")


def log_run_header(step_name: str) -> str:
    """Emit ``crystalflow <version> | step=<step_name>`` through the root logger."""
    header = f"crystalflow {_crystalflow_version} | step={step_name}"
    logging.getLogger().info(header)
    return header


def reset_logging() -> None:
    """Remove and close every handler on the root logger and its children."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for logger_name in list(logging.Logger.manager.loggerDict):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        logger.filters = []
