"""Shared start-up for command modules: logging, header and config."""
from __future__ import annotations

import logging
from pathlib import Path

from crystalflow.config.loader import Config, dump_config, load_config
from crystalflow.infra.logging import log_run_header, setup_logging

__all__ = ["DEFAULT_LOG_NAME", "start_step"]

DEFAULT_LOG_NAME = "crystalflow.log"


def start_step(
    step: str,
    project: Path,
    config_path: Path | None = None,
    log_file: Path | None = None,
    log_console: bool = False,
) -> Config:
    project = Path(project).resolve()
    setup_logging(str(log_file or project / DEFAULT_LOG_NAME), also_console=log_console, suppress_initial_message=True)
    log_run_header(step)
    cfg = load_config(project, config_path)
    dump_config(cfg, log_fn=logging.debug)
    return cfg
