"""Common CLI helpers for crystalflow commands."""
from __future__ import annotations
import argparse
import os

from crystalflow.domain.geometry.normalize import AlignmentStrategy, PaddingConvention

CONFIG_ARG_HELP = "Optional crystalflow.toml whose values override <project>/crystalflow.toml"


def add_standard_flags(ap: argparse.ArgumentParser, project: bool = True, config: bool = True, log_console: bool = True):
    if project:
        ap.add_argument("--project", default=os.environ.get("CRYSTALFLOW_PROJECT_PATH", os.getcwd()), help="Project root path (holds crystalflow.toml)")
    if config:
        ap.add_argument("--config", help=CONFIG_ARG_HELP)
    ap.add_argument("--log-file", help="Log file (default: <project>/crystalflow.log)")
    if log_console:
        ap.add_argument("--log-console", action="store_true", help="Echo logs to console in addition to file")
    return ap


def add_geometry_flags(ap: argparse.ArgumentParser):
    """Flags overriding the [box] / [alignment] config sections."""
    ap.add_argument("--padding", type=float, help="Cell padding in Angstrom (default from config)")
    ap.add_argument("--convention", choices=[c.value for c in PaddingConvention], help="Padding convention")
    ap.add_argument("--strategy", choices=[s.value for s in AlignmentStrategy], help="Principal-axis alignment strategy")
    ap.add_argument(
        "--neighbor-distance",
        type=float,
        help="Distance between periodic images; converted to a padding for the chosen convention",
    )
    return ap
