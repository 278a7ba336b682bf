"""Molecule-in-box: build an isolated-molecule cell for each XYZ input.

Each molecule is centered, aligned to its principal axes, boxed and padded,
then handed to the extended-XYZ cell builder (``<stem>-box.xyz`` in the
output directory). Molecules that cannot be read or boxed are logged and
skipped; the exit code is 1 if any input failed.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from crystalflow.adapters.host import ExtendedXyzCellBuilder, save_cell
from crystalflow.cli.common import add_geometry_flags, add_standard_flags
from crystalflow.domain.geometry.normalize import (
    AlignmentStrategy,
    PaddingConvention,
    build_isolated_cell,
    padding_for_neighbor_distance,
)
from crystalflow.errors import CrystalflowError
from crystalflow.infra.retry import retry_call
from crystalflow.infra.step_logging import log_relevant_config
from crystalflow.io.xyz import read_xyz
from crystalflow.pipeline.context import start_step

__all__ = ["main", "run_box"]


def run_box(
    files: Sequence[Path],
    out_dir: Path,
    project: Path,
    override_cfg: Path | None = None,
    padding: float | None = None,
    convention: str | None = None,
    strategy: str | None = None,
    neighbor_distance: float | None = None,
    log_file: Path | None = None,
    log_console: bool = False,
) -> int:
    cfg = start_step("box", project, override_cfg, log_file, log_console)
    conv = PaddingConvention(convention or cfg.box.convention)
    strat = AlignmentStrategy(strategy or cfg.alignment.strategy)
    if neighbor_distance is not None:
        if neighbor_distance < 0:
            logging.error("[box][abort] neighbor distance must be non-negative, got %s", neighbor_distance)
            return 2
        pad = padding_for_neighbor_distance(neighbor_distance, conv)
    else:
        pad = cfg.box.padding if padding is None else padding
    if pad < 0:
        logging.error("[box][abort] padding must be non-negative, got %s", pad)
        return 2
    log_relevant_config("box", cfg, ["retry.max_tries"])
    logging.info("[box] padding=%.4f convention=%s strategy=%s", pad, conv.value, strat.value)

    builder = ExtendedXyzCellBuilder(out_dir)
    built = 0
    failed: list[str] = []
    for path in files:
        path = Path(path)
        try:
            molecule = read_xyz(path)
            cell = build_isolated_cell(molecule, pad, conv, strat)
            retry_call(save_cell, builder, cell, max_tries=cfg.retry.max_tries, label=f"save {molecule.name}", retry_on=(OSError,))
        except CrystalflowError as exc:
            logging.warning("[box] skipping %s: %s", path, exc)
            failed.append(path.name)
            continue
        built += 1

    summary = f"[box] Built {built} cell(s); {len(failed)} failed."
    print(summary)
    logging.info(summary)
    if failed:
        logging.warning("[box] failed inputs: %s", ", ".join(failed))
    return 1 if failed else 0


def main(argv: list[str] | None = None):  # pragma: no cover
    ap = argparse.ArgumentParser(prog="crystalflow box", description="Build molecule-in-box cells from XYZ files.")
    ap.add_argument("files", nargs="+", help="Input XYZ files")
    ap.add_argument("--out", required=True, help="Output directory for <stem>-box.xyz files")
    add_geometry_flags(ap)
    add_standard_flags(ap)
    args = ap.parse_args(argv)
    rc = run_box(
        [Path(f) for f in args.files],
        Path(args.out),
        Path(args.project).resolve(),
        Path(args.config).resolve() if args.config else None,
        padding=args.padding,
        convention=args.convention,
        strategy=args.strategy,
        neighbor_distance=args.neighbor_distance,
        log_file=Path(args.log_file) if args.log_file else None,
        log_console=args.log_console,
    )
    raise SystemExit(rc)


if __name__ == "__main__":  # pragma: no cover
    main()
