"""Inspect one CASTEP ``.bands`` file: header, gaps, dispersions and polarity."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from crystalflow.adapters.castep_bands import parse_band_structure, summarize_band_gap
from crystalflow.cli.common import add_standard_flags
from crystalflow.errors import CrystalflowError
from crystalflow.pipeline.context import start_step

__all__ = ["main", "run_bands", "format_band_summary"]


def format_band_summary(name: str, record, summary) -> list[str]:
    lines = [
        f"Structure             : {name}",
        f"k-points              : {record.num_kpoints}",
        f"electrons             : {record.num_electrons}",
        f"eigenvalues           : {record.num_eigenvalues}",
    ]
    if record.fermi_energy is not None:
        lines.append(f"Fermi energy (eV)     : {record.fermi_energy:.6f}")
    lines += [
        f"Direct Band Gap       : {summary.direct_gap:.6f}",
        f"Indirect Band Gap     : {summary.indirect_gap:.6f}",
        f"Valence Dispersion    : {summary.valence_dispersion:.6f}",
        f"Conduction Dispersion : {summary.conduction_dispersion:.6f}",
        f"Polarity              : {summary.polarity}",
    ]
    return lines


def run_bands(
    path: Path,
    project: Path,
    override_cfg: Path | None = None,
    threshold: float | None = None,
    log_file: Path | None = None,
    log_console: bool = False,
) -> int:
    cfg = start_step("bands", project, override_cfg, log_file, log_console)
    thr = cfg.bands.polarity_threshold if threshold is None else threshold
    try:
        record = parse_band_structure(path)
        summary = summarize_band_gap(record, thr)
    except CrystalflowError as exc:
        logging.error("[bands] %s", exc)
        return 1
    for line in format_band_summary(Path(path).name, record, summary):
        print(line)
    logging.info(
        "[bands] %s: direct=%.6f indirect=%.6f polarity=%s",
        path, summary.direct_gap, summary.indirect_gap, summary.polarity,
    )
    return 0


def main(argv: list[str] | None = None):  # pragma: no cover
    ap = argparse.ArgumentParser(prog="crystalflow bands", description="Summarise a CASTEP .bands file.")
    ap.add_argument("file", help="<structure>_BandStr.bands file")
    ap.add_argument("--threshold", type=float, help="Polarity threshold in eV (default from config)")
    add_standard_flags(ap)
    args = ap.parse_args(argv)
    rc = run_bands(
        Path(args.file),
        Path(args.project).resolve(),
        Path(args.config).resolve() if args.config else None,
        threshold=args.threshold,
        log_file=Path(args.log_file) if args.log_file else None,
        log_console=args.log_console,
    )
    raise SystemExit(rc)


if __name__ == "__main__":  # pragma: no cover
    main()
