"""Collect CASTEP band-structure and E-field results into a structure table.

For every structure name the document directory is searched for
``<name>_BandStr.bands`` and ``<name>_Efield.castep``. Parsed values land in
one row of a CSV with the structure-table column headings. A file that is
missing or malformed leaves its columns empty; a band gap that cannot be
derived from a parsed file falls back to ``bands.fallback_gap``.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from crystalflow.adapters.castep_bands import parse_band_structure, summarize_band_gap_or_default
from crystalflow.adapters.castep_efield import parse_polarizability
from crystalflow.cli.common import add_standard_flags
from crystalflow.errors import CrystalflowError
from crystalflow.infra.step_logging import log_relevant_config
from crystalflow.io.files import find_files_with_suffix
from crystalflow.pipeline.context import start_step

__all__ = [
    "BANDS_SUFFIX",
    "EFIELD_SUFFIX",
    "TABLE_COLUMNS",
    "discover_structure_names",
    "collect_results",
    "run_collect",
    "main",
]

BANDS_SUFFIX = "_BandStr.bands"
EFIELD_SUFFIX = "_Efield.castep"

BAND_COLUMNS = [
    "Direct Band Gap",
    "Indirect Band Gap",
    "Valence Dispersion",
    "Conduction Dispersion",
    "Polarity",
]
POLARIZABILITY_COLUMNS = [
    "Optical Permittivity",
    "DC Permittivity",
    "Optical Polarizability",
    "Static Polarizability",
]
TABLE_COLUMNS = ["Structure", *BAND_COLUMNS, *POLARIZABILITY_COLUMNS]


def discover_structure_names(documents_dir: Path, suffixes: Iterable[str] = (BANDS_SUFFIX, EFIELD_SUFFIX)) -> list[str]:
    found = find_files_with_suffix(documents_dir, suffixes)
    names = {p.name[: -len(suffix)] for suffix, paths in found.items() for p in paths}
    return sorted(n for n in names if n)


def _band_columns(path: Path, threshold: float, fallback: float) -> dict:
    record = parse_band_structure(path)
    s = summarize_band_gap_or_default(record, threshold, default=fallback)
    return dict(zip(BAND_COLUMNS, [s.direct_gap, s.indirect_gap, s.valence_dispersion, s.conduction_dispersion, s.polarity]))


def _polarizability_columns(path: Path) -> dict:
    r = parse_polarizability(path)
    return dict(zip(
        POLARIZABILITY_COLUMNS,
        [r.optical_permittivity, r.dc_permittivity, r.optical_polarizability, r.static_polarizability],
    ))


def collect_results(
    documents_dir: Path,
    names: Sequence[str],
    include_bands: bool = True,
    include_polarizability: bool = True,
    threshold: float = 0.015,
    fallback_gap: float = 0.0,
) -> tuple[pd.DataFrame, list[str]]:
    """Build the results table; returns it with the list of ``name: error`` failures."""
    documents_dir = Path(documents_dir)
    rows: list[dict] = []
    failures: list[str] = []
    for name in names:
        row: dict = {"Structure": name}
        if include_bands:
            try:
                row.update(_band_columns(documents_dir / f"{name}{BANDS_SUFFIX}", threshold, fallback_gap))
            except CrystalflowError as exc:
                logging.warning("[collect] %s: band structure unavailable: %s", name, exc)
                failures.append(f"{name}: {exc}")
        if include_polarizability:
            try:
                row.update(_polarizability_columns(documents_dir / f"{name}{EFIELD_SUFFIX}"))
            except CrystalflowError as exc:
                logging.warning("[collect] %s: polarizability unavailable: %s", name, exc)
                failures.append(f"{name}: {exc}")
        rows.append(row)

    columns = ["Structure"]
    if include_bands:
        columns += BAND_COLUMNS
    if include_polarizability:
        columns += POLARIZABILITY_COLUMNS
    return pd.DataFrame(rows, columns=columns), failures


def run_collect(
    out_csv: Path,
    project: Path,
    override_cfg: Path | None = None,
    documents_dir: Path | None = None,
    names: Sequence[str] | None = None,
    include_bands: bool = True,
    include_polarizability: bool = True,
    log_file: Path | None = None,
    log_console: bool = False,
) -> int:
    cfg = start_step("collect", project, override_cfg, log_file, log_console)
    log_relevant_config("collect", cfg, ["paths.documents_dir", "bands.polarity_threshold", "bands.fallback_gap"])
    docs = Path(documents_dir) if documents_dir else cfg.documents_path
    if names:
        structure_names = list(names)
    else:
        suffixes = ([BANDS_SUFFIX] if include_bands else []) + ([EFIELD_SUFFIX] if include_polarizability else [])
        structure_names = discover_structure_names(docs, suffixes)
    if not structure_names:
        logging.warning("[collect] no structures found in %s", docs)

    df, failures = collect_results(
        docs,
        structure_names,
        include_bands=include_bands,
        include_polarizability=include_polarizability,
        threshold=cfg.bands.polarity_threshold,
        fallback_gap=cfg.bands.fallback_gap,
    )
    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_csv, index=False)

    summary = f"[collect] Wrote {len(df)} row(s) to {out_csv}; {len(failures)} file(s) failed."
    print(summary)
    logging.info(summary)
    return 1 if failures else 0


def main(argv: list[str] | None = None):  # pragma: no cover
    ap = argparse.ArgumentParser(prog="crystalflow collect", description="Collect CASTEP results into a CSV structure table.")
    ap.add_argument("--documents", help="Directory holding <name>_BandStr.bands / <name>_Efield.castep (default from config)")
    ap.add_argument("--name", action="append", dest="names", help="Structure name (repeatable); default: discover from files")
    ap.add_argument("--no-bands", action="store_true", help="Skip band-structure columns")
    ap.add_argument("--no-polarizability", action="store_true", help="Skip polarizability columns")
    ap.add_argument("--out", required=True, help="Output CSV path")
    add_standard_flags(ap)
    args = ap.parse_args(argv)
    rc = run_collect(
        Path(args.out),
        Path(args.project).resolve(),
        Path(args.config).resolve() if args.config else None,
        documents_dir=Path(args.documents) if args.documents else None,
        names=args.names,
        include_bands=not args.no_bands,
        include_polarizability=not args.no_polarizability,
        log_file=Path(args.log_file) if args.log_file else None,
        log_console=args.log_console,
    )
    raise SystemExit(rc)


if __name__ == "__main__":  # pragma: no cover
    main()
