"""Inspect one CASTEP ``_Efield.castep`` file: isotropic permittivities and polarisabilities."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from crystalflow.adapters.castep_efield import parse_polarizability
from crystalflow.cli.common import add_standard_flags
from crystalflow.errors import CrystalflowError
from crystalflow.pipeline.context import start_step

__all__ = ["main", "run_polarizability"]


def run_polarizability(
    path: Path,
    project: Path,
    override_cfg: Path | None = None,
    log_file: Path | None = None,
    log_console: bool = False,
) -> int:
    start_step("polarizability", project, override_cfg, log_file, log_console)
    try:
        record = parse_polarizability(path)
    except CrystalflowError as exc:
        logging.error("[polarizability] %s", exc)
        return 1
    print(f"Optical Permittivity   : {record.optical_permittivity:.6f}")
    print(f"DC Permittivity        : {record.dc_permittivity:.6f}")
    print(f"Optical Polarizability : {record.optical_polarizability:.6f}")
    print(f"Static Polarizability  : {record.static_polarizability:.6f}")
    logging.info(
        "[polarizability] %s: optical_perm=%.6f dc_perm=%.6f optical_pol=%.6f static_pol=%.6f",
        path,
        record.optical_permittivity,
        record.dc_permittivity,
        record.optical_polarizability,
        record.static_polarizability,
    )
    return 0


def main(argv: list[str] | None = None):  # pragma: no cover
    ap = argparse.ArgumentParser(prog="crystalflow polarizability", description="Summarise a CASTEP _Efield.castep file.")
    ap.add_argument("file", help="<structure>_Efield.castep file")
    add_standard_flags(ap)
    args = ap.parse_args(argv)
    rc = run_polarizability(
        Path(args.file),
        Path(args.project).resolve(),
        Path(args.config).resolve() if args.config else None,
        log_file=Path(args.log_file) if args.log_file else None,
        log_console=args.log_console,
    )
    raise SystemExit(rc)


if __name__ == "__main__":  # pragma: no cover
    main()
