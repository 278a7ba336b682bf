"""Pressure-series plan: the table a pressure-series calculation works through.

Row 0 is the initial (already optimized) structure. When the initial
pressure is an experimental value the series restarts at that pressure,
otherwise it continues from ``initial + delta``; rows step by ``delta`` up
to and including ``final`` and are marked as not yet optimized. Each planned
structure is named ``<name>_<II>_<DD>`` (integer GPa, first two decimals).
"""
from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path

import pandas as pd

from crystalflow.cli.common import add_standard_flags
from crystalflow.pipeline.context import start_step

__all__ = ["PRESSURE_COLUMNS", "pressure_structure_name", "plan_pressure_series", "run_pressure_series", "main"]

PRESSURE_COLUMNS = ["Structure", "Pressure (GPa)", "Optimized?"]

# absorbs accumulated float error when stepping towards the final pressure
_STEP_EPS = 1e-9


def pressure_structure_name(name: str, pressure: float) -> str:
    whole = int(pressure)
    hundredths = int(round((pressure - whole) * 100, 6))
    return "%s_%02i_%02i" % (name, whole, hundredths)


def plan_pressure_series(
    name: str,
    initial: float,
    final: float,
    delta: float,
    experimental: bool = False,
) -> pd.DataFrame:
    if not delta > 0 or not math.isfinite(delta):
        raise ValueError(f"Pressure step must be a positive number, got {delta}")
    first_label = f"Experimental - {initial:g}" if experimental else initial
    rows = [{"Structure": name, "Pressure (GPa)": first_label, "Optimized?": "Yes"}]
    k = 0 if experimental else 1
    while True:
        p = round(initial + k * delta, 10)
        if p > final + _STEP_EPS:
            break
        rows.append({"Structure": pressure_structure_name(name, p), "Pressure (GPa)": p, "Optimized?": "No"})
        k += 1
    logging.info("[pressure] %s: %d planned pressure(s) from %s to %s GPa", name, len(rows) - 1, initial, final)
    return pd.DataFrame(rows, columns=PRESSURE_COLUMNS)


def run_pressure_series(
    name: str,
    initial: float,
    final: float,
    delta: float,
    out_csv: Path,
    project: Path,
    override_cfg: Path | None = None,
    experimental: bool = False,
    log_file: Path | None = None,
    log_console: bool = False,
) -> int:
    start_step("pressure-series", project, override_cfg, log_file, log_console)
    try:
        df = plan_pressure_series(name, initial, final, delta, experimental)
    except ValueError as exc:
        logging.error("[pressure][abort] %s", exc)
        return 2
    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_csv, index=False)
    summary = f"[pressure] Wrote {len(df)} row(s) to {out_csv}"
    print(summary)
    logging.info(summary)
    return 0


def main(argv: list[str] | None = None):  # pragma: no cover
    ap = argparse.ArgumentParser(prog="crystalflow pressure-series", description="Write a pressure-series plan table.")
    ap.add_argument("--name", required=True, help="Initial structure name")
    ap.add_argument("--initial", type=float, required=True, help="Initial pressure (GPa)")
    ap.add_argument("--final", type=float, required=True, help="Final pressure (GPa), inclusive")
    ap.add_argument("--delta", type=float, required=True, help="Pressure step (GPa)")
    ap.add_argument("--experimental", action="store_true", help="Initial structure is experimental; restart the series at --initial")
    ap.add_argument("--out", required=True, help="Output CSV path")
    add_standard_flags(ap)
    args = ap.parse_args(argv)
    rc = run_pressure_series(
        args.name,
        args.initial,
        args.final,
        args.delta,
        Path(args.out),
        Path(args.project).resolve(),
        Path(args.config).resolve() if args.config else None,
        experimental=args.experimental,
        log_file=Path(args.log_file) if args.log_file else None,
        log_console=args.log_console,
    )
    raise SystemExit(rc)


if __name__ == "__main__":  # pragma: no cover
    main()
