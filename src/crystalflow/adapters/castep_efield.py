"""Parser for the dielectric section of a CASTEP ``_Efield.castep`` file.

Example of the two blocks consumed here::

        Optical Permittivity (f->infinity)             DC Permittivity (f=0)
        ----------------------------------             ---------------------
         2.45203     0.00000     0.21387         2.68082     0.00000     0.22722
         0.00000     2.98176     0.00000         0.00000     3.06369     0.00000
         0.21387     0.00000     3.86665         0.22722     0.00000     3.91791
    ...
                                   Polarisabilities (A**3)
               Optical (f->infinity)                       Static  (f=0)
               ---------------------                       -------------
        39.57313     0.00000     5.82885        45.80851     0.00000     6.19260
         0.00000    54.01031     0.00000         0.00000    56.24304     0.00000
         5.82885     0.00000    78.12683         6.19260     0.00000    79.52382

Each block holds two 3x3 tensors side by side; each is reduced to its
isotropic value (XX + YY + ZZ) / 3.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import List

from crystalflow.io.files import read_text_file
from crystalflow.adapters.results import PolarizabilityRecord
from crystalflow.errors import FormatError

__all__ = [
    "parse_polarizability",
    "parse_polarizability_text",
    "isotropic_pair",
]

_PERMITTIVITY_LABEL = re.compile(r"Optical Permittivity \(f->infinity\)|DC Permittivity \(f=0\)")
_POLARISABILITY_LABEL = re.compile(r"Optical\s+\(f->infinity\)|Static\s+\(f=0\)")


def isotropic_pair(rows: List[List[float]]) -> tuple[float, float]:
    """Trace/3 of the left (columns 0-2) and right (columns 3-5) tensors."""
    left = (rows[0][0] + rows[1][1] + rows[2][2]) / 3
    right = (rows[0][3] + rows[1][4] + rows[2][5]) / 3
    return left, right


def _read_block(lines: List[str], start: int, label: re.Pattern, what: str, source: str):
    for idx in range(start, len(lines)):
        if label.search(lines[idx]):
            break
    else:
        raise FormatError(f"{what} block not found", source)

    # label line, dashed separator, then three tensor rows
    data = lines[idx + 2: idx + 5]
    if len(data) < 3:
        raise FormatError(f"{what} block has fewer than 3 tensor rows", source, idx + 1)

    rows: List[List[float]] = []
    for offset, line in enumerate(data):
        lineno = idx + 3 + offset
        tokens = line.split()
        if len(tokens) < 6:
            raise FormatError(f"{what} row has {len(tokens)} values, expected 6", source, lineno)
        try:
            rows.append([float(tok) for tok in tokens[:6]])
        except ValueError as exc:
            raise FormatError(f"non-numeric {what} row: {exc}", source, lineno) from exc
    return isotropic_pair(rows), idx + 5


def parse_polarizability_text(text: str, source: str = "<string>") -> PolarizabilityRecord:
    lines = text.splitlines()
    (optical_perm, dc_perm), nxt = _read_block(lines, 0, _PERMITTIVITY_LABEL, "permittivity", source)
    (optical_pol, static_pol), _ = _read_block(lines, nxt, _POLARISABILITY_LABEL, "polarisability", source)
    return PolarizabilityRecord(
        optical_permittivity=optical_perm,
        dc_permittivity=dc_perm,
        optical_polarizability=optical_pol,
        static_polarizability=static_pol,
        source=source,
    )


def parse_polarizability(path) -> PolarizabilityRecord:
    path = Path(path)
    return parse_polarizability_text(read_text_file(path), source=str(path))
