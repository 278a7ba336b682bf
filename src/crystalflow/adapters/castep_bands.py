"""CASTEP ``.bands`` parser and band-gap derivation.

A ``.bands`` file stores eigenvalues per k-point (not per band), in Hartree::

    Number of k-points        2
    Number of spin components 1
    Number of electrons      4.000
    Number of eigenvalues      8
    Fermi energy (in atomic units)     0.123456
    Unit cell vectors
       ...
    K-point    1  0.000 0.000 0.000  0.5
    Spin component    1
       -0.3675
       ...

Everything up to the first ``Spin component`` line is header. In the body,
``K-point`` lines are separators, each ``Spin component`` line starts the next
row and every other non-blank line carries one eigenvalue. Energies are
converted to eV on the way in.

Only closed-shell, non-spin-polarised runs are supported by the band-gap
derivation: the valence band is taken as ``electrons // 2 - 1``.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from crystalflow.adapters.results import BandGapSummary, BandStructureRecord, HARTREE_TO_EV
from crystalflow.errors import FormatError
from crystalflow.io.files import read_text_file

__all__ = [
    "POLARITY_THRESHOLD",
    "POLARITY_UNKNOWN",
    "parse_band_structure",
    "parse_band_structure_text",
    "summarize_band_gap",
    "summarize_band_gap_or_default",
    "classify_polarity",
]

POLARITY_THRESHOLD = 0.015  # eV
POLARITY_UNKNOWN = "unknown"

_INT_RE = re.compile(r"\d+")
_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eEdD][-+]?\d+)?")
_FERMI_RE = re.compile(r"Fermi energ(?:y|ies)")
_BODY_MARKER = "Spin component"
_KPOINT_MARKER = "K-point"


def _first_int(line: str, source: str, lineno: int) -> int:
    m = _INT_RE.search(line)
    if not m:
        raise FormatError(f"expected an integer in {line.strip()!r}", source, lineno)
    return int(m.group(0))


def _first_float(line: str, source: str, lineno: int) -> float:
    m = _FLOAT_RE.search(line)
    if not m:
        raise FormatError(f"expected a number in {line.strip()!r}", source, lineno)
    return float(m.group(0).replace("d", "e").replace("D", "e"))


def parse_band_structure(path) -> BandStructureRecord:
    """Read and parse a ``.bands`` file (see module docstring for the grammar)."""
    path = Path(path)
    return parse_band_structure_text(read_text_file(path), source=str(path))


def parse_band_structure_text(text: str, source: str = "<string>") -> BandStructureRecord:
    lines = text.splitlines()
    header: dict[str, int] = {}
    fermi_energy: float | None = None
    body_start: int | None = None

    for lineno, line in enumerate(lines, start=1):
        if "Number of k-points" in line:
            header["num_kpoints"] = _first_int(line, source, lineno)
        elif "Number of spin components" in line:
            header["num_spin_components"] = _first_int(line, source, lineno)
        elif "Number of electrons" in line:
            header["num_electrons"] = _first_int(line, source, lineno)
        elif "Number of eigenvalues" in line:
            header["num_eigenvalues"] = _first_int(line, source, lineno)
        elif _FERMI_RE.search(line):
            fermi_energy = _first_float(line, source, lineno) * HARTREE_TO_EV
        elif _BODY_MARKER in line:
            body_start = lineno
            break

    for key, label in (
        ("num_kpoints", "Number of k-points"),
        ("num_electrons", "Number of electrons"),
        ("num_eigenvalues", "Number of eigenvalues"),
    ):
        if key not in header:
            raise FormatError(f"missing header field '{label}'", source)
    if body_start is None:
        raise FormatError(f"no '{_BODY_MARKER}' marker found; file has no eigenvalue data", source)

    rows: List[List[float]] = [[]]
    for lineno, line in enumerate(lines[body_start:], start=body_start + 1):
        if _KPOINT_MARKER in line:
            continue
        if _BODY_MARKER in line:
            rows.append([])
            continue
        if not line.strip():
            continue
        rows[-1].append(_first_float(line, source, lineno) * HARTREE_TO_EV)

    record = BandStructureRecord(
        num_kpoints=header["num_kpoints"],
        num_electrons=header["num_electrons"],
        num_eigenvalues=header["num_eigenvalues"],
        fermi_energy=fermi_energy,
        eigenvalues=rows,
        num_spin_components=header.get("num_spin_components", 1),
        source=source,
    )
    _validate_rows(record)
    if record.num_spin_components > 1:
        logging.warning(
            "[bands] %s: %d spin components; gap values mix spin channels and are not meaningful",
            source,
            record.num_spin_components,
        )
    return record


def _validate_rows(record: BandStructureRecord) -> None:
    expected_rows = record.num_kpoints * max(record.num_spin_components, 1)
    if len(record.eigenvalues) != expected_rows:
        raise FormatError(
            f"expected {expected_rows} eigenvalue blocks, found {len(record.eigenvalues)}",
            record.source,
        )
    for idx, row in enumerate(record.eigenvalues):
        if len(row) != record.num_eigenvalues:
            raise FormatError(
                f"eigenvalue block {idx + 1} has {len(row)} values, expected {record.num_eigenvalues}",
                record.source,
            )


def classify_polarity(
    valence_dispersion: float,
    conduction_dispersion: float,
    threshold: float = POLARITY_THRESHOLD,
) -> str:
    """p-type if the valence band is more disperse, n-type if the conduction band is.

    Differences within +/- threshold (inclusive) are ambipolar.
    """
    delta = valence_dispersion - conduction_dispersion
    if delta > threshold:
        return "p-type"
    if delta < -threshold:
        return "n-type"
    return "ambipolar"


def summarize_band_gap(record: BandStructureRecord, threshold: float = POLARITY_THRESHOLD) -> BandGapSummary:
    """Direct/indirect gaps, band dispersions and polarity from the frontier bands."""
    valence_index = record.num_electrons // 2 - 1
    conduction_index = record.num_electrons // 2
    if valence_index < 0:
        raise FormatError(f"cannot locate a valence band for {record.num_electrons} electrons", record.source)

    rows = record.eigenvalues[: record.num_kpoints]
    if not rows:
        raise FormatError("no k-point eigenvalues to derive a band gap from", record.source)
    for idx, row in enumerate(rows):
        if conduction_index >= len(row):
            raise FormatError(
                f"k-point {idx + 1} has no eigenvalue at band index {conduction_index}",
                record.source,
            )

    valence = [row[valence_index] for row in rows]
    conduction = [row[conduction_index] for row in rows]

    direct_gap = min(c - v for v, c in zip(valence, conduction))
    indirect_gap = min(conduction) - max(valence)
    valence_dispersion = abs(max(valence) - min(valence))
    conduction_dispersion = abs(max(conduction) - min(conduction))

    return BandGapSummary(
        direct_gap=direct_gap,
        indirect_gap=indirect_gap,
        valence_dispersion=valence_dispersion,
        conduction_dispersion=conduction_dispersion,
        polarity=classify_polarity(valence_dispersion, conduction_dispersion, threshold),
    )


def summarize_band_gap_or_default(
    record: BandStructureRecord,
    threshold: float = POLARITY_THRESHOLD,
    default: float = 0.0,
) -> BandGapSummary:
    """Like :func:`summarize_band_gap` but degrades to ``default`` values.

    Metallic / zero-gap or truncated runs should not abort a results table;
    the failure is logged and all four scalars become ``default`` with polarity
    ``"unknown"``.
    """
    try:
        return summarize_band_gap(record, threshold)
    except (FormatError, ValueError, IndexError) as exc:
        logging.warning("[bands] %s: band gap unavailable (%s); using %s", record.source, exc, default)
        return BandGapSummary(default, default, default, default, POLARITY_UNKNOWN)
