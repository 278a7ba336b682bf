"""Reading and writing molecule geometries in (extended) XYZ format.

XYZ format:
- Line 1: Number of atoms
- Line 2: Comment/metadata (extended XYZ puts ``Lattice="..."`` here)
- Lines 3+: Element X Y Z
"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np

from crystalflow.domain.geometry.molecule import MoleculeGeometry
from crystalflow.errors import EmptyInputError, FormatError
from crystalflow.io.files import read_text_file

__all__ = ["read_xyz", "write_xyz", "lattice_comment"]


def read_xyz(filepath) -> MoleculeGeometry:
    """Read a single-frame XYZ file into a ``MoleculeGeometry`` named after the file stem."""
    filepath = Path(filepath)
    source = str(filepath)
    lines = read_text_file(filepath).splitlines()
    if not lines or not lines[0].strip():
        raise EmptyInputError(f"No atoms found in structure {filepath.stem}")

    try:
        n_atoms = int(lines[0].split()[0])
    except ValueError as exc:
        raise FormatError(f"invalid atom count {lines[0].strip()!r}", source, 1) from exc
    if n_atoms == 0:
        raise EmptyInputError(f"No atoms found in structure {filepath.stem}")

    labels: list[str] = []
    coordinates: list[list[float]] = []
    for lineno, line in enumerate(lines[2:], start=3):
        if len(labels) == n_atoms:
            break
        parts = line.split()
        if not parts:  # Skip empty lines within atom section
            continue
        if len(parts) < 4:
            raise FormatError(f"expected 'Element X Y Z', got {line.strip()!r}", source, lineno)
        try:
            coordinates.append([float(parts[1]), float(parts[2]), float(parts[3])])
        except ValueError as exc:
            raise FormatError(f"non-numeric coordinate in {line.strip()!r}", source, lineno) from exc
        labels.append(parts[0])

    if len(labels) != n_atoms:
        raise FormatError(f"header declares {n_atoms} atoms, found {len(labels)}", source)
    return MoleculeGeometry.from_arrays(labels, np.array(coordinates), name=filepath.stem)


def lattice_comment(dimensions: Sequence[float], extra: str = "") -> str:
    """Extended-XYZ comment for an orthogonal cell with edges a, b, c."""
    a, b, c = dimensions
    comment = f'Lattice="{a:.8f} 0.0 0.0 0.0 {b:.8f} 0.0 0.0 0.0 {c:.8f}" Properties=species:S:1:pos:R:3 pbc="T T T"'
    return f"{comment} {extra}".rstrip()


def write_xyz(filepath, molecule: MoleculeGeometry, comment: str = "") -> Path:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(f"{len(molecule)}\n")
        f.write(f"{comment}\n")
        for atom in molecule:
            p = atom.position
            f.write(f"{atom.label:2s} {p.x:15.8f} {p.y:15.8f} {p.z:15.8f}\n")
    return filepath
