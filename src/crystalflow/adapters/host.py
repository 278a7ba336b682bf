"""Narrow capability interfaces to the modeling host.

The geometry core never talks to a host application directly. Command code
hands an aligned molecule plus cell edges to a :class:`CellBuilder`, gets a
:class:`Document` back and calls ``save()`` on it. The only bundled builder
materialises the cell as an extended-XYZ file; other hosts plug in by
implementing the two protocols.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

from crystalflow.domain.geometry.molecule import CELL_ANGLES, IsolatedCell, MoleculeGeometry
from crystalflow.errors import DegenerateCellError
from crystalflow.io.xyz import lattice_comment, write_xyz

__all__ = [
    "Document",
    "CellBuilder",
    "XyzDocument",
    "ExtendedXyzCellBuilder",
    "save_cell",
]


@runtime_checkable
class Document(Protocol):
    def save(self) -> Path: ...


@runtime_checkable
class CellBuilder(Protocol):
    def build(
        self,
        atoms: MoleculeGeometry,
        dims: Sequence[float],
        angles: Sequence[float] = CELL_ANGLES,
    ) -> Document: ...


@dataclass(slots=True)
class XyzDocument:
    """An unsaved extended-XYZ cell; nothing touches disk before ``save()``."""
    path: Path
    molecule: MoleculeGeometry
    dimensions: tuple[float, float, float]

    def save(self) -> Path:
        comment = lattice_comment(self.dimensions, extra=f"name={self.molecule.name or self.path.stem}")
        write_xyz(self.path, self.molecule, comment=comment)
        logging.info("[host] wrote %s", self.path)
        return self.path


class ExtendedXyzCellBuilder:
    """Builds ``<out_dir>/<name><suffix>.xyz`` documents for orthogonal cells."""

    def __init__(self, out_dir, suffix: str = "-box"):
        self.out_dir = Path(out_dir)
        self.suffix = suffix

    def build(self, atoms: MoleculeGeometry, dims: Sequence[float], angles: Sequence[float] = CELL_ANGLES) -> XyzDocument:
        if tuple(float(a) for a in angles) != CELL_ANGLES:
            raise ValueError(f"Only orthogonal cells are supported, got angles={tuple(angles)}")
        dimensions = tuple(float(d) for d in dims)
        if len(dimensions) != 3 or any(d <= 0 for d in dimensions):
            raise DegenerateCellError(f"Cell edges must be three positive lengths, got {dimensions}")
        name = atoms.name or "molecule"
        return XyzDocument(self.out_dir / f"{name}{self.suffix}.xyz", atoms, dimensions)


def save_cell(builder: CellBuilder, cell: IsolatedCell) -> Path:
    return builder.build(cell.molecule, cell.dimensions, cell.angles).save()
