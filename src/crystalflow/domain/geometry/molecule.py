"""Value types for molecular geometries, bounding boxes and principal axes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from crystalflow.domain.geometry.vector import Vector3
from crystalflow.errors import EmptyInputError

__all__ = [
    "Atom",
    "MoleculeGeometry",
    "PrincipalAxes",
    "BoundingBox",
    "IsolatedCell",
    "CELL_ANGLES",
]

# Cells built here are always minimum rectangular boxes.
CELL_ANGLES: tuple[float, float, float] = (90.0, 90.0, 90.0)


@dataclass(frozen=True, slots=True)
class Atom:
    label: str
    position: Vector3


@dataclass(frozen=True)
class MoleculeGeometry:
    """An ordered, non-empty set of atoms forming one rigid fragment."""

    atoms: tuple[Atom, ...]
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.atoms, tuple):
            object.__setattr__(self, "atoms", tuple(self.atoms))
        if not self.atoms:
            where = f" {self.name}" if self.name else ""
            raise EmptyInputError(f"No atoms found in structure{where}")

    @classmethod
    def from_arrays(cls, labels: Sequence[str], coordinates, name: str = "") -> "MoleculeGeometry":
        coords = np.asarray(coordinates, dtype=float).reshape(-1, 3)
        if len(labels) != len(coords):
            raise ValueError(
                f"Label/coordinate count mismatch: labels={len(labels)} coordinates={len(coords)}"
            )
        return cls(
            tuple(Atom(str(label), Vector3.from_iterable(row)) for label, row in zip(labels, coords)),
            name=name,
        )

    def __len__(self) -> int:
        return len(self.atoms)

    def __iter__(self):
        return iter(self.atoms)

    @property
    def labels(self) -> list[str]:
        return [a.label for a in self.atoms]

    @property
    def coordinates(self) -> np.ndarray:
        """Positions as an (N, 3) float array (a fresh copy)."""
        return np.array([[a.position.x, a.position.y, a.position.z] for a in self.atoms], dtype=float)

    def with_positions(self, positions: Iterable) -> "MoleculeGeometry":
        """Same labels and order, new positions."""
        new_atoms = []
        for atom, pos in zip(self.atoms, positions, strict=True):
            if not isinstance(pos, Vector3):
                pos = Vector3.from_iterable(pos)
            new_atoms.append(Atom(atom.label, pos))
        return MoleculeGeometry(tuple(new_atoms), name=self.name)


@dataclass(frozen=True, slots=True)
class PrincipalAxes:
    axis1: Vector3
    axis2: Vector3
    centroid: Vector3


@dataclass(frozen=True, slots=True)
class BoundingBox:
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    zmin: float
    zmax: float

    @property
    def extents(self) -> tuple[float, float, float]:
        return (self.xmax - self.xmin, self.ymax - self.ymin, self.zmax - self.zmin)

    def contains(self, point: Vector3, tol: float = 0.0) -> bool:
        return (
            self.xmin - tol <= point.x <= self.xmax + tol
            and self.ymin - tol <= point.y <= self.ymax + tol
            and self.zmin - tol <= point.z <= self.zmax + tol
        )


@dataclass(frozen=True, slots=True)
class IsolatedCell:
    """A molecule placed in a padded orthogonal cell."""

    molecule: MoleculeGeometry
    dimensions: tuple[float, float, float]
    angles: tuple[float, float, float] = CELL_ANGLES
