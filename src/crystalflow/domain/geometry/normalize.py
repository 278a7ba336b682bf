"""Molecule normalisation: centroid, principal axes, alignment, bounding box.

The procedure mirrors the molecule-in-a-box recipe used for isolated-molecule
CASTEP runs:

1. translate the unweighted centroid to the origin;
2. rotate so the longest principal axis lies on X and the second on Y;
3. take the minimum rectangular bounding box of the atom centres;
4. pad the box into an orthogonal cell (90/90/90);
5. shift the molecule so its centroid sits at the cell midpoint.

Two padding conventions exist in the wild (``per_side`` adds the padding on
both faces, ``total`` adds it once per axis) and both are kept as named
variants. Alignment defaults to the historical two-stage rotation that reuses
the *pre-rotation* second axis; ``AlignmentStrategy.EXACT`` feeds the second
stage with the axis image after the first rotation instead.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Sequence, Union

import numpy as np

from crystalflow.domain.geometry.molecule import (
    Atom,
    BoundingBox,
    IsolatedCell,
    MoleculeGeometry,
    PrincipalAxes,
)
from crystalflow.domain.geometry.vector import X_AXIS, Y_AXIS, Z_AXIS, Vector3
from crystalflow.errors import DegenerateCellError

__all__ = [
    "PaddingConvention",
    "AlignmentStrategy",
    "acos_real",
    "rotation_matrix",
    "compute_centroid",
    "translate",
    "compute_principal_axes",
    "align_to_axes",
    "compute_bounding_box",
    "cell_dimensions",
    "padding_for_neighbor_distance",
    "build_isolated_cell",
]

AtomsLike = Union[MoleculeGeometry, Sequence[Atom]]

_AXIS_EPS = 1e-12
_ANGLE_EPS = 1e-9
_EDGE_EPS = 1e-6  # Angstrom


class PaddingConvention(str, Enum):
    PER_SIDE = "per_side"  # edge = extent + 2 * padding
    TOTAL = "total"  # edge = extent + padding


class AlignmentStrategy(str, Enum):
    REFERENCE = "reference"
    EXACT = "exact"


def _as_geometry(atoms: AtomsLike) -> MoleculeGeometry:
    if isinstance(atoms, MoleculeGeometry):
        return atoms
    # raises EmptyInputError for an empty sequence
    return MoleculeGeometry(tuple(atoms))


def acos_real(value: float) -> float:
    """arccos with the argument clamped to [-1, 1] (radians)."""
    return math.acos(max(-1.0, min(1.0, float(value))))


def rotation_matrix(axis: Vector3, angle_deg: float, fallback_axis: Vector3 = Z_AXIS) -> np.ndarray:
    """Right-handed rotation by ``angle_deg`` about ``axis`` (Rodrigues).

    A zero-length axis is only meaningful for 0 or 180 degrees: the former is
    the identity, the latter rotates about ``fallback_axis``.
    """
    if axis.magnitude() < _AXIS_EPS:
        if abs(angle_deg) < _ANGLE_EPS:
            return np.eye(3)
        axis = fallback_axis
    kx, ky, kz = axis.normalized()
    k = np.array([[0.0, -kz, ky], [kz, 0.0, -kx], [-ky, kx, 0.0]])
    theta = math.radians(angle_deg)
    return np.eye(3) + math.sin(theta) * k + (1.0 - math.cos(theta)) * (k @ k)


def _rotate_about_point(coords: np.ndarray, rot: np.ndarray, point: Vector3) -> np.ndarray:
    pivot = point.to_array()
    return (coords - pivot) @ rot.T + pivot


def compute_centroid(atoms: AtomsLike) -> Vector3:
    """Geometric (unweighted) midpoint of the atom positions."""
    geom = _as_geometry(atoms)
    return Vector3.from_iterable(geom.coordinates.mean(axis=0))


def translate(atoms: AtomsLike, offset: Vector3) -> MoleculeGeometry:
    geom = _as_geometry(atoms)
    return geom.with_positions(geom.coordinates + offset.to_array())


def _canonical_sign(vec: np.ndarray, preferred: int) -> np.ndarray:
    # Eigenvectors are defined up to sign; pin it so results are reproducible.
    ref = vec[preferred]
    if abs(ref) < _AXIS_EPS:
        nonzero = [c for c in vec if abs(c) >= _AXIS_EPS]
        ref = nonzero[0] if nonzero else 1.0
    return -vec if ref < 0 else vec


def compute_principal_axes(atoms: AtomsLike) -> PrincipalAxes:
    """Two dominant orthonormal directions of the (unweighted) point cloud.

    Uses the eigenvectors of the gyration tensor: the largest eigenvalue is
    the direction of greatest spatial extent (axis1), the next one axis2.
    axis1 is oriented with x >= 0 and axis2 with y >= 0.
    """
    geom = _as_geometry(atoms)
    coords = geom.coordinates
    centroid = coords.mean(axis=0)
    if len(coords) == 1:
        return PrincipalAxes(X_AXIS, Y_AXIS, Vector3.from_iterable(centroid))

    centered = coords - centroid
    gyration = centered.T @ centered / len(coords)
    eigvals, eigvecs = np.linalg.eigh(gyration)
    order = np.argsort(eigvals)[::-1]
    axis1 = _canonical_sign(eigvecs[:, order[0]], preferred=0)
    axis2 = _canonical_sign(eigvecs[:, order[1]], preferred=1)
    logging.debug("[geometry] principal moments=%s", np.round(eigvals[order], 6).tolist())
    return PrincipalAxes(
        axis1=Vector3.from_iterable(axis1),
        axis2=Vector3.from_iterable(axis2),
        centroid=Vector3.from_iterable(centroid),
    )


def align_to_axes(
    atoms: AtomsLike,
    axes: PrincipalAxes,
    strategy: AlignmentStrategy | str = AlignmentStrategy.REFERENCE,
) -> MoleculeGeometry:
    """Rotate the molecule so axis1 -> X and axis2 -> Y, pivoting on the centroid.

    Stage 1 rotates about axis1 x X by arccos(axis1.x); stage 2 rotates about
    a2 x Y by arccos(a2.y). With ``REFERENCE`` a2 is the original axis2, with
    ``EXACT`` it is axis2 after the stage-1 rotation.
    """
    strategy = AlignmentStrategy(strategy)
    geom = _as_geometry(atoms)
    coords = geom.coordinates

    a1 = axes.axis1.normalized()
    angle1 = math.degrees(acos_real(a1.x))
    rot1 = rotation_matrix(Vector3(0.0, a1.z, -a1.y), angle1, fallback_axis=Z_AXIS)
    coords = _rotate_about_point(coords, rot1, axes.centroid)

    a2 = axes.axis2.normalized()
    if strategy is AlignmentStrategy.EXACT:
        a2 = Vector3.from_iterable(rot1 @ a2.to_array())
    angle2 = math.degrees(acos_real(a2.y))
    rot2 = rotation_matrix(Vector3(-a2.z, 0.0, a2.x), angle2, fallback_axis=X_AXIS)
    coords = _rotate_about_point(coords, rot2, axes.centroid)

    logging.debug("[geometry] align strategy=%s angle1=%.4f angle2=%.4f", strategy.value, angle1, angle2)
    return geom.with_positions(coords)


def compute_bounding_box(atoms: AtomsLike) -> BoundingBox:
    """Minimum rectangular (never parallelepiped) box around the atom centres."""
    coords = _as_geometry(atoms).coordinates
    lo = coords.min(axis=0)
    hi = coords.max(axis=0)
    return BoundingBox(
        xmin=float(lo[0]), xmax=float(hi[0]),
        ymin=float(lo[1]), ymax=float(hi[1]),
        zmin=float(lo[2]), zmax=float(hi[2]),
    )


def cell_dimensions(
    box: BoundingBox,
    padding: float,
    convention: PaddingConvention | str = PaddingConvention.PER_SIDE,
) -> tuple[float, float, float]:
    convention = PaddingConvention(convention)
    if padding < 0:
        raise ValueError(f"Padding must be non-negative, got {padding}")
    pad = 2.0 * padding if convention is PaddingConvention.PER_SIDE else padding
    dims = tuple(extent + pad for extent in box.extents)
    if any(d < _EDGE_EPS for d in dims):
        raise DegenerateCellError(
            f"Cell edges must be positive, got {dims} (padding={padding}, convention={convention.value})"
        )
    return dims


def padding_for_neighbor_distance(
    distance: float,
    convention: PaddingConvention | str = PaddingConvention.PER_SIDE,
) -> float:
    """Padding that leaves ``distance`` between periodic images of the molecule."""
    convention = PaddingConvention(convention)
    if distance < 0:
        raise ValueError(f"Nearest-neighbour distance must be non-negative, got {distance}")
    return distance / 2.0 if convention is PaddingConvention.PER_SIDE else distance


def build_isolated_cell(
    atoms: AtomsLike,
    padding: float,
    convention: PaddingConvention | str = PaddingConvention.PER_SIDE,
    strategy: AlignmentStrategy | str = AlignmentStrategy.REFERENCE,
) -> IsolatedCell:
    """Center, align and box a molecule; return it placed in a padded cell."""
    geom = _as_geometry(atoms)
    centered = translate(geom, -compute_centroid(geom))
    axes = compute_principal_axes(centered)
    aligned = align_to_axes(centered, axes, strategy)
    box = compute_bounding_box(aligned)
    width, height, depth = cell_dimensions(box, padding, convention)

    placed = translate(aligned, Vector3(width / 2.0, height / 2.0, depth / 2.0))
    logging.info(
        "[box] %s: atoms=%d extents=(%.4f, %.4f, %.4f) cell=(%.4f, %.4f, %.4f) convention=%s",
        geom.name or "<molecule>",
        len(geom),
        *box.extents,
        width,
        height,
        depth,
        PaddingConvention(convention).value,
    )
    return IsolatedCell(molecule=placed, dimensions=(width, height, depth))
