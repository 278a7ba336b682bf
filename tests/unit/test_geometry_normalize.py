import itertools
import math

import numpy as np
import pytest

from crystalflow.domain.geometry import (
    AlignmentStrategy,
    Atom,
    BoundingBox,
    MoleculeGeometry,
    PaddingConvention,
    Vector3,
    acos_real,
    align_to_axes,
    build_isolated_cell,
    cell_dimensions,
    compute_bounding_box,
    compute_centroid,
    compute_principal_axes,
    padding_for_neighbor_distance,
    translate,
)
from crystalflow.domain.geometry.normalize import rotation_matrix
from crystalflow.domain.geometry.vector import X_AXIS, Y_AXIS, Z_AXIS
from crystalflow.domain.geometry.molecule import PrincipalAxes
from crystalflow.errors import DegenerateCellError, EmptyInputError


def test_centroid_then_translate_lands_on_origin(tilted_molecule):
    centered = translate(tilted_molecule, -compute_centroid(tilted_molecule))
    assert compute_centroid(centered).is_close(Vector3(0.0, 0.0, 0.0), tol=1e-9)
    assert centered.labels == tilted_molecule.labels
    assert centered.name == "tilted"


def test_translate_does_not_mutate_input(aligned_molecule):
    before = aligned_molecule.coordinates
    translate(aligned_molecule, Vector3(1.0, 2.0, 3.0))
    np.testing.assert_array_equal(aligned_molecule.coordinates, before)


def test_bounding_box_contains_atoms_and_ignores_order(tilted_molecule):
    box = compute_bounding_box(tilted_molecule)
    for atom in tilted_molecule:
        assert box.contains(atom.position)
    atoms = list(tilted_molecule.atoms)
    for perm in itertools.islice(itertools.permutations(atoms), 0, 50, 7):
        assert compute_bounding_box(list(perm)) == box


def test_principal_axes_are_orthonormal_with_sign_convention(tilted_molecule):
    axes = compute_principal_axes(tilted_molecule)
    assert math.isclose(axes.axis1.magnitude(), 1.0, abs_tol=1e-9)
    assert math.isclose(axes.axis2.magnitude(), 1.0, abs_tol=1e-9)
    assert abs(axes.axis1.dot(axes.axis2)) < 1e-9
    assert axes.axis1.x >= 0
    assert axes.axis2.y >= 0


def test_principal_axes_of_aligned_molecule_are_x_and_y(aligned_molecule):
    axes = compute_principal_axes(aligned_molecule)
    assert axes.axis1.is_close(X_AXIS, tol=1e-9)
    assert axes.axis2.is_close(Y_AXIS, tol=1e-9)


def test_single_atom_axes_default_to_coordinate_axes():
    axes = compute_principal_axes([Atom("Na", Vector3(1.0, 2.0, 3.0))])
    assert axes.axis1 == X_AXIS
    assert axes.axis2 == Y_AXIS
    assert axes.centroid == Vector3(1.0, 2.0, 3.0)


def test_rotation_matrix_right_hand_and_degenerate_axes():
    rot = rotation_matrix(Z_AXIS, 90.0)
    np.testing.assert_allclose(rot @ X_AXIS.to_array(), [0.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(rotation_matrix(Vector3(0.0, 0.0, 0.0), 0.0), np.eye(3))
    flip = rotation_matrix(Vector3(0.0, 0.0, 0.0), 180.0, fallback_axis=Z_AXIS)
    np.testing.assert_allclose(flip @ X_AXIS.to_array(), [-1.0, 0.0, 0.0], atol=1e-12)


def test_acos_real_clamps_rounding_noise():
    assert acos_real(1.0000000002) == 0.0
    assert math.isclose(acos_real(-1.0000000002), math.pi)


def test_exact_alignment_maps_principal_axes_onto_x_and_y(tilted_molecule):
    centered = translate(tilted_molecule, -compute_centroid(tilted_molecule))
    axes = compute_principal_axes(centered)
    aligned = align_to_axes(centered, axes, AlignmentStrategy.EXACT)
    after = compute_principal_axes(aligned)
    np.testing.assert_allclose(after.axis1.to_array(), [1.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(after.axis2.to_array(), [0.0, 1.0, 0.0], atol=1e-6)


def _stick_molecule(coords):
    return MoleculeGeometry.from_arrays(["C", "N", "O"], np.array(coords, dtype=float), name="stick")


def test_reference_alignment_reuses_original_second_axis():
    # stage 1: 90 deg about -Z; stage 2: 90 deg about a2 x Y = Z with the unrotated a2 = X
    mol = _stick_molecule([[0.0, 2.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.5]])
    axes = PrincipalAxes(Y_AXIS, X_AXIS, Vector3(0.0, 0.0, 0.0))
    aligned = align_to_axes(mol, axes)
    np.testing.assert_allclose(
        aligned.coordinates,
        [[0.0, 2.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.5]],
        atol=1e-9,
    )


def test_exact_alignment_differs_from_reference_when_axis2_moves():
    # stage 1 sends a2 = X to -Y, so stage 2 is a 180 deg turn about X
    mol = _stick_molecule([[0.0, 2.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.5]])
    axes = PrincipalAxes(Y_AXIS, X_AXIS, Vector3(0.0, 0.0, 0.0))
    aligned = align_to_axes(mol, axes, AlignmentStrategy.EXACT)
    np.testing.assert_allclose(
        aligned.coordinates,
        [[2.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, -0.5]],
        atol=1e-9,
    )


@pytest.mark.parametrize("strategy", list(AlignmentStrategy))
def test_both_strategies_agree_when_stage_one_keeps_axis2(strategy):
    # axis1 = Y, axis2 = Z: stage 1 leaves Z alone, stage 2 is -90 deg about X
    mol = _stick_molecule([[0.0, 2.0, 0.0], [0.0, 0.0, 1.0], [0.5, 0.0, 0.0]])
    axes = PrincipalAxes(Y_AXIS, Z_AXIS, Vector3(0.0, 0.0, 0.0))
    aligned = align_to_axes(mol, axes, strategy)
    np.testing.assert_allclose(
        aligned.coordinates,
        [[2.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 0.5]],
        atol=1e-9,
    )


def test_alignment_preserves_interatomic_distances(tilted_molecule):
    axes = compute_principal_axes(tilted_molecule)
    for strategy in ("reference", "exact"):
        aligned = align_to_axes(tilted_molecule, axes, strategy)
        before = tilted_molecule.coordinates
        after = aligned.coordinates
        np.testing.assert_allclose(
            np.linalg.norm(after[:, None] - after[None, :], axis=-1),
            np.linalg.norm(before[:, None] - before[None, :], axis=-1),
            atol=1e-9,
        )


def test_cell_dimensions_for_both_conventions():
    box = BoundingBox(0.0, 6.0, 0.0, 3.0, 0.0, 1.0)
    assert cell_dimensions(box, 5.0, PaddingConvention.PER_SIDE) == pytest.approx((16.0, 13.0, 11.0))
    assert cell_dimensions(box, 5.0, "total") == pytest.approx((11.0, 8.0, 6.0))
    with pytest.raises(ValueError):
        cell_dimensions(box, -0.1)


def test_zero_padding_on_flat_box_is_degenerate():
    flat = BoundingBox(-1.0, 1.0, -0.5, 0.5, 0.0, 0.0)
    with pytest.raises(DegenerateCellError, match="positive"):
        cell_dimensions(flat, 0.0)
    assert cell_dimensions(flat, 0.5, "total") == pytest.approx((2.5, 1.5, 0.5))


def test_neighbor_distance_gives_same_cell_in_either_convention():
    box = BoundingBox(-3.0, 3.0, -1.5, 1.5, -0.5, 0.5)
    per_side = cell_dimensions(box, padding_for_neighbor_distance(10.0, "per_side"), "per_side")
    total = cell_dimensions(box, padding_for_neighbor_distance(10.0, "total"), "total")
    assert per_side == pytest.approx(total)
    assert per_side == pytest.approx((16.0, 13.0, 11.0))


def test_build_isolated_cell_on_aligned_molecule(aligned_molecule):
    cell = build_isolated_cell(aligned_molecule, padding=5.0)
    assert cell.dimensions == pytest.approx((16.0, 13.0, 11.0))
    assert cell.angles == (90.0, 90.0, 90.0)
    assert compute_centroid(cell.molecule).is_close(Vector3(8.0, 6.5, 5.5), tol=1e-9)


def test_build_isolated_cell_is_idempotent(aligned_molecule):
    first = build_isolated_cell(aligned_molecule, padding=5.0)
    second = build_isolated_cell(first.molecule, padding=5.0)
    assert second.dimensions == pytest.approx(first.dimensions, abs=1e-6)
    np.testing.assert_allclose(second.molecule.coordinates, first.molecule.coordinates, atol=1e-6)


def test_build_isolated_cell_places_centroid_at_cell_midpoint(tilted_molecule):
    for convention in PaddingConvention:
        cell = build_isolated_cell(tilted_molecule, padding=4.0, convention=convention)
        mid = Vector3(*(d / 2.0 for d in cell.dimensions))
        assert compute_centroid(cell.molecule).is_close(mid, tol=1e-9)
        extents = compute_bounding_box(cell.molecule).extents
        pad = 8.0 if convention is PaddingConvention.PER_SIDE else 4.0
        assert cell.dimensions == pytest.approx(tuple(e + pad for e in extents))


def test_single_atom_cell_is_padding_cube():
    cell = build_isolated_cell([Atom("Ar", Vector3(4.0, -1.0, 2.0))], padding=3.0)
    assert cell.dimensions == pytest.approx((6.0, 6.0, 6.0))
    assert cell.molecule.atoms[0].position.is_close(Vector3(3.0, 3.0, 3.0))


@pytest.mark.parametrize(
    "op",
    [
        compute_centroid,
        compute_principal_axes,
        compute_bounding_box,
        lambda atoms: translate(atoms, Vector3(1.0, 0.0, 0.0)),
        lambda atoms: build_isolated_cell(atoms, padding=1.0),
    ],
)
def test_empty_input_raises(op):
    with pytest.raises(EmptyInputError):
        op([])


def test_empty_geometry_cannot_be_constructed():
    with pytest.raises(EmptyInputError, match="benzene"):
        MoleculeGeometry((), name="benzene")
