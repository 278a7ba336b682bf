"""Molecule geometry normalisation (molecule-in-box construction).

Public API:
	* compute_centroid / translate
	* compute_principal_axes / align_to_axes
	* compute_bounding_box / build_isolated_cell

The functions never mutate their input; each returns a new
``MoleculeGeometry``. Empty input raises ``EmptyInputError``.
"""
from .vector import Vector3  # noqa: F401
from .molecule import (  # noqa: F401
	Atom,
	BoundingBox,
	IsolatedCell,
	MoleculeGeometry,
	PrincipalAxes,
	CELL_ANGLES,
)
from .normalize import (  # noqa: F401
	AlignmentStrategy,
	PaddingConvention,
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
