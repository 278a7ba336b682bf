import numpy as np
import pytest

from crystalflow.adapters.host import CellBuilder, Document, ExtendedXyzCellBuilder, XyzDocument, save_cell
from crystalflow.domain.geometry import build_isolated_cell
from crystalflow.errors import DegenerateCellError, EmptyInputError, FormatError, ParseError
from crystalflow.io.xyz import lattice_comment, read_xyz, write_xyz
from tests.helpers.structures import write_xyz_text


def test_read_xyz_labels_coordinates_and_name(tmp_path):
    path = write_xyz_text(tmp_path / "water.xyz", ["O", "H", "H"], [(0, 0, 0), (0.96, 0, 0), (-0.24, 0.93, 0)])
    mol = read_xyz(path)
    assert mol.name == "water"
    assert mol.labels == ["O", "H", "H"]
    np.testing.assert_allclose(mol.coordinates[2], [-0.24, 0.93, 0.0])


def test_read_xyz_errors(tmp_path):
    with pytest.raises(ParseError):
        read_xyz(tmp_path / "missing.xyz")
    empty = tmp_path / "empty.xyz"
    empty.write_text("0\nnothing here\n")
    with pytest.raises(EmptyInputError):
        read_xyz(empty)
    short = tmp_path / "short.xyz"
    short.write_text("3\ncomment\nC 0 0 0\nC 1 0 0\n")
    with pytest.raises(FormatError, match="declares 3 atoms, found 2"):
        read_xyz(short)
    bad = tmp_path / "bad.xyz"
    bad.write_text("1\ncomment\nC 0 zero 0\n")
    with pytest.raises(FormatError, match="bad.xyz:3"):
        read_xyz(bad)


def test_lattice_comment_is_orthogonal():
    comment = lattice_comment((10.0, 12.5, 8.0), extra="name=x")
    assert comment.startswith('Lattice="10.00000000 0.0 0.0 0.0 12.50000000 0.0 0.0 0.0 8.00000000"')
    assert comment.endswith("name=x")


def test_builder_returns_unsaved_document(tmp_path, aligned_molecule):
    builder = ExtendedXyzCellBuilder(tmp_path / "out")
    assert isinstance(builder, CellBuilder)
    cell = build_isolated_cell(aligned_molecule, padding=2.0)
    doc = builder.build(cell.molecule, cell.dimensions, cell.angles)
    assert isinstance(doc, XyzDocument)
    assert isinstance(doc, Document)
    assert not doc.path.exists()

    saved = doc.save()
    assert saved == tmp_path / "out" / "aligned-box.xyz"
    lines = saved.read_text().splitlines()
    assert lines[0] == "6"
    assert lines[1].startswith('Lattice="10.00000000 0.0 0.0 0.0 7.00000000 0.0 0.0 0.0 5.00000000"')
    back = read_xyz(saved)
    np.testing.assert_allclose(back.coordinates, cell.molecule.coordinates, atol=1e-7)


def test_builder_rejects_non_orthogonal_or_empty_cells(tmp_path, aligned_molecule):
    builder = ExtendedXyzCellBuilder(tmp_path)
    with pytest.raises(ValueError, match="orthogonal"):
        builder.build(aligned_molecule, (5.0, 5.0, 5.0), (90.0, 90.0, 120.0))
    with pytest.raises(DegenerateCellError, match="positive"):
        builder.build(aligned_molecule, (5.0, 0.0, 5.0))


def test_save_cell_helper(tmp_path, tilted_molecule):
    cell = build_isolated_cell(tilted_molecule, padding=3.0)
    path = save_cell(ExtendedXyzCellBuilder(tmp_path, suffix=""), cell)
    assert path.name == "tilted.xyz"
    assert len(read_xyz(path)) == len(tilted_molecule)


def test_write_xyz_plain(tmp_path, aligned_molecule):
    path = write_xyz(tmp_path / "plain.xyz", aligned_molecule, comment="plain")
    assert path.read_text().splitlines()[1] == "plain"
