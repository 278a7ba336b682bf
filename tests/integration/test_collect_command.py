import pandas as pd
import pytest

from crystalflow.cli.app import main as cli_main
from crystalflow.pipeline.steps.bands import run_bands
from crystalflow.pipeline.steps.collect import TABLE_COLUMNS
from crystalflow.pipeline.steps.polarizability import run_polarizability
from tests.helpers.castep import GAP_SCENARIO_ROWS, write_bands, write_efield


@pytest.fixture
def project(tmp_path):
    docs = tmp_path / "CalculateStructureTable_Files" / "Documents"
    write_bands(docs / "Alpha_BandStr.bands", GAP_SCENARIO_ROWS, electrons=4)
    write_efield(docs / "Alpha_Efield.castep")
    return tmp_path


def test_collect_discovers_structures_from_config_documents_dir(project):
    out = project / "tables" / "results.csv"
    with pytest.raises(SystemExit) as exit_info:
        cli_main(["collect", "--out", str(out), "--project", str(project)])
    assert exit_info.value.code == 0
    df = pd.read_csv(out)
    assert list(df.columns) == TABLE_COLUMNS
    assert df["Structure"].tolist() == ["Alpha"]
    assert df.loc[0, "Indirect Band Gap"] == pytest.approx(1.3, abs=1e-6)
    assert df.loc[0, "DC Permittivity"] == pytest.approx(3.22)
    assert "step=collect" in (project / "crystalflow.log").read_text()


def test_collect_reports_missing_files(project):
    out = project / "partial.csv"
    with pytest.raises(SystemExit) as exit_info:
        cli_main([
            "collect", "--out", str(out), "--project", str(project),
            "--name", "Alpha", "--name", "Gamma", "--no-polarizability",
        ])
    assert exit_info.value.code == 1
    df = pd.read_csv(out)
    assert df["Structure"].tolist() == ["Alpha", "Gamma"]
    assert "Optical Permittivity" not in df.columns
    assert pd.isna(df.loc[1, "Direct Band Gap"])
    assert "Gamma: band structure unavailable" in (project / "crystalflow.log").read_text()


def test_single_file_commands_print_summaries(project, capsys):
    docs = project / "CalculateStructureTable_Files" / "Documents"
    assert run_bands(docs / "Alpha_BandStr.bands", project) == 0
    out = capsys.readouterr().out
    assert "Direct Band Gap       : 1.300000" in out
    assert "Polarity              : p-type" in out

    assert run_polarizability(docs / "Alpha_Efield.castep", project) == 0
    out = capsys.readouterr().out
    assert "Optical Permittivity   : 3.100000" in out

    assert run_bands(docs / "missing_BandStr.bands", project) == 1


def test_pressure_series_command(tmp_path):
    out = tmp_path / "Si.csv"
    with pytest.raises(SystemExit) as exit_info:
        cli_main([
            "pressure-series", "--name", "Si", "--initial", "0", "--final", "2",
            "--delta", "1", "--out", str(out), "--project", str(tmp_path),
        ])
    assert exit_info.value.code == 0
    df = pd.read_csv(out)
    assert df.columns.tolist() == ["Structure", "Pressure (GPa)", "Optimized?"]
    assert df["Structure"].tolist() == ["Si", "Si_01_00", "Si_02_00"]
    assert df["Optimized?"].tolist() == ["Yes", "No", "No"]
