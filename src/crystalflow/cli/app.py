import argparse
import importlib
import logging
import sys

STEP_MODULES = {
    "box": "crystalflow.pipeline.steps.box",
    "bands": "crystalflow.pipeline.steps.bands",
    "polarizability": "crystalflow.pipeline.steps.polarizability",
    "collect": "crystalflow.pipeline.steps.collect",
    "pressure-series": "crystalflow.pipeline.steps.pressure",
}

DESCRIPTIONS = {
    "box": "Molecule-in-box: center, align to principal axes and pad each XYZ molecule into an orthogonal cell.",
    "bands": "Parse a CASTEP .bands file; print direct/indirect gap, band dispersions and polarity.",
    "polarizability": "Parse a CASTEP _Efield.castep file; print isotropic permittivities and polarisabilities.",
    "collect": "Structure table: gather <name>_BandStr.bands / <name>_Efield.castep results into one CSV.",
    "pressure-series": "Write the pressure-series plan table (Structure, Pressure (GPa), Optimized?).",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("crystalflow", description="Molecule-in-box building and CASTEP result collection.")
    sub = p.add_subparsers(dest="cmd", required=True, metavar="command")
    for name in STEP_MODULES:
        # command modules own their flags (including --help)
        sub.add_parser(name, help=DESCRIPTIONS[name], description=DESCRIPTIONS[name], add_help=False)
    return p


def main(argv: list[str] | None = None):
    args, rest = build_parser().parse_known_args(sys.argv[1:] if argv is None else argv)
    logging.debug("Dispatching %s | args=%s", args.cmd, rest)
    module = importlib.import_module(STEP_MODULES[args.cmd])
    return module.main(rest)


if __name__ == "__main__":
    main()
