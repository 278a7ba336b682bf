"""crystalflow: molecule-in-box geometry and CASTEP result parsing.

The package scripts the repetitive parts of crystal property workflows:
normalising a molecule into a padded orthogonal cell and turning CASTEP
``.bands`` / ``_Efield.castep`` output into tabulated scalars.
"""
__version__ = "0.3.0"

__all__ = ["__version__"]
