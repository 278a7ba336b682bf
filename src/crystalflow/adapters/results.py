"""Result dataclasses for parsed CASTEP output.

Parsers in this package return these records; derived quantities
(band gaps, polarity) are computed from them without touching the file again.
Energies are in eV throughout.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

__all__ = [
    "BandStructureRecord",
    "BandGapSummary",
    "PolarizabilityRecord",
    "HARTREE_TO_EV",
]

# 1.000000 Ha = 27.211399 eV
HARTREE_TO_EV = 27.211399


@dataclass(slots=True)
class BandStructureRecord:
    """Header and per-k-point eigenvalues of a ``.bands`` file."""
    num_kpoints: int
    num_electrons: int
    num_eigenvalues: int
    fermi_energy: float | None
    eigenvalues: List[List[float]] = field(default_factory=list)
    num_spin_components: int = 1
    source: str = "<string>"


@dataclass(slots=True, frozen=True)
class BandGapSummary:
    direct_gap: float
    indirect_gap: float
    valence_dispersion: float
    conduction_dispersion: float
    polarity: str


@dataclass(slots=True, frozen=True)
class PolarizabilityRecord:
    """Isotropic (trace/3) values of the four dielectric tensors."""
    optical_permittivity: float
    dc_permittivity: float
    optical_polarizability: float
    static_polarizability: float
    source: str = "<string>"
