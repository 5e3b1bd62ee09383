"""
Structural annotation collaborators.

The report's alignment rows carry 34 columns of secondary structure and
geometry per residue. The pipeline treats them as opaque text; without a
structure the blank annotator fills in residue number, chain and amino
acid only.
"""

from typing import Protocol

from ..profile.models import Residue
from ..profile.residues import STRUCTURE_WIDTH, blank_structure_line


class StructureAnnotator(Protocol):
    def structure_line(self, chain_id: str, residue: Residue) -> str:
        ...


class BlankStructureAnnotator:
    """Annotator for proteins without known structure."""

    width = STRUCTURE_WIDTH

    def structure_line(self, chain_id: str, residue: Residue) -> str:
        return blank_structure_line(chain_id, residue)
