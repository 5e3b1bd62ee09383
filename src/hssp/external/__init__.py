"""
Collaborators the profile pipeline calls out to: the homology search,
the databank holding hit metadata and the structural annotation.
"""

from .databank import FastaDatabank, MetadataLookup, StaticMetadata
from .search import HomologySearch, JackhmmerSearch
from .structure import BlankStructureAnnotator, StructureAnnotator

__all__ = [
    "BlankStructureAnnotator",
    "FastaDatabank",
    "HomologySearch",
    "JackhmmerSearch",
    "MetadataLookup",
    "StaticMetadata",
    "StructureAnnotator",
]
