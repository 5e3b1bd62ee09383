"""
Sequence metadata lookup for hits.

Hits only carry an id and a residue range; the title, accession and full
length printed in the protein table come from the databank the search ran
against.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Union

from Bio import SeqIO

from ..profile.models import HitMetadata

logger = logging.getLogger(__name__)

# UniRef headers: ">UniRef100_P12345 Title text n=1 Tax=Homo sapiens TaxID=9606 RepID=..."
_UNIREF_TITLE = re.compile(r"^(.*?)\s+n=\d+\s")


class MetadataLookup(Protocol):
    """Anything that can describe a hit by its sequence id."""

    def metadata(self, seq_id: str) -> Optional[HitMetadata]:
        ...


def title_from_description(seq_id: str, description: str) -> str:
    """Strip the id and trailing UniRef cluster fields from a FASTA description."""
    title = description
    if title.startswith(seq_id):
        title = title[len(seq_id):]
    title = title.strip()

    match = _UNIREF_TITLE.match(title + " ")
    if match:
        title = match.group(1)
    return title


def accession_from_id(seq_id: str) -> str:
    """Accession for UniProt style ids (``sp|P12345|NAME``), empty otherwise."""
    parts = seq_id.split("|")
    if len(parts) >= 2 and parts[0] in ("sp", "tr"):
        return parts[1]
    return ""


class FastaDatabank:
    """Metadata lookup backed by an indexed FASTA file.

    The file is indexed once with Bio.SeqIO.index; records are read on
    demand, so large databanks do not have to fit in memory.
    """

    def __init__(self, fasta_path: Union[str, Path], version: Optional[str] = None):
        self.path = Path(fasta_path)
        if not self.path.exists():
            raise FileNotFoundError(f"Databank not found: {self.path}")

        self.version = version or self.path.stem
        self._index = SeqIO.index(str(self.path), "fasta")
        logger.debug(f"Indexed {len(self._index)} sequences in {self.path}")

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, seq_id: str) -> bool:
        return seq_id in self._index

    def metadata(self, seq_id: str) -> Optional[HitMetadata]:
        if seq_id not in self._index:
            logger.debug(f"{seq_id} not found in {self.path.name}")
            return None

        record = self._index[seq_id]
        return HitMetadata(
            title=title_from_description(record.id, record.description),
            accession=accession_from_id(record.id),
            length=len(record.seq),
        )

    def close(self) -> None:
        self._index.close()


class StaticMetadata:
    """Metadata lookup over a plain dictionary."""

    def __init__(self, entries: Optional[Mapping[str, HitMetadata]] = None, version: str = "unknown"):
        self.entries: Dict[str, HitMetadata] = dict(entries or {})
        self.version = version

    def metadata(self, seq_id: str) -> Optional[HitMetadata]:
        return self.entries.get(seq_id)
