"""
Data models for HSSP profile generation.

This module defines the core data structures used throughout the profile
pipeline: alignments parsed from Stockholm files, the hits derived from
them, per-residue profiles and the protein/chain input they describe.

An Alignment is never modified once parsed. Everything a downstream stage
needs to remember about a column (flank, gap, insertion, lowercase marker)
is kept in side tables on the Hit instead.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .alphabet import is_gap


@dataclass(frozen=True)
class Sequence:
    """A single named row of a multiple sequence alignment.

    Attributes:
        id: Sequence identifier (for hits usually ``name/start-end``)
        residues: The aligned residues, including gap symbols
        description: Optional free text from a ``#=GS <id> DE`` line
    """
    id: str
    residues: str
    description: str = ""

    def __len__(self) -> int:
        return len(self.residues)

    def ungapped(self) -> str:
        """Return the residues with all gap symbols removed."""
        return "".join(r for r in self.residues if not is_gap(r))


@dataclass(frozen=True)
class Alignment:
    """An ordered, read-only collection of aligned sequences.

    The first sequence is always the query. All sequences have the same
    length, the alignment width.
    """
    sequences: Tuple[Sequence, ...]

    def __post_init__(self):
        if not isinstance(self.sequences, tuple):
            object.__setattr__(self, "sequences", tuple(self.sequences))

    def __len__(self) -> int:
        return len(self.sequences)

    def __getitem__(self, index: int) -> Sequence:
        return self.sequences[index]

    def __iter__(self):
        return iter(self.sequences)

    @property
    def query(self) -> Sequence:
        return self.sequences[0]

    @property
    def width(self) -> int:
        """Number of alignment columns."""
        if not self.sequences:
            return 0
        return len(self.sequences[0])

    def column(self, index: int) -> List[str]:
        """Return the residues of every sequence at one column."""
        return [seq.residues[index] for seq in self.sequences]

    def query_columns(self) -> List[int]:
        """Alignment columns holding a query residue, in order.

        Entry ``k`` is the column of the (k+1)-th query residue.
        """
        return [i for i, r in enumerate(self.query.residues) if not is_gap(r)]


@dataclass(frozen=True)
class DroppedSequence:
    """A sequence rejected by the homology filter."""
    id: str
    score: float
    threshold: float


@dataclass
class ParsedAlignment:
    """Result of parsing a Stockholm stream."""
    alignment: Alignment = field(repr=False)
    dropped: List[DroppedSequence] = field(default_factory=list)


@dataclass
class AlignmentValidationResult:
    """Result of alignment validation.

    Attributes:
        is_valid: Whether the alignment passed validation
        errors: List of critical errors
        warnings: List of non-critical warnings
        stats: Summary statistics about the alignment
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: Dict[str, object] = field(default_factory=dict)


class ColumnTag(Enum):
    """Classification of one alignment column for a query/hit pair."""
    FLANK = "flank"
    COMMON_GAP = "common_gap"
    DELETION = "deletion"
    INSERTION = "insertion"
    MATCH = "match"


@dataclass(frozen=True)
class Insertion:
    """A run of hit residues with no counterpart in the query.

    The run is anchored to the last aligned hit residue before it and closed
    by the first aligned residue after it; both are printed in lowercase.

    Attributes:
        query_pos: Query residue number of the anchor
        hit_pos: Hit residue number of the anchor
        anchor: Anchor residue (lowercase), empty when there is none
        residues: The inserted residues
        closing: The residue closing the insertion (lowercase)
    """
    query_pos: int
    hit_pos: int
    anchor: str
    residues: str
    closing: str

    @property
    def sequence(self) -> str:
        return self.anchor + self.residues + self.closing

    @property
    def length(self) -> int:
        return len(self.residues)


@dataclass(frozen=True)
class HitMetadata:
    """Sequence metadata supplied by a databank lookup."""
    title: str = ""
    accession: str = ""
    length: Optional[int] = None


@dataclass
class Hit:
    """One aligned sequence and its statistics relative to the query.

    Positions ``ifir``/``ilas`` are 1-based query residue numbers, ``jfir``/
    ``jlas`` 1-based residue numbers in the hit's source sequence.
    """
    alignment: Alignment = field(repr=False)
    index: int
    chain_id: str
    source_id: str
    ifir: int
    ilas: int
    jfir: int
    jlas: int
    lali: int
    ngap: int
    lgap: int
    lseq2: int
    identical: int
    similar: int
    first_column: int
    last_column: int
    tags: Tuple[ColumnTag, ...] = field(repr=False)
    lowered: FrozenSet[int] = frozenset()
    insertions: List[Insertion] = field(default_factory=list)
    accession: str = ""
    description: str = ""
    rank: int = 0

    @property
    def ide(self) -> float:
        return self.identical / self.lali if self.lali else 0.0

    @property
    def wsim(self) -> float:
        return self.similar / self.lali if self.lali else 0.0

    @property
    def sequence(self) -> Sequence:
        return self.alignment[self.index]

    def covers(self, column: int) -> bool:
        """True when the column lies inside the hit's aligned region."""
        return self.first_column <= column <= self.last_column

    def display(self, column: int) -> str:
        """The legacy alignment character for a column.

        Flank columns render as a space, insertion anchors and closing
        residues in lowercase, everything else as in the alignment.
        """
        if self.tags[column] is ColumnTag.FLANK:
            return " "
        residue = self.sequence.residues[column]
        if column in self.lowered:
            return residue.lower()
        return residue

    def sort_key(self) -> Tuple[float, int]:
        """Descending identity, ties broken by descending alignment length."""
        return (-self.ide, -self.lali)


@dataclass
class ResidueProfile:
    """Statistics for one query residue, or a chain-break sentinel.

    A chain break carries only its sequence number; ``letter`` is empty.
    ``distribution`` holds rounded percentages in profile order.
    """
    seq_no: int
    letter: str = ""
    chain_id: str = ""
    structure: str = ""
    pdb_no: int = 0
    column: int = -1
    occupancy: int = 0
    deletions: int = 0
    insertions: int = 0
    entropy: float = 0.0
    relative_entropy: int = 0
    conservation_weight: float = 1.0
    distribution: Tuple[int, ...] = (0,) * 20

    @classmethod
    def chain_break(cls, seq_no: int) -> "ResidueProfile":
        return cls(seq_no=seq_no)

    @property
    def is_chain_break(self) -> bool:
        return not self.letter

    @property
    def variability(self) -> int:
        return int(100 * (1 - self.conservation_weight))


@dataclass(frozen=True)
class Residue:
    """A residue of a protein chain: its author number and one-letter code."""
    number: int
    letter: str


@dataclass
class Chain:
    """A protein chain with its residues in order."""
    chain_id: str
    residues: List[Residue] = field(default_factory=list)

    @property
    def sequence(self) -> str:
        return "".join(r.letter for r in self.residues)

    def __len__(self) -> int:
        return len(self.residues)


@dataclass
class Protein:
    """A protein entry with its chains and the header text printed in reports."""
    id: str
    chains: List[Chain] = field(default_factory=list)
    header: str = ""
    compound: str = ""
    source: str = ""
    author: str = ""

    @classmethod
    def from_sequence(cls, sequence: str, protein_id: str = "UNKN", chain_id: str = "A") -> "Protein":
        """Build a single-chain protein numbered from 1."""
        residues = [Residue(number=i + 1, letter=aa) for i, aa in enumerate(sequence)]
        return cls(id=protein_id, chains=[Chain(chain_id=chain_id, residues=residues)])

    def get_chain(self, chain_id: str) -> Chain:
        for chain in self.chains:
            if chain.chain_id == chain_id:
                return chain
        raise KeyError(f"Protein {self.id} has no chain {chain_id!r}")

    def description_lines(self) -> List[str]:
        """The HEADER/COMPND/SOURCE/AUTHOR lines, empty when no header is known."""
        if not (self.header or self.compound or self.source or self.author):
            return []
        return [
            "HEADER     " + self.header[:40],
            "COMPND     " + self.compound,
            "SOURCE     " + self.source,
            "AUTHOR     " + self.author,
        ]


@dataclass
class HsspReport:
    """Everything needed to render one HSSP file."""
    protein_id: str
    databank_version: str
    seq_length: int
    nchain: int
    kchain: int
    used_chains: List[str]
    hits: List[Hit]
    residues: List[ResidueProfile]
    description: List[str] = field(default_factory=list)
    contact: str = ""
