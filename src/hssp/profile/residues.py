"""
Per-residue profiles for the HSSP sequence profile section.

For every query residue the profile records the amino acid distribution
over the query and all hits covering the residue, its entropy, the number
of covering hits with a deletion or an insertion at that position and the
Dayhoff conservation weight of the column.
"""

import logging
from typing import Callable, List, Optional, Sequence as SequenceType

from ..exceptions import AlignmentMismatchError
from .alphabet import is_gap
from .models import Alignment, Chain, Hit, Residue, ResidueProfile
from .scores import (
    WeightMatrix,
    calculate_all_conservation,
    count_residues,
    percent_distribution,
    relative_entropy,
    shannon_entropy,
)

logger = logging.getLogger(__name__)

STRUCTURE_WIDTH = 34

StructureLine = Callable[[str, Residue], str]


def blank_structure_line(chain_id: str, residue: Residue) -> str:
    """Structure columns for a residue without structural annotation.

    Fills residue number, chain and amino acid; secondary structure is
    blank and bridge partners and accessibility are zero.
    """
    return f"{residue.number:5d} {chain_id} {residue.letter}  {'':9s}{0:4d}{0:4d} {0:4d} "


def _is_insertion_marker(letter: str) -> bool:
    return "a" <= letter <= "y"


def build_residue_profile(
    alignment: Alignment,
    hits: SequenceType[Hit],
    column: int,
    seq_no: int,
    residue: Residue,
    chain_id: str,
    conservation_weight: float,
    structure: str = "",
) -> ResidueProfile:
    """Build the profile of one query residue.

    Args:
        alignment: The chain's alignment
        hits: The chain's hits; only those covering the column contribute
        column: Alignment column of the query residue
        seq_no: Sequential number of the residue in the report
        residue: The chain residue (for its author number)
        chain_id: Chain identifier
        conservation_weight: Conservation of the column
        structure: Fixed-width structure annotation for the residue

    Returns:
        The ResidueProfile
    """
    query = alignment.query.residues
    covering = [hit for hit in hits if hit.covers(column)]
    letters = [hit.display(column) for hit in covering]

    counts, nocc = count_residues([query[column]] + letters)
    entropy = shannon_entropy(counts)

    deletions = sum(1 for letter in letters if is_gap(letter))

    # Insertions are only reported when the next query column is a gap
    insertions = 0
    if column + 1 < len(query) and is_gap(query[column + 1]):
        insertions = sum(1 for letter in letters if _is_insertion_marker(letter))

    return ResidueProfile(
        seq_no=seq_no,
        letter=query[column],
        chain_id=chain_id,
        structure=structure,
        pdb_no=residue.number,
        column=column,
        occupancy=nocc,
        deletions=deletions,
        insertions=insertions,
        entropy=entropy,
        relative_entropy=relative_entropy(entropy),
        conservation_weight=conservation_weight,
        distribution=percent_distribution(counts, nocc),
    )


def build_chain_profiles(
    alignment: Alignment,
    hits: SequenceType[Hit],
    chain: Chain,
    first_seq_no: int = 1,
    structure: Optional[StructureLine] = None,
) -> List[ResidueProfile]:
    """Build profiles for every residue of a chain.

    A chain-break sentinel is inserted wherever the author numbering of
    consecutive residues jumps by more than one.

    Args:
        alignment: The chain's alignment, query first
        hits: Hits built from this alignment
        chain: The chain whose sequence is the query
        first_seq_no: Sequential number of the first entry produced
        structure: Callable producing the structure columns per residue

    Returns:
        Profiles in residue order, with chain-break sentinels

    Raises:
        AlignmentMismatchError: If the query length differs from the chain
    """
    structure = structure or blank_structure_line
    columns = alignment.query_columns()

    if len(columns) != len(chain.residues):
        raise AlignmentMismatchError(
            f"Query has {len(columns)} residues but chain {chain.chain_id} has {len(chain.residues)}"
        )

    logger.debug(f"Calculating weights for {len(alignment)} sequences")
    weights = WeightMatrix(alignment)
    conservation = calculate_all_conservation(alignment, weights, columns)

    profiles: List[ResidueProfile] = []
    seq_no = first_seq_no
    previous: Optional[Residue] = None

    for column, residue, weight in zip(columns, chain.residues, conservation):
        if previous is not None and residue.number > previous.number + 1:
            profiles.append(ResidueProfile.chain_break(seq_no))
            seq_no += 1

        profiles.append(build_residue_profile(
            alignment,
            hits,
            column,
            seq_no,
            residue,
            chain.chain_id,
            weight,
            structure=structure(chain.chain_id, residue),
        ))
        seq_no += 1
        previous = residue

    logger.debug(f"Profiled {len(columns)} residues of chain {chain.chain_id}")
    return profiles
