"""
Stockholm alignment parsing for HSSP profile generation.

This module reads the Stockholm files written by jackhmmer (``-A``). The
reader is deliberately strict about the header: the first line must be the
format marker and the second a ``#=GF ID`` line naming the query. The
sequence blocks, which may be wrapped, are read with Bio.AlignIO.

After parsing, every hit is put through the homology filter: its identity
to the query must reach a length-dependent threshold, since short stretches
agree by chance far more often than long ones.
"""

import bz2
import gzip
import io
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Tuple, Union

from Bio import AlignIO

from ..exceptions import AlignmentMismatchError, FormatError
from .alphabet import is_gap
from .models import (
    Alignment,
    AlignmentValidationResult,
    DroppedSequence,
    ParsedAlignment,
    Sequence,
)

logger = logging.getLogger(__name__)

STOCKHOLM_MARKER = "# STOCKHOLM 1.0"

# Identity thresholds for aligned lengths 10..80, t(L) = 2.9015 * L^-0.562 + 0.05
HOMOLOGY_THRESHOLD = (
    0.845468, 0.80398, 0.767997, 0.736414, 0.708413, 0.683373, 0.660811, 0.640351, 0.621688, 0.604579,
    0.58882, 0.574246, 0.560718, 0.548117, 0.536344, 0.525314, 0.514951, 0.505194, 0.495984, 0.487275,
    0.479023, 0.471189, 0.463741, 0.456647, 0.449882, 0.44342, 0.43724, 0.431323, 0.425651, 0.420207,
    0.414976, 0.409947, 0.405105, 0.40044, 0.395941, 0.391599, 0.387406, 0.383352, 0.379431, 0.375636,
    0.37196, 0.368396, 0.364941, 0.361587, 0.358331, 0.355168, 0.352093, 0.349103, 0.346194, 0.343362,
    0.340604, 0.337917, 0.335298, 0.332744, 0.330252, 0.327821, 0.325448, 0.323129, 0.320865, 0.318652,
    0.316488, 0.314372, 0.312302, 0.310277, 0.308294, 0.306353, 0.304452, 0.302589, 0.300764, 0.298975,
    0.297221,
)

_ITERATION_SUFFIX = re.compile(r"(.+?)-i\d+$")


def homology_threshold(compared_columns: int) -> float:
    """Identity threshold for a pair compared over this many columns."""
    return HOMOLOGY_THRESHOLD[max(10, min(compared_columns, 80)) - 10]


def identity_to_query(query: str, residues: str) -> Tuple[int, int]:
    """Count identical and compared columns between the query and a row.

    A column is compared when either residue is present; it is identical
    when both are present and equal.

    Returns:
        Tuple of (identical_columns, compared_columns)
    """
    identical = compared = 0
    for q, s in zip(query, residues):
        q_gap, s_gap = is_gap(q), is_gap(s)
        if not q_gap and q == s:
            identical += 1
        if not q_gap or not s_gap:
            compared += 1
    return identical, compared


def homology_score(query: str, residues: str) -> Tuple[float, int]:
    """Fractional identity of a row to the query and the number of compared columns."""
    identical, compared = identity_to_query(query, residues)
    if compared == 0:
        return 0.0, 0
    return identical / compared, compared


def filter_homologs(alignment: Alignment) -> ParsedAlignment:
    """Drop every hit whose identity to the query is below the threshold.

    Args:
        alignment: Alignment with the query first

    Returns:
        ParsedAlignment with the surviving sequences and the drop-list
    """
    query = alignment.query.residues
    kept = [alignment.query]
    dropped: List[DroppedSequence] = []

    for seq in alignment.sequences[1:]:
        score, compared = homology_score(query, seq.residues)
        threshold = homology_threshold(compared)
        if score < threshold:
            logger.debug(f"dropping {seq.id} because identity {score:.4f} is below threshold {threshold}")
            dropped.append(DroppedSequence(id=seq.id, score=score, threshold=threshold))
        else:
            kept.append(seq)

    if dropped:
        logger.info(f"Homology filter kept {len(kept) - 1} of {len(alignment) - 1} sequences")

    return ParsedAlignment(alignment=Alignment(tuple(kept)), dropped=dropped)


def read_stockholm(stream: TextIO, apply_filter: bool = True) -> ParsedAlignment:
    """Read a Stockholm alignment from a text stream.

    The header lines are checked here; the sequence blocks are parsed by
    Bio.AlignIO. Only the first alignment, up to its ``//`` line, is read.

    Args:
        stream: Open text stream positioned at the format marker
        apply_filter: Apply the homology filter to the parsed hits

    Returns:
        ParsedAlignment with the query as first sequence

    Raises:
        FormatError: On a bad marker, a missing ``#=GF ID`` line, a block
            Biopython cannot parse, a missing query or fewer than two
            sequences
    """
    line = stream.readline().rstrip("\r\n")
    if line != STOCKHOLM_MARKER:
        raise FormatError("Not a stockholm file")

    id_line = stream.readline().rstrip("\r\n")
    if not id_line.startswith("#=GF ID "):
        raise FormatError("Not a valid stockholm file, missing #=GF ID line")

    query_id = id_line[8:].strip()
    match = _ITERATION_SUFFIX.match(query_id)
    if match:
        query_id = match.group(1)

    lines = [STOCKHOLM_MARKER, id_line]
    for raw in stream:
        line = raw.rstrip("\r\n")
        lines.append(line)
        if line == "//":
            break

    try:
        records = AlignIO.read(io.StringIO("\n".join(lines) + "\n"), "stockholm")
    except Exception as e:
        raise FormatError(f"Invalid stockholm file: {e}")

    sequences = [
        Sequence(
            id=record.id,
            residues=str(record.seq),
            # Biopython falls back to the id when there is no #=GS DE line
            description="" if record.description == record.id else record.description,
        )
        for record in records
    ]

    query = [seq for seq in sequences if seq.id == query_id]
    if not query:
        raise FormatError(f"No residues for query {query_id} in Stockholm MSA")

    sequences = query[:1] + [seq for seq in sequences if seq.id != query_id]
    if len(sequences) < 2:
        raise FormatError("Insufficient sequences in Stockholm MSA")

    alignment = Alignment(tuple(sequences))
    logger.debug(f"Parsed {len(alignment)} sequences of width {alignment.width} for {query_id}")

    if not apply_filter:
        return ParsedAlignment(alignment=alignment)
    return filter_homologs(alignment)


def open_alignment(path: Union[str, Path]) -> TextIO:
    """Open an alignment file for reading, decompressing .bz2 and .gz files.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Stockholm file not found: {path}")

    if path.suffix == ".bz2":
        return bz2.open(path, "rt")
    if path.suffix == ".gz":
        return gzip.open(path, "rt")
    return open(path, "r")


def parse_stockholm(
    source: Union[str, Path, TextIO],
    apply_filter: bool = True,
) -> ParsedAlignment:
    """Parse a Stockholm alignment from a path, a text stream or a string.

    Strings that start with the format marker are parsed as alignment
    text, any other string is taken to be a path.
    """
    if isinstance(source, str) and source.startswith(STOCKHOLM_MARKER):
        return read_stockholm(io.StringIO(source), apply_filter=apply_filter)

    if isinstance(source, (str, Path)):
        with open_alignment(source) as f:
            return read_stockholm(f, apply_filter=apply_filter)

    return read_stockholm(source, apply_filter=apply_filter)


def adjust_alignment_for_chain(alignment: Alignment, chain_sequence: str) -> Alignment:
    """Cut alignment columns so the query matches a chain sequence exactly.

    This is needed when the alignment was made with a query a few residues
    longer than the chain. Columns before the first and after the last
    matching query residue are removed from every row.

    Args:
        alignment: Parsed alignment
        chain_sequence: The chain's one-letter sequence

    Returns:
        The alignment unchanged if the query already matches, otherwise a
        new, narrower Alignment

    Raises:
        AlignmentMismatchError: If the query is shorter than the chain or
            does not contain it
    """
    query = alignment.query.ungapped()
    if query == chain_sequence:
        return alignment

    if len(query) < len(chain_sequence):
        raise AlignmentMismatchError("Query used for Stockholm file is too short for the chain")

    offset = query.find(chain_sequence)
    if offset == -1 or not chain_sequence:
        raise AlignmentMismatchError("Invalid Stockholm file for chain")

    columns = alignment.query_columns()
    first = columns[offset]
    last = columns[offset + len(chain_sequence) - 1]

    logger.debug(f"Trimming alignment to columns {first}-{last} to match chain")

    return Alignment(tuple(
        Sequence(id=seq.id, residues=seq.residues[first:last + 1], description=seq.description)
        for seq in alignment.sequences
    ))


def validate_alignment(alignment: Alignment) -> AlignmentValidationResult:
    """Validate an alignment before hits are built from it.

    Checks for:
    - Presence of a query and at least one hit
    - Consistent alignment width
    - Gaps at the query's first or last column

    Args:
        alignment: Alignment to validate

    Returns:
        AlignmentValidationResult with validation status, errors, and warnings
    """
    errors: List[str] = []
    warnings: List[str] = []
    stats: Dict[str, object] = {}

    if len(alignment) == 0:
        errors.append("Alignment has no sequences")
        return AlignmentValidationResult(is_valid=False, errors=errors)

    if len(alignment) < 2:
        warnings.append("Alignment holds only the query; the report will list no hits")

    width = alignment.width
    inconsistent = [(seq.id, len(seq)) for seq in alignment if len(seq) != width]
    if inconsistent:
        errors.append(
            f"Inconsistent sequence lengths: expected {width}, "
            f"found {inconsistent[:5]}{'...' if len(inconsistent) > 5 else ''}"
        )

    query = alignment.query.residues
    if not query:
        errors.append("Query sequence is empty")
    elif is_gap(query[0]) or is_gap(query[-1]):
        errors.append("Leading (or trailing) gaps found in query sequence")

    stats["num_sequences"] = len(alignment)
    stats["alignment_width"] = width
    stats["query_id"] = alignment.query.id
    stats["query_length"] = len(alignment.query.ungapped())

    return AlignmentValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )


def parse_chain_alignment_mapping(pairs: Union[str, List[str]]) -> Dict[str, str]:
    """Parse chain to alignment name pairs.

    Args:
        pairs: Comma-separated ``"A=1abc_A,B=1abc_B"`` or a list of
            ``"A=1abc_A"`` items

    Returns:
        Dictionary mapping chain ids to alignment names, in input order

    Raises:
        FormatError: If a pair is not of the form ``<chain>=<name>``
    """
    if isinstance(pairs, str):
        pairs = [p for p in pairs.split(",") if p.strip()]

    mapping: Dict[str, str] = {}
    for pair in pairs:
        pair = pair.strip()
        if len(pair) < 3 or pair[1] != "=":
            raise FormatError(f"Invalid chain/stockholm pair specified: '{pair}'")
        mapping[pair[0]] = pair[2:]

    return mapping


def find_alignment_file(data_dir: Union[str, Path], name: str) -> Optional[Path]:
    """Locate ``<name>.sto.bz2``, ``<name>.sto.gz`` or ``<name>.sto`` in a directory."""
    data_dir = Path(data_dir)
    for suffix in (".sto.bz2", ".sto.gz", ".sto"):
        candidate = data_dir / f"{name}{suffix}"
        if candidate.exists():
            return candidate
    return None
