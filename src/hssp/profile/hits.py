"""
Hit construction from query/hit alignment pairs.

A Hit summarizes how one aligned sequence relates to the query: where the
alignment starts and ends in both sequences, how many residues are
identical or similar (BLOSUM62 > 0), and where gaps and insertions occur.

jackhmmer never places gaps at the query's first or last column, so the
builder treats a hit's leading and trailing gaps as unaligned flank rather
than as deletions. Columns are classified into a side table on the Hit;
the Alignment itself is left untouched.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from ..exceptions import EmptySequenceError, FormatError
from .alphabet import blosum62, is_gap
from .models import Alignment, ColumnTag, Hit, HitMetadata, Insertion

logger = logging.getLogger(__name__)

HIT_ID_PATTERN = re.compile(r"(\S+)/(\d+)-(\d+)")

UNIREF100_PREFIX = "UniRef100_"

MAX_HITS = 9999


def parse_hit_id(seq_id: str) -> Tuple[str, int, int]:
    """Split a hit id of the form ``name/start-end``.

    Returns:
        Tuple of (name, start, end)

    Raises:
        FormatError: If the id carries no source range
    """
    match = HIT_ID_PATTERN.fullmatch(seq_id)
    if not match:
        raise FormatError(f"Alignment ID should contain position: {seq_id!r}")
    return match.group(1), int(match.group(2)), int(match.group(3))


def build_hit(
    alignment: Alignment,
    hit_index: int,
    chain_id: str = "A",
    query_index: int = 0,
    metadata: Optional[HitMetadata] = None,
) -> Hit:
    """Build a Hit for one aligned sequence.

    Args:
        alignment: The alignment holding query and hit
        hit_index: Index of the hit sequence in the alignment
        chain_id: Chain of the query this alignment belongs to
        query_index: Index of the query sequence (normally 0)
        metadata: Databank metadata for the hit (title, accession, length)

    Returns:
        The Hit with all statistics computed

    Raises:
        EmptySequenceError: If the query or hit has no residues
        FormatError: If the query has leading or trailing gaps, the rows
            differ in length or the hit id carries no source range
    """
    q = alignment[query_index].residues
    s = alignment[hit_index].residues

    if not q or not s or all(is_gap(r) for r in s):
        raise EmptySequenceError(f"Invalid (empty) sequence for {alignment[hit_index].id}")

    if is_gap(q[0]) or is_gap(q[-1]):
        raise FormatError("Leading (or trailing) gaps found in query sequence")

    if len(q) != len(s):
        raise FormatError(f"Sequence {alignment[hit_index].id} differs in length from the query")

    name, jfir, jlas = parse_hit_id(alignment[hit_index].id)

    width = len(s)
    tags = [ColumnTag.FLANK] * width
    lowered = set()
    insertions: List[Insertion] = []

    # Leading and trailing hit gaps are flank, not deletions
    ifir = 1
    first = 0
    while is_gap(s[first]):
        if not is_gap(q[first]):
            ifir += 1
        first += 1

    last = width - 1
    while last > first and is_gap(s[last]):
        last -= 1

    ilas = ifir - 1
    lali = ngap = lgap = identical = similar = 0
    sgap = qgap = False

    ipos, jpos = ifir, jfir
    anchor: Optional[Tuple[int, int, int]] = None
    run_anchor: Optional[Tuple[int, int, int]] = None
    run: List[str] = []

    for c in range(first, last + 1):
        qc, sc = q[c], s[c]

        if is_gap(qc) and is_gap(sc):
            tags[c] = ColumnTag.COMMON_GAP
            continue

        lali += 1

        if is_gap(sc):
            tags[c] = ColumnTag.DELETION
            if not (sgap or qgap):
                ngap += 1
            sgap = True
            lgap += 1
            ilas += 1
            ipos += 1

        elif is_gap(qc):
            tags[c] = ColumnTag.INSERTION
            if not qgap:
                run_anchor = anchor
                run = []
                if anchor is not None:
                    lowered.add(anchor[0])
            if not (sgap or qgap):
                ngap += 1
            qgap = True
            lgap += 1
            jpos += 1
            run.append(sc)

        else:
            tags[c] = ColumnTag.MATCH
            if qgap:
                lowered.add(c)
                insertions.append(_make_insertion(s, run_anchor, run, sc, ifir, jfir))

            sgap = qgap = False

            if qc == sc:
                identical += 1
                similar += 1
            elif blosum62(qc, sc) > 0:
                similar += 1

            anchor = (c, ipos, jpos)
            ilas += 1
            ipos += 1
            jpos += 1

    accession = metadata.accession if metadata else ""
    description = metadata.title if metadata else ""
    lseq2 = metadata.length if metadata and metadata.length is not None else jlas

    if name.startswith(UNIREF100_PREFIX):
        name = name[len(UNIREF100_PREFIX):]
        accession = name

    return Hit(
        alignment=alignment,
        index=hit_index,
        chain_id=chain_id,
        source_id=name,
        ifir=ifir,
        ilas=ilas,
        jfir=jfir,
        jlas=jlas,
        lali=lali,
        ngap=ngap,
        lgap=lgap,
        lseq2=lseq2,
        identical=identical,
        similar=similar,
        first_column=first,
        last_column=last,
        tags=tuple(tags),
        lowered=frozenset(lowered),
        insertions=insertions,
        accession=accession,
        description=description,
    )


def _make_insertion(
    s: str,
    anchor: Optional[Tuple[int, int, int]],
    run: List[str],
    closing: str,
    ifir: int,
    jfir: int,
) -> Insertion:
    if anchor is None:
        return Insertion(
            query_pos=ifir - 1,
            hit_pos=jfir - 1,
            anchor="",
            residues="".join(run),
            closing=closing.lower(),
        )

    column, query_pos, hit_pos = anchor
    return Insertion(
        query_pos=query_pos,
        hit_pos=hit_pos,
        anchor=s[column].lower(),
        residues="".join(run),
        closing=closing.lower(),
    )


def rank_hits(hits: Iterable[Hit], max_hits: int = MAX_HITS) -> List[Hit]:
    """Sort hits by identity then alignment length, cap and number them.

    The sort is stable, so hits that tie on both keys keep their input
    order. Ranks are 1-based.
    """
    ranked = sorted(hits, key=Hit.sort_key)

    if len(ranked) > max_hits:
        logger.info(f"Keeping the best {max_hits} of {len(ranked)} hits")
        ranked = ranked[:max_hits]

    for nr, hit in enumerate(ranked, start=1):
        hit.rank = nr

    return ranked
