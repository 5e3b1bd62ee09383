"""
HSSP report writer.

Renders an HsspReport in the fixed-column HSSP 2.0 layout: header block,
protein table, alignment blocks of 70 hits, sequence profile and the
insertion list, terminated by ``//``. Column widths must not change; other
tools read these files by position.
"""

import datetime
import io
from typing import List, Optional, TextIO, Union

from .models import Hit, HsspReport, ResidueProfile

TITLE = "HSSP       HOMOLOGY DERIVED SECONDARY STRUCTURE OF PROTEINS , VERSION 2.0d2 2011"
THRESHOLD_LINE = "THRESHOLD  according to: t(L)=(290.15 * L ** -0.562) + 5"

BLOCK_SIZE = 70
INSERTION_WIDTH = 100

PROTEINS_HEADER = (
    "  NR.    ID         STRID   %IDE %WSIM IFIR ILAS JFIR JLAS LALI NGAP LGAP LSEQ2 ACCNUM     PROTEIN"
)
PROFILE_HEADER = (
    " SeqNo PDBNo   V   L   I   M   F   W   Y   G   A   P   S   T   C   H   R   K   Q   E   N   D"
    "  NOCC NDEL NINS ENTROPY RELENT WEIGHT"
)
INSERTION_HEADER = " AliNo  IPOS  JPOS   Len Sequence"

ALIGNMENT_BREAK = " %5d        !  !           0   0    0    0    0"
PROFILE_BREAK = (
    "%5d          0   0   0   0   0   0   0   0   0   0   0   0   0   0   0   0   0   0   0   0"
    "     0    0    0   0.000      0"
)
INSERTION_CONTINUATION = "     +                   "

DateLike = Union[datetime.date, str, None]


def _fit(text: str, width: int) -> str:
    """Truncate or left-justify text to exactly ``width`` characters."""
    return text[:width].ljust(width)


def _ruler(first: int) -> str:
    markers = "".join(f"....:....{((first + 10 * m) // 10) % 10 + 1}" for m in range(7))
    return " SeqNo  PDBNo AA STRUCTURE BP1 BP2  ACC NOCC  VAR  " + markers


def format_header(report: HsspReport, date: DateLike = None) -> List[str]:
    """Header block up to and including NALIGN and the blank line after it."""
    if date is None:
        date = datetime.date.today()
    if isinstance(date, datetime.date):
        date = date.isoformat()

    lines = [
        TITLE,
        f"PDBID      {report.protein_id}",
        f"DATE       file generated on {date}",
        f"SEQBASE    {report.databank_version}",
        THRESHOLD_LINE,
        f"CONTACT    {report.contact}",
    ]
    lines.extend(report.description)
    lines.append("SEQLENGTH  %4d" % report.seq_length)
    lines.append("NCHAIN     %4d chain(s) in %s data set" % (report.nchain, report.protein_id))

    if report.kchain != report.nchain:
        lines.append(
            "KCHAIN     %4d chain(s) used here ; chains(s) : %s"
            % (report.kchain, ",".join(report.used_chains))
        )

    lines.append("NALIGN     %4d" % len(report.hits))
    lines.append("")
    return lines


def format_protein_row(nr: int, hit: Hit) -> str:
    """One row of the ``## PROTEINS`` table."""
    return "%5d : %s%4.4s    %4.2f  %4.2f %4d %4d %4d %4d %4d %4d %4d %4d  %s %s" % (
        nr,
        _fit(hit.source_id, 12),
        hit.chain_id,
        hit.ide,
        hit.wsim,
        hit.ifir,
        hit.ilas,
        hit.jfir,
        hit.jlas,
        hit.lali,
        hit.ngap,
        hit.lgap,
        hit.lseq2,
        _fit(hit.accession, 10),
        hit.description,
    )


def format_alignment_blocks(hits: List[Hit], residues: List[ResidueProfile]) -> List[str]:
    """The ``## ALIGNMENTS`` blocks, 70 hits per block."""
    lines = []

    for first in range(0, len(hits), BLOCK_SIZE):
        block = hits[first:first + BLOCK_SIZE]
        lines.append("## ALIGNMENTS %4d - %4d" % (first + 1, first + len(block)))
        lines.append(_ruler(first))

        for res in residues:
            if res.is_chain_break:
                lines.append(ALIGNMENT_BREAK % res.seq_no)
                continue

            aln = "".join(
                hit.display(res.column) if hit.chain_id == res.chain_id else " "
                for hit in block
            )
            lines.append(" %5d%s%4d %4d  %s" % (res.seq_no, res.structure, res.occupancy, res.variability, aln))

    return lines


def format_profile_row(res: ResidueProfile) -> str:
    """One row of the ``## SEQUENCE PROFILE AND ENTROPY`` section."""
    if res.is_chain_break:
        return PROFILE_BREAK % res.seq_no

    row = " %4d %4d %s" % (res.seq_no, res.pdb_no, res.chain_id)
    row += "".join("%4d" % pct for pct in res.distribution)
    row += "  %4d %4d %4d   %5.3f   %4d  %4.2f" % (
        res.occupancy,
        res.deletions,
        res.insertions,
        res.entropy,
        res.relative_entropy,
        res.conservation_weight,
    )
    return row


def format_insertions(hits: List[Hit]) -> List[str]:
    """The ``## INSERTION LIST`` rows, wrapped at 100 residues per line."""
    lines = []
    for hit in hits:
        for ins in hit.insertions:
            seq = ins.sequence
            lines.append(
                "  %4d  %4d  %4d  %4d %s"
                % (hit.rank, ins.query_pos, ins.hit_pos, ins.length, seq[:INSERTION_WIDTH])
            )
            for start in range(INSERTION_WIDTH, len(seq), INSERTION_WIDTH):
                lines.append(INSERTION_CONTINUATION + seq[start:start + INSERTION_WIDTH])
    return lines


def write_hssp(report: HsspReport, stream: TextIO, date: DateLike = None) -> None:
    """Write a complete HSSP file.

    Args:
        report: The report to render; hits must already be ranked
        stream: Text stream to write to
        date: Generation date printed in the header, today by default
    """
    lines = format_header(report, date)

    lines.append("## PROTEINS : identifier and alignment statistics")
    lines.append(PROTEINS_HEADER)
    lines.extend(format_protein_row(nr, hit) for nr, hit in enumerate(report.hits, start=1))

    lines.extend(format_alignment_blocks(report.hits, report.residues))

    lines.append("## SEQUENCE PROFILE AND ENTROPY")
    lines.append(PROFILE_HEADER)
    lines.extend(format_profile_row(res) for res in report.residues)

    lines.append("## INSERTION LIST")
    lines.append(INSERTION_HEADER)
    lines.extend(format_insertions(report.hits))

    lines.append("//")

    for line in lines:
        stream.write(line)
        stream.write("\n")


def format_hssp(report: HsspReport, date: DateLike = None) -> str:
    """Render a report to a string."""
    out = io.StringIO()
    write_hssp(report, out, date=date)
    return out.getvalue()


def save_hssp(report: HsspReport, path, date: Optional[DateLike] = None) -> None:
    """Write a report to a file path."""
    with open(path, "w") as f:
        write_hssp(report, f, date=date)
