"""
Tests for hit construction and ranking.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for hssp imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hssp.exceptions import EmptySequenceError, FormatError
from hssp.profile import (
    Alignment,
    ColumnTag,
    HitMetadata,
    Sequence,
    build_hit,
    parse_hit_id,
    rank_hits,
)


def pair(query, hit, hit_id="h/1-10"):
    return Alignment((Sequence("Q1", query), Sequence(hit_id, hit)))


class TestParseHitId:
    """Tests for name/start-end hit ids."""

    def test_basic(self):
        """Test name and range are split."""
        assert parse_hit_id("UniRef100_P12345/3-120") == ("UniRef100_P12345", 3, 120)

    def test_slash_in_name(self):
        """Test only the last slash separates the range."""
        assert parse_hit_id("tr|A0A|X/b/7-9") == ("tr|A0A|X/b", 7, 9)

    def test_missing_range(self):
        """Test ids without a range are rejected."""
        for seq_id in ("P12345", "P12345/3-", "P12345/3-9x"):
            with pytest.raises(FormatError, match="position"):
                parse_hit_id(seq_id)


class TestBuildHit:
    """Tests for per-hit statistics."""

    def test_single_deletion(self):
        """Test a hit with one deleted residue."""
        hit = build_hit(pair("ACDEFG", "ACDE-G", "h/1-5"), 1)

        assert hit.source_id == "h"
        assert (hit.ifir, hit.ilas) == (1, 6)
        assert (hit.jfir, hit.jlas) == (1, 5)
        assert hit.lali == 6
        assert hit.identical == 5
        assert hit.ngap == 1
        assert hit.lgap == 1
        assert hit.insertions == []
        assert hit.ide == pytest.approx(5 / 6)
        assert hit.tags[4] is ColumnTag.DELETION
        assert hit.display(4) == "-"

    def test_flanks(self):
        """Test leading and trailing hit gaps are flank, not deletions."""
        hit = build_hit(pair("ACDEFGHI", "--DEFG--", "h/10-13"), 1)

        assert (hit.ifir, hit.ilas) == (3, 6)
        assert (hit.jfir, hit.jlas) == (10, 13)
        assert hit.lali == 4
        assert hit.ngap == 0
        assert hit.lgap == 0
        assert (hit.first_column, hit.last_column) == (2, 5)
        assert hit.display(0) == " "
        assert hit.display(7) == " "
        assert hit.display(3) == "E"
        assert not hit.covers(1)
        assert hit.covers(2)
        assert not hit.covers(6)

    def test_insertion(self):
        """Test an insertion run is recorded with lowercase anchor and closing residue."""
        hit = build_hit(pair("ACD--EFG", "ACDWYEFG", "h/1-8"), 1)

        assert hit.lali == 8
        assert hit.identical == 6
        assert hit.ngap == 1
        assert hit.lgap == 2
        assert (hit.ifir, hit.ilas) == (1, 6)

        assert len(hit.insertions) == 1
        ins = hit.insertions[0]
        assert (ins.query_pos, ins.hit_pos) == (3, 3)
        assert ins.sequence == "dWYe"
        assert ins.length == 2

        assert hit.display(2) == "d"
        assert hit.display(3) == "W"
        assert hit.display(5) == "e"
        assert hit.tags[3] is ColumnTag.INSERTION

    def test_alignment_not_modified(self):
        """Test building a hit leaves the alignment's residues untouched."""
        alignment = pair("ACD--EFG", "ACDWYEFG", "h/1-8")
        hit = build_hit(alignment, 1)
        assert alignment[1].residues == "ACDWYEFG"
        assert hit.sequence.residues == "ACDWYEFG"

    def test_insertion_positions_use_hit_numbering(self):
        """Test insertion positions follow query and hit residue numbers."""
        hit = build_hit(pair("MKTAYIAKQR-QISF", "---AYIAKQRWQISF", "h/5-16"), 1)

        ins = hit.insertions[0]
        assert (ins.query_pos, ins.hit_pos) == (10, 11)
        assert ins.sequence == "rWq"

    def test_insertion_without_anchor(self):
        """Test an insertion before the first aligned residue."""
        hit = build_hit(pair("A--CD", "-WWCD", "h/5-8"), 1)

        assert (hit.ifir, hit.ilas) == (2, 3)
        assert hit.lali == 4
        assert hit.identical == 2
        assert hit.ngap == 1
        assert hit.lgap == 2

        ins = hit.insertions[0]
        assert (ins.query_pos, ins.hit_pos) == (1, 4)
        assert ins.sequence == "WWc"

    def test_deletion_then_insertion_one_gap(self):
        """Test adjacent deletion and insertion count as one gap run."""
        hit = build_hit(pair("AC-DEF", "A-WDEF", "h/1-5"), 1)

        assert hit.ngap == 1
        assert hit.lgap == 2
        assert hit.identical == 4
        assert hit.lali == 6
        assert hit.ilas == 5
        assert hit.insertions[0].sequence == "aWd"

    def test_common_gaps_not_aligned(self):
        """Test columns gapped in both are excluded from lali."""
        hit = build_hit(pair("AC-DE", "AC-DE", "h/1-4"), 1)

        assert hit.lali == 4
        assert hit.tags[2] is ColumnTag.COMMON_GAP
        common = sum(1 for tag in hit.tags if tag is ColumnTag.COMMON_GAP)
        assert hit.lali + common == hit.last_column - hit.first_column + 1

    def test_similarity(self):
        """Test BLOSUM62 positive pairs count as similar."""
        hit = build_hit(pair("ILVK", "VIVR", "h/1-4"), 1)

        assert hit.identical == 1
        assert hit.similar == 4
        assert hit.ide == pytest.approx(0.25)
        assert hit.wsim == pytest.approx(1.0)
        assert hit.identical <= hit.similar <= hit.lali

    def test_uniref_prefix(self):
        """Test UniRef100_ ids are shortened and used as accession."""
        hit = build_hit(pair("ACDE", "ACDE", "UniRef100_P12345/3-6"), 1)
        assert hit.source_id == "P12345"
        assert hit.accession == "P12345"

    def test_metadata(self):
        """Test description, accession and length come from metadata."""
        meta = HitMetadata(title="Example protein", accession="ACC1", length=120)
        hit = build_hit(pair("ACDE", "ACDE", "sp/3-6"), 1, chain_id="B", metadata=meta)

        assert hit.description == "Example protein"
        assert hit.accession == "ACC1"
        assert hit.lseq2 == 120
        assert hit.chain_id == "B"

    def test_lseq2_defaults_to_jlas(self):
        """Test lseq2 falls back to the end of the hit range."""
        hit = build_hit(pair("ACDE", "ACDE", "h/3-6"), 1)
        assert hit.lseq2 == 6

    def test_empty_hit(self):
        """Test an all-gap hit is an empty sequence error."""
        with pytest.raises(EmptySequenceError):
            build_hit(pair("ACDE", "----", "h/1-1"), 1)

    def test_query_edge_gap(self):
        """Test a query starting with a gap is rejected."""
        with pytest.raises(FormatError, match="Leading"):
            build_hit(pair("-CDE", "ACDE", "h/1-4"), 1)

    def test_length_mismatch(self):
        """Test rows of different width are rejected."""
        with pytest.raises(FormatError):
            build_hit(pair("ACDE", "ACD", "h/1-3"), 1)

    def test_bad_id(self):
        """Test a hit id without range is rejected."""
        with pytest.raises(FormatError):
            build_hit(pair("ACDE", "ACDE", "nopos"), 1)


class TestRankHits:
    """Tests for hit ordering."""

    def make_hits(self):
        alignment = Alignment((
            Sequence("Q1", "ACDEFGHIKL"),
            Sequence("a/1-10", "ACDEFGHIKW"),
            Sequence("b/1-10", "ACDEFGHIKL"),
            Sequence("c/1-5", "ACDEF-----"),
            Sequence("d/1-10", "ACDEFGHIKW"),
        ))
        return [build_hit(alignment, i) for i in range(1, 5)]

    def test_order(self):
        """Test descending identity, then descending lali, stable otherwise."""
        ranked = rank_hits(self.make_hits())
        # b and c are both fully identical; b is longer
        assert [h.source_id for h in ranked] == ["b", "c", "a", "d"]
        assert [h.rank for h in ranked] == [1, 2, 3, 4]

    def test_stable(self):
        """Test ranking twice gives the same order."""
        first = [h.source_id for h in rank_hits(self.make_hits())]
        second = [h.source_id for h in rank_hits(self.make_hits())]
        assert first == second

    def test_cap(self):
        """Test only max_hits hits are kept."""
        ranked = rank_hits(self.make_hits(), max_hits=2)
        assert [h.source_id for h in ranked] == ["b", "c"]
