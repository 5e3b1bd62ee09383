"""
Tests for per-residue profiles.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for hssp imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hssp.exceptions import AlignmentMismatchError
from hssp.profile import (
    Alignment,
    AminoAcid,
    Chain,
    Protein,
    Residue,
    ResidueProfile,
    Sequence,
    blank_structure_line,
    build_chain_profiles,
    build_hit,
)


def chain_profiles(query, *hits, chain=None):
    rows = [Sequence("Q1", query)] + [Sequence(hit_id, residues) for hit_id, residues in hits]
    alignment = Alignment(tuple(rows))
    built = [build_hit(alignment, i) for i in range(1, len(alignment))]
    if chain is None:
        chain = Protein.from_sequence(alignment.query.ungapped()).chains[0]
    return build_chain_profiles(alignment, built, chain)


class TestResidueProfile:
    """Tests for one residue's statistics."""

    def test_only_query_informative(self):
        """Test a residue no hit covers has the query at 100 percent."""
        profiles = chain_profiles("ACDEF", ("h/1-3", "--DEF"))

        first = profiles[0]
        assert first.letter == "A"
        assert first.occupancy == 1
        assert first.distribution[AminoAcid.A] == 100
        assert sum(first.distribution) == 100
        assert first.entropy == 0.0
        assert first.relative_entropy == 0

    def test_covering_hits_counted(self):
        """Test covering hits add to the distribution."""
        profiles = chain_profiles("ACDEF", ("h/1-3", "--DEF"), ("g/1-5", "ACKEF"))

        third = profiles[2]
        assert third.occupancy == 3
        assert third.distribution[AminoAcid.D] == 67
        assert third.distribution[AminoAcid.K] == 33
        assert third.entropy > 0

    def test_deletions(self):
        """Test hits gapped at the residue count as deletions."""
        profiles = chain_profiles("ACDEF", ("h/1-4", "AC-EF"))

        third = profiles[2]
        assert third.deletions == 1
        assert third.occupancy == 1
        assert third.distribution[AminoAcid.D] == 100

    def test_flank_not_deletion(self):
        """Test a hit's unaligned flank is neither deletion nor occupancy."""
        profiles = chain_profiles("ACDEF", ("h/1-3", "--DEF"))
        assert profiles[0].deletions == 0
        assert profiles[1].deletions == 0

    def test_insertions_before_gap(self):
        """Test insertion anchors count only when the next query column is a gap."""
        profiles = chain_profiles("ACD--EF", ("h/1-7", "ACDWYEF"))

        anchor = profiles[2]
        assert anchor.letter == "D"
        assert anchor.insertions == 1
        assert anchor.occupancy == 2
        assert anchor.distribution[AminoAcid.D] == 100

        closing = profiles[3]
        assert closing.letter == "E"
        assert closing.insertions == 0

    def test_distribution_sums(self):
        """Test distributions sum to about 100 for every residue."""
        profiles = chain_profiles(
            "ACDEFGHIK",
            ("a/1-9", "ACDEFGHIK"),
            ("b/1-9", "ACNEFGHLK"),
            ("c/1-7", "SCDQFGH--"),
        )
        for res in profiles:
            assert res.occupancy > 0
            assert abs(sum(res.distribution) - 100) <= 2


class TestChainProfiles:
    """Tests for whole-chain profiling."""

    def test_sequence_numbers(self):
        """Test residues are numbered from first_seq_no in order."""
        alignment = Alignment((Sequence("Q1", "ACDEF"), Sequence("h/1-5", "ACDEF")))
        chain = Protein.from_sequence("ACDEF").chains[0]
        profiles = build_chain_profiles(alignment, [build_hit(alignment, 1)], chain, first_seq_no=7)

        assert [p.seq_no for p in profiles] == [7, 8, 9, 10, 11]
        assert [p.pdb_no for p in profiles] == [1, 2, 3, 4, 5]
        assert all(p.chain_id == "A" for p in profiles)

    def test_chain_break_on_numbering_gap(self):
        """Test a jump in residue numbering inserts a chain break."""
        residues = [Residue(n, aa) for n, aa in zip((1, 2, 3, 10, 11), "ACDEF")]
        chain = Chain(chain_id="B", residues=residues)
        profiles = chain_profiles("ACDEF", ("h/1-5", "ACDEF"), chain=chain)

        assert len(profiles) == 6
        assert profiles[3].is_chain_break
        assert profiles[3].seq_no == 4
        assert [p.pdb_no for p in profiles if not p.is_chain_break] == [1, 2, 3, 10, 11]
        assert profiles[5].seq_no == 6

    def test_column_mapping_skips_query_gaps(self):
        """Test each residue is tied to its alignment column."""
        profiles = chain_profiles("AC--DE", ("h/1-6", "ACWWDE"))
        assert [p.column for p in profiles] == [0, 1, 4, 5]

    def test_length_mismatch(self):
        """Test a chain that does not match the query length is rejected."""
        alignment = Alignment((Sequence("Q1", "ACDEF"), Sequence("h/1-5", "ACDEF")))
        chain = Protein.from_sequence("ACDE").chains[0]
        with pytest.raises(AlignmentMismatchError):
            build_chain_profiles(alignment, [], chain)

    def test_conservation_weight(self):
        """Test the Dayhoff conservation of each column is attached."""
        alignment = Alignment((
            Sequence("Q1", "AV"),
            Sequence("a/1-2", "AL"),
            Sequence("b/1-2", "AI"),
        ))
        chain = Protein.from_sequence("AV").chains[0]
        profiles = build_chain_profiles(alignment, [], chain)

        assert profiles[0].conservation_weight == pytest.approx(1.0)
        assert profiles[0].variability == 0
        assert profiles[1].conservation_weight == pytest.approx(0.6)

    def test_structure_callable(self):
        """Test a custom structure annotation is stored per residue."""
        alignment = Alignment((Sequence("Q1", "AC"), Sequence("h/1-2", "AC")))
        chain = Protein.from_sequence("AC").chains[0]
        profiles = build_chain_profiles(
            alignment, [], chain, structure=lambda chain_id, res: f"{chain_id}{res.number}".ljust(34)
        )
        assert profiles[1].structure == "A2".ljust(34)


class TestStructureLine:
    """Tests for the blank structure annotation."""

    def test_width(self):
        """Test the annotation is 34 characters wide."""
        assert len(blank_structure_line("A", Residue(12, "K"))) == 34

    def test_content(self):
        """Test residue number, chain and amino acid are filled in."""
        line = blank_structure_line("A", Residue(12, "K"))
        assert line.startswith("   12 A K")
        assert line.endswith("   0   0    0 ")

    def test_chain_break_profile(self):
        """Test a chain break carries only its sequence number."""
        res = ResidueProfile.chain_break(5)
        assert res.is_chain_break
        assert res.seq_no == 5
        assert res.occupancy == 0
