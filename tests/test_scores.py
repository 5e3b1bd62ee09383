"""
Tests for the amino acid alphabet and score calculations.

Tests cover:
- Canonical alphabet indexing and substitution tables
- Pairwise sequence weights
- Dayhoff conservation per column
- Residue counts, rounded distributions and entropy
"""

import math
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for hssp imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hssp.profile import (
    Alignment,
    AminoAcid,
    PROFILE_ORDER,
    Sequence,
    WeightMatrix,
    aa_index,
    blosum62,
    calculate_all_conservation,
    calculate_conservation,
    dayhoff,
    is_gap,
    percent_distribution,
    relative_entropy,
    shannon_entropy,
)
from hssp.profile.scores import MAX_ENTROPY, PAIR_BLOCK_ROWS, count_residues


def make_alignment(*rows):
    return Alignment(tuple(Sequence(f"s{i}", r) for i, r in enumerate(rows)))


class TestAlphabet:
    """Tests for the canonical alphabet."""

    def test_profile_order(self):
        """Test the profile prints amino acids in HSSP order."""
        assert PROFILE_ORDER == "VLIMFWYGAPSTCHRKQEND"
        assert AminoAcid.V == 0
        assert AminoAcid.D == 19

    def test_aa_index_case_insensitive(self):
        """Test lowercase letters share the uppercase index."""
        assert aa_index("V") == 0
        assert aa_index("d") == 19
        assert aa_index("k") == aa_index("K")

    def test_aa_index_non_canonical(self):
        """Test gaps and ambiguity codes have no index."""
        for letter in "-.XBZ* ":
            assert aa_index(letter) is None

    def test_is_gap(self):
        """Test all gap symbols are recognized."""
        for letter in "-~._":
            assert is_gap(letter)
        assert not is_gap("A")
        assert not is_gap(" ")

    def test_dayhoff_symmetric(self):
        """Test the Dayhoff table is symmetric with 1.5 on the diagonal."""
        for i in range(20):
            assert dayhoff(i, i) == 1.5
            for j in range(20):
                assert dayhoff(i, j) == dayhoff(j, i)

    def test_dayhoff_values(self):
        """Test a few Dayhoff entries."""
        assert dayhoff(AminoAcid.V, AminoAcid.L) == 0.8
        assert dayhoff(AminoAcid.V, AminoAcid.I) == 1.1

    def test_blosum62(self):
        """Test BLOSUM62 lookups."""
        assert blosum62("W", "W") == 11
        assert blosum62("a", "A") == 4
        assert blosum62("I", "V") > 0
        assert blosum62("W", "A") < 0

    def test_blosum62_outside_alphabet(self):
        """Test gap symbols score zero."""
        assert blosum62("A", "-") == 0.0


class TestWeightMatrix:
    """Tests for pairwise sequence weights."""

    def test_identical_sequences_weight_zero(self):
        """Test identical sequences get weight 0."""
        weights = WeightMatrix(make_alignment("ACDE", "ACDE"))
        assert weights(0, 1) == 0.0

    def test_partial_identity(self):
        """Test weight is one minus the identical fraction of query residues."""
        weights = WeightMatrix(make_alignment("ACDE", "ACDE", "AC--"))
        assert weights(0, 2) == pytest.approx(0.5)
        assert weights(1, 2) == pytest.approx(0.5)

    def test_symmetric(self):
        """Test w(i, j) == w(j, i)."""
        weights = WeightMatrix(make_alignment("ACDEF", "ACDKF", "GCDEW"))
        for i in range(3):
            for j in range(3):
                assert weights(i, j) == weights(j, i)

    def test_query_gap_columns_ignored(self):
        """Test columns where the query has a gap do not count."""
        weights = WeightMatrix(make_alignment("AC-D", "ACWD", "ACYD"))
        # Both hits match the query on all three query residues
        assert weights(1, 2) == 0.0

    def test_single_precision(self):
        """Test weights are kept in single precision."""
        weights = WeightMatrix(make_alignment("ACDE", "ACDE", "AC--"))
        assert weights.as_array().dtype == np.float32

    def test_matrix_read_only(self):
        """Test the exposed matrix cannot be modified."""
        weights = WeightMatrix(make_alignment("ACDE", "ACDE"))
        array = weights.as_array()
        assert array.shape == (2, 2)
        with pytest.raises(ValueError):
            array[0, 1] = 1.0


class TestConservation:
    """Tests for Dayhoff-weighted conservation."""

    def test_fully_conserved(self):
        """Test a column with one residue type scores 1."""
        alignment = make_alignment("AV", "AL", "AI")
        weights = WeightMatrix(alignment)
        assert calculate_conservation(alignment, 0, weights) == pytest.approx(1.0)

    def test_mixed_column(self):
        """Test V/L/I column with equal weights."""
        alignment = make_alignment("AV", "AL", "AI")
        weights = WeightMatrix(alignment)
        # (0.8 + 1.1 + 0.8) / (3 * 1.5)
        assert calculate_conservation(alignment, 1, weights) == pytest.approx(0.6)

    def test_single_informative_sequence(self):
        """Test a column with fewer than two residues defaults to 1."""
        alignment = make_alignment("AV", "A-", "A-")
        weights = WeightMatrix(alignment)
        assert calculate_conservation(alignment, 1, weights) == 1.0

    def test_zero_weights(self):
        """Test identical sequences (all weights zero) default to 1."""
        alignment = make_alignment("AV", "AV")
        weights = WeightMatrix(alignment)
        assert calculate_conservation(alignment, 1, weights) == 1.0

    def test_all_columns(self):
        """Test the batch helper matches the single column calculation."""
        alignment = make_alignment("AVKE", "ALKD", "AIRE")
        weights = WeightMatrix(alignment)
        batch = calculate_all_conservation(alignment, weights)
        single = [calculate_conservation(alignment, c, weights) for c in range(4)]
        assert batch == pytest.approx(single)

    def test_selected_columns(self):
        """Test conservation for selected columns only."""
        alignment = make_alignment("AVKE", "ALKD", "AIRE")
        weights = WeightMatrix(alignment)
        assert len(calculate_all_conservation(alignment, weights, [1, 3])) == 2

    def test_many_sequences(self):
        """Test alignments spanning several row blocks match the pairwise sum."""
        rows = ["ACD"] + [
            PROFILE_ORDER[i % 20] + PROFILE_ORDER[(i * 7) % 20] + ("-" if i % 5 == 0 else PROFILE_ORDER[(i * 3) % 20])
            for i in range(1, PAIR_BLOCK_ROWS + 45)
        ]
        alignment = make_alignment(*rows)
        weights = WeightMatrix(alignment)

        for column in range(3):
            letters = [row[column] for row in rows]
            present = [i for i, c in enumerate(letters) if aa_index(c) is not None]
            conservation = weight = 0.0
            for n, i in enumerate(present):
                for j in present[n + 1:]:
                    conservation += weights(i, j) * dayhoff(aa_index(letters[i]), aa_index(letters[j]))
                    weight += weights(i, j) * 1.5

            expected = conservation / weight if weight else 1.0
            assert calculate_conservation(alignment, column, weights) == pytest.approx(expected, rel=1e-6)


class TestDistribution:
    """Tests for residue counts and percentages."""

    def test_count_residues(self):
        """Test non-canonical letters are excluded from nocc."""
        counts, nocc = count_residues(["A", "a", "-", "X", " ", "V"])
        assert nocc == 3
        assert counts[AminoAcid.A] == 2
        assert counts[AminoAcid.V] == 1

    def test_percentages(self):
        """Test counts are rounded percentages of nocc."""
        counts = [0] * 20
        counts[0], counts[1] = 1, 2
        dist = percent_distribution(counts, 3)
        assert dist[0] == 33
        assert dist[1] == 67

    def test_round_half_up(self):
        """Test 12.5% rounds up to 13."""
        counts = [0] * 20
        counts[0], counts[1] = 1, 7
        dist = percent_distribution(counts, 8)
        assert dist[0] == 13
        assert dist[1] == 88

    def test_only_query(self):
        """Test a single residue gives 100 for that amino acid."""
        counts, nocc = count_residues(["K"])
        dist = percent_distribution(counts, nocc)
        assert dist[AminoAcid.K] == 100
        assert sum(dist) == 100
        assert shannon_entropy(counts) == 0.0

    def test_empty(self):
        """Test nocc 0 gives an all zero distribution."""
        assert percent_distribution([0] * 20, 0) == (0,) * 20

    def test_sum_near_100(self):
        """Test rounded percentages sum to about 100."""
        counts = [3, 1, 1, 2, 0, 0, 0, 5, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1]
        nocc = sum(counts)
        assert abs(sum(percent_distribution(counts, nocc)) - 100) <= 3


class TestEntropy:
    """Tests for Shannon entropy."""

    def test_two_equal(self):
        """Test two equally frequent residues give ln 2."""
        assert shannon_entropy([1, 1] + [0] * 18) == pytest.approx(math.log(2))

    def test_maximum(self):
        """Test all twenty residues equally frequent gives ln 20."""
        entropy = shannon_entropy([2] * 20)
        assert entropy == pytest.approx(MAX_ENTROPY)
        assert relative_entropy(entropy) == 100

    def test_relative(self):
        """Test relative entropy is rounded to an integer percentage."""
        assert relative_entropy(0.0) == 0
        assert relative_entropy(math.log(2)) == 23

    def test_bounds(self):
        """Test entropy stays within [0, ln 20] for random counts."""
        rng = np.random.default_rng(42)
        for _ in range(50):
            counts = [int(c) for c in rng.integers(0, 10, size=20)]
            entropy = shannon_entropy(counts)
            assert 0.0 <= entropy <= MAX_ENTROPY + 1e-12
            assert 0 <= relative_entropy(entropy) <= 100
