"""
Score calculations for HSSP residue profiles.

This module provides:
- The pairwise sequence weight matrix used to down-weight near duplicates
- Dayhoff-weighted conservation per query column
- Shannon entropy and its relative form as printed in the profile
- Rounded percentage distributions over the canonical alphabet
"""

import logging
import math
from typing import List, Optional, Sequence as SequenceType, Tuple

import numpy as np

from .alphabet import DAYHOFF_MAX, GAP_CHARACTERS, PROFILE_ORDER, aa_index, dayhoff
from .models import Alignment

logger = logging.getLogger(__name__)

MAX_ENTROPY = math.log(20)

# Rows of the pair triangle handled per step of the conservation sum
PAIR_BLOCK_ROWS = 256

_DAYHOFF = np.array([[dayhoff(i, j) for j in range(20)] for i in range(20)], dtype=np.float64)

# Byte to profile index, -1 for anything that is not a canonical amino acid
_CODE = np.full(256, -1, dtype=np.int8)
for _i, _letter in enumerate(PROFILE_ORDER):
    _CODE[ord(_letter)] = _i
    _CODE[ord(_letter.lower())] = _i

_GAP_BYTES = np.array([ord(g) for g in GAP_CHARACTERS], dtype=np.uint8)


def _encode(alignment: Alignment) -> np.ndarray:
    """Alignment as an N x width array of bytes."""
    rows = [np.frombuffer(seq.residues.encode("latin-1"), dtype=np.uint8) for seq in alignment]
    return np.vstack(rows)


class WeightMatrix:
    """Symmetric pairwise weights for the sequences of one alignment.

    ``weight(i, j) = 1 - d / L`` where ``L`` is the number of query columns
    holding a residue and ``d`` the number of those columns where sequences
    ``i`` and ``j`` carry the same residue. Identical sequences get weight 0,
    so near duplicates contribute little to the conservation score.
    Weights are stored as float32.
    """

    def __init__(self, alignment: Alignment):
        self.size = len(alignment)
        self._weights = self._calculate(alignment)

    @staticmethod
    def _calculate(alignment: Alignment) -> np.ndarray:
        data = _encode(alignment)
        query_columns = ~np.isin(data[0], _GAP_BYTES)
        length = int(query_columns.sum())

        data = data[:, query_columns]
        present = ~np.isin(data, _GAP_BYTES)

        n = data.shape[0]
        weights = np.ones((n, n), dtype=np.float32)
        if length == 0:
            return weights

        for i in range(n - 1):
            same = (data[i + 1:] == data[i]) & present[i]
            weights[i, i + 1:] = 1.0 - same.sum(axis=1) / length
            weights[i + 1:, i] = weights[i, i + 1:]

        return weights

    def __call__(self, i: int, j: int) -> float:
        return float(self._weights[i, j])

    def weight(self, i: int, j: int) -> float:
        return self(i, j)

    def as_array(self) -> np.ndarray:
        """A read-only view of the full matrix."""
        view = self._weights.view()
        view.flags.writeable = False
        return view


def calculate_conservation(
    alignment: Alignment,
    column: int,
    weights: WeightMatrix,
    encoded: Optional[np.ndarray] = None,
) -> float:
    """Dayhoff-weighted conservation of one alignment column.

    Sums ``w(i,j) * D(a_i, a_j)`` over all pairs of sequences that both
    have a canonical residue at the column and divides by the same sum with
    ``D`` replaced by its maximum, 1.5.

    Returns:
        The conservation weight, 1.0 when fewer than two sequences are
        informative (or all pair weights are zero)
    """
    if encoded is None:
        codes = _CODE[_encode(alignment)[:, column]]
    else:
        codes = encoded[:, column]

    informative = np.nonzero(codes >= 0)[0]
    count = len(informative)
    if count < 2:
        return 1.0

    aa = codes[informative]
    matrix = weights.as_array()
    positions = np.arange(count)

    # Pairs i < j, a block of rows at a time
    weight = conservation = 0.0
    for start in range(0, count - 1, PAIR_BLOCK_ROWS):
        rows = positions[start:min(start + PAIR_BLOCK_ROWS, count - 1)]
        w = matrix[np.ix_(informative[rows], informative)]
        w = np.where(positions > rows[:, None], w, 0)
        weight += float(w.sum(dtype=np.float64))
        conservation += float((w * _DAYHOFF[np.ix_(aa[rows], aa)]).sum())

    weight *= DAYHOFF_MAX
    if weight == 0:
        return 1.0
    return conservation / weight


def calculate_all_conservation(
    alignment: Alignment,
    weights: WeightMatrix,
    columns: Optional[SequenceType[int]] = None,
) -> List[float]:
    """Conservation weight for the given columns (default: every column)."""
    if columns is None:
        columns = range(alignment.width)
    codes = _CODE[_encode(alignment)]
    return [calculate_conservation(alignment, column, weights, encoded=codes) for column in columns]


def count_residues(letters: SequenceType[str]) -> Tuple[List[int], int]:
    """Count canonical residues in profile order.

    Returns:
        Tuple of (counts, nocc) where nocc is the number of letters that
        were canonical amino acids; everything else is ignored
    """
    counts = [0] * 20
    nocc = 0
    for letter in letters:
        ix = aa_index(letter)
        if ix is None:
            continue
        counts[ix] += 1
        nocc += 1
    return counts, nocc


def percent_distribution(counts: SequenceType[int], nocc: int) -> Tuple[int, ...]:
    """Convert counts to percentages of nocc, rounded half up."""
    if nocc == 0:
        return (0,) * len(counts)
    return tuple(int(100.0 * count / nocc + 0.5) for count in counts)


def shannon_entropy(counts: SequenceType[int]) -> float:
    """Shannon entropy (natural log) of a count vector.

    H = -sum(p_a * ln(p_a)) over nonzero frequencies. Ranges from 0 for a
    single residue type to ln(20) when all 20 amino acids are equally
    frequent.
    """
    total = sum(counts)
    if total == 0:
        return 0.0

    entropy = 0.0
    for count in counts:
        if count > 0:
            freq = count / total
            entropy -= freq * math.log(freq)
    return entropy


def relative_entropy(entropy: float) -> int:
    """Entropy as a rounded percentage of its maximum, ln(20)."""
    return int(100.0 * entropy / MAX_ENTROPY + 0.5)
