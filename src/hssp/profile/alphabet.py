"""
Amino acid alphabet and substitution tables used by the profile builder.

The canonical alphabet is ordered the way the HSSP sequence profile prints
its columns: V L I M F W Y G A P S T C H R K Q E N D. Any other character,
including the gap symbols, has no index.
"""

from enum import IntEnum
from functools import lru_cache
from typing import Optional

from Bio.Align import substitution_matrices


GAP_CHARACTERS = frozenset("-~._")


class AminoAcid(IntEnum):
    """Canonical amino acids in HSSP profile column order."""
    V = 0
    L = 1
    I = 2
    M = 3
    F = 4
    W = 5
    Y = 6
    G = 7
    A = 8
    P = 9
    S = 10
    T = 11
    C = 12
    H = 13
    R = 14
    K = 15
    Q = 16
    E = 17
    N = 18
    D = 19


PROFILE_ORDER = "".join(aa.name for aa in AminoAcid)

_INDEX = {letter: i for i, letter in enumerate(PROFILE_ORDER)}
_INDEX.update({letter.lower(): i for i, letter in enumerate(PROFILE_ORDER)})


def aa_index(letter: str) -> Optional[int]:
    """Return the profile index of a residue letter, or None if not canonical.

    Lowercase letters map to the same index as their uppercase form.
    """
    return _INDEX.get(letter)


def is_gap(letter: str) -> bool:
    """Return True for any of the gap symbols - ~ . _"""
    return letter in GAP_CHARACTERS


# Dayhoff similarity matrix as used by maxhom, lower triangle in profile order.
_DAYHOFF_ROWS = (
    (1.5,),
    (0.8, 1.5),
    (1.1, 0.8, 1.5),
    (0.6, 1.3, 0.6, 1.5),
    (0.2, 1.2, 0.7, 0.5, 1.5),
    (-0.8, 0.5, -0.5, -0.3, 1.3, 1.5),
    (-0.1, 0.3, 0.1, -0.1, 1.4, 1.1, 1.5),
    (0.2, -0.5, -0.3, -0.3, -0.6, -1.0, -0.7, 1.5),
    (0.2, -0.1, 0.0, 0.0, -0.5, -0.8, -0.3, 0.7, 1.5),
    (0.1, -0.3, -0.2, -0.2, -0.7, -0.8, -0.8, 0.3, 0.5, 1.5),
    (-0.1, -0.4, -0.1, -0.3, -0.3, 0.3, -0.4, 0.6, 0.4, 0.4, 1.5),
    (0.2, -0.1, 0.2, 0.0, -0.3, -0.6, -0.3, 0.4, 0.4, 0.3, 0.3, 1.5),
    (0.2, -0.8, 0.2, -0.6, -0.1, -1.2, 1.0, 0.2, 0.3, 0.1, 0.7, 0.2, 1.5),
    (-0.3, -0.2, -0.3, -0.3, -0.1, -0.1, 0.3, -0.2, -0.1, 0.2, -0.2, -0.1, -0.1, 1.5),
    (-0.3, -0.4, -0.3, 0.2, -0.5, 1.4, -0.6, -0.3, -0.3, 0.3, 0.1, -0.1, -0.3, 0.5, 1.5),
    (-0.2, -0.3, -0.2, 0.2, -0.7, 0.1, -0.6, -0.1, 0.0, 0.1, 0.2, 0.2, -0.6, 0.1, 0.8, 1.5),
    (-0.2, -0.1, -0.3, 0.0, -0.8, -0.5, -0.6, 0.2, 0.2, 0.3, -0.1, -0.1, -0.6, 0.7, 0.4, 0.4, 1.5),
    (-0.2, -0.3, -0.2, -0.2, -0.7, -1.1, -0.5, 0.5, 0.3, 0.1, 0.2, 0.2, -0.6, 0.4, 0.0, 0.3, 0.7, 1.5),
    (-0.3, -0.4, -0.3, -0.3, -0.5, -0.3, -0.1, 0.4, 0.2, 0.0, 0.3, 0.2, -0.3, 0.5, 0.1, 0.4, 0.4, 0.5, 1.5),
    (-0.2, -0.5, -0.2, -0.4, -1.0, -1.1, -0.5, 0.7, 0.3, 0.1, 0.2, 0.2, -0.5, 0.4, 0.0, 0.3, 0.7, 1.0, 0.7, 1.5),
)

DAYHOFF_MAX = 1.5


def dayhoff(i: int, j: int) -> float:
    """Dayhoff similarity between two canonical amino acid indices."""
    if j > i:
        i, j = j, i
    return _DAYHOFF_ROWS[i][j]


@lru_cache(maxsize=1)
def _blosum62():
    return substitution_matrices.load("BLOSUM62")


def blosum62(a: str, b: str) -> float:
    """BLOSUM62 score for two residue letters (case-insensitive).

    Letters outside the matrix alphabet score 0.
    """
    matrix = _blosum62()
    a, b = a.upper(), b.upper()
    if a not in matrix.alphabet or b not in matrix.alphabet:
        return 0.0
    return float(matrix[a, b])
