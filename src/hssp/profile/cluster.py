"""
Deduplication of chain sequences before homology searches.

Chains whose sequence is fully contained in another chain's sequence share
its search; only the containing chains are searched and profiled.
Partially overlapping sequences are not merged.
"""

import logging
from typing import List, Sequence as SequenceType, Tuple

from ..exceptions import FormatError
from .models import Chain

logger = logging.getLogger(__name__)


def cluster_sequences(sequences: SequenceType[str]) -> List[int]:
    """Map every sequence to the index of a sequence containing it.

    Repeatedly looks for a pair where one sequence is a substring of the
    other, until a full sweep finds none. Each contained sequence is cleared
    and points to its container; a sequence that is not contained in any
    other points to itself.

    Args:
        sequences: Sequences in chain order

    Returns:
        List ``ix`` where ``ix[j]`` is the index the j-th sequence was merged
        into (``j`` itself for representatives)
    """
    work = list(sequences)
    ix = list(range(len(work)))

    found = True
    while found:
        found = False
        for i in range(len(work) - 1):
            for j in range(i + 1, len(work)):
                a, b = work[i], work[j]
                if not a or not b:
                    continue

                if b in a:
                    work[j] = ""
                    ix[j] = i
                    found = True
                elif a in b:
                    work[i] = ""
                    ix[i] = j
                    found = True

                if found:
                    break
            if found:
                break

    return ix


def unique_representatives(ix: SequenceType[int]) -> List[int]:
    """Indices that were not merged into another sequence, in order."""
    return [i for i, target in enumerate(ix) if target == i]


def select_unique_chains(chains: SequenceType[Chain], min_length: int) -> Tuple[List[Chain], List[Chain]]:
    """Pick the chains that need their own homology search.

    Chains shorter than ``min_length`` are ignored. Among the rest, chains
    contained in a longer chain are dropped.

    Returns:
        Tuple of (eligible_chains, unique_chains), both in input order

    Raises:
        FormatError: If no chain reaches the minimum length
    """
    eligible = [chain for chain in chains if len(chain) >= min_length]
    if not eligible:
        raise FormatError(f"Not enough sequences in protein of length {min_length}")

    ix = cluster_sequences([chain.sequence for chain in eligible])
    unique = [eligible[i] for i in unique_representatives(ix)]

    if len(unique) < len(eligible):
        merged = [c.chain_id for c in eligible if c not in unique]
        logger.info(f"Chains {', '.join(merged)} are contained in other chains and share their search")

    return eligible, unique
