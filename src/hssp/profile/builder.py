"""
HSSP report assembly.

This module provides the high-level entry points. It ties together the
homology search, Stockholm parsing, hit construction and residue profiles
for every chain of a protein and collects the result in an HsspReport
ready to be written.

Chains are processed in order: the sequence numbers of a chain's residues
continue where the previous chain stopped, with a chain-break entry in
between.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence as SequenceType, TextIO, Tuple, Union

from ..config import Config, get_config
from ..exceptions import FormatError, ProcessError, SearchTimeoutError
from .cluster import select_unique_chains
from .hits import build_hit, parse_hit_id, rank_hits
from .models import Alignment, Chain, Hit, HitMetadata, HsspReport, Protein, ResidueProfile
from .residues import StructureLine, build_chain_profiles
from .stockholm import (
    adjust_alignment_for_chain,
    find_alignment_file,
    parse_chain_alignment_mapping,
    parse_stockholm,
    read_stockholm,
)

logger = logging.getLogger(__name__)

AlignmentSource = Union[str, Path, TextIO]


def lookup_metadata(metadata: Any, seq_id: str) -> Optional[HitMetadata]:
    """Ask a metadata collaborator about a hit id; None when unknown."""
    if metadata is None:
        return None
    name, _, _ = parse_hit_id(seq_id)
    return metadata.metadata(name)


def chain_to_hits(alignment: Alignment, chain: Chain, metadata: Any = None) -> List[Hit]:
    """Build a Hit for every non-query sequence of a chain's alignment.

    Hits the databank does not know keep the ``#=GS DE`` description from
    the Stockholm file, if any.
    """
    hits = []
    for index in range(1, len(alignment)):
        seq = alignment[index]
        meta = lookup_metadata(metadata, seq.id)
        if meta is None and seq.description:
            meta = HitMetadata(title=seq.description)
        hits.append(build_hit(alignment, index, chain_id=chain.chain_id, metadata=meta))

    logger.info(f"Continuing with {len(hits)} hits for chain {chain.chain_id}")
    return hits


def _structure_callable(structure: Any) -> Optional[StructureLine]:
    if structure is None:
        return None
    if callable(structure):
        return structure
    return structure.structure_line


def _databank_version(metadata: Any, config: Config) -> str:
    return getattr(metadata, "version", None) or config.databank


class _ReportCollector:
    """Accumulates hits and residue profiles over the chains of one protein."""

    def __init__(self, structure: Any = None):
        self.structure = _structure_callable(structure)
        self.hits: List[Hit] = []
        self.residues: List[ResidueProfile] = []
        self.used_chains: List[str] = []
        self.seq_length = 0

    def add_chain(self, alignment: Alignment, chain: Chain, metadata: Any = None) -> None:
        hits = chain_to_hits(alignment, chain, metadata)

        if self.residues:
            self.residues.append(ResidueProfile.chain_break(len(self.residues) + 1))

        profiles = build_chain_profiles(
            alignment,
            hits,
            chain,
            first_seq_no=len(self.residues) + 1,
            structure=self.structure,
        )

        self.hits.extend(hits)
        self.residues.extend(profiles)
        self.used_chains.append(chain.chain_id)
        self.seq_length += len(chain)

    def report(self, protein: Protein, nchain: int, databank_version: str, config: Config) -> HsspReport:
        hits = rank_hits(self.hits, max_hits=config.max_hits)
        return HsspReport(
            protein_id=protein.id,
            databank_version=databank_version,
            seq_length=self.seq_length,
            nchain=nchain,
            kchain=len(self.used_chains),
            used_chains=list(self.used_chains),
            hits=hits,
            residues=self.residues,
            description=protein.description_lines(),
            contact=config.contact,
        )


def run_search(search: Any, sequence: str, config: Config) -> str:
    """Run one homology search with the configured databank and limits."""
    return search.run_search(
        sequence,
        config.databank,
        config.iterations,
        config.max_run_time,
    )


def build_hssp_from_sequence(
    sequence: str,
    search: Any,
    databank: Any = None,
    config: Optional[Config] = None,
) -> HsspReport:
    """Build a report for a bare sequence.

    The sequence becomes chain A of protein UNKN, numbered from 1.

    Args:
        sequence: Query sequence, one-letter codes
        search: HomologySearch collaborator
        databank: MetadataLookup collaborator, optional
        config: Configuration, the global one by default

    Returns:
        HsspReport for the single chain
    """
    config = config or get_config()
    if not sequence:
        raise FormatError("Empty query sequence")

    protein = Protein.from_sequence(sequence)
    chain = protein.chains[0]

    text = run_search(search, sequence, config)
    parsed = read_stockholm(io.StringIO(text))

    collector = _ReportCollector()
    collector.add_chain(parsed.alignment, chain, databank)
    return collector.report(protein, 1, _databank_version(databank, config), config)


def _search_unique_chains(
    chains: SequenceType[Chain],
    search: Any,
    config: Config,
    skip_failed_chains: bool,
) -> Dict[str, str]:
    """Run a search for every chain, concurrently when max_workers > 1.

    Returns:
        Stockholm text per chain id; failed chains are missing when
        ``skip_failed_chains`` is set

    Raises:
        SearchTimeoutError, ProcessError: The first failure in chain order,
            unless skipping and at least one search succeeded
    """
    results: Dict[str, str] = {}
    failures: Dict[str, Exception] = {}

    if config.max_workers > 1 and len(chains) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = {
                executor.submit(run_search, search, chain.sequence, config): chain.chain_id
                for chain in chains
            }
            for future in as_completed(futures):
                chain_id = futures[future]
                try:
                    results[chain_id] = future.result()
                except (SearchTimeoutError, ProcessError) as e:
                    failures[chain_id] = e
    else:
        for chain in chains:
            try:
                results[chain.chain_id] = run_search(search, chain.sequence, config)
            except (SearchTimeoutError, ProcessError) as e:
                failures[chain.chain_id] = e
                if not skip_failed_chains:
                    break

    errors = [(chain.chain_id, failures[chain.chain_id]) for chain in chains if chain.chain_id in failures]

    # A report needs at least one searched chain
    if errors and (not skip_failed_chains or not results):
        raise errors[0][1]

    for chain_id, error in errors:
        logger.error(f"Search for chain {chain_id} failed, skipping: {error}")

    return results


def build_hssp_for_protein(
    protein: Protein,
    search: Any,
    databank: Any = None,
    config: Optional[Config] = None,
    structure: Any = None,
    skip_failed_chains: bool = False,
) -> HsspReport:
    """Build a report for all chains of a protein.

    Chains shorter than ``config.min_seq_length`` are ignored and chains
    whose sequence is contained in another chain share its search, so
    only one search runs per unique sequence.

    Args:
        protein: The protein and its chains
        search: HomologySearch collaborator
        databank: MetadataLookup collaborator, optional
        config: Configuration, the global one by default
        structure: StructureAnnotator (or callable), blank by default
        skip_failed_chains: Leave out chains whose search timed out or
            failed instead of aborting; the first failure is still
            raised when no search succeeded

    Returns:
        HsspReport over the unique chains

    Raises:
        FormatError: If no chain is long enough or a Stockholm result is bad
        SearchTimeoutError: If a search timed out (unless skipped)
        ProcessError: If a search failed (unless skipped)
    """
    config = config or get_config()

    eligible, unique = select_unique_chains(protein.chains, config.min_seq_length)
    logger.info(f"Searching {len(unique)} unique sequence(s) of {len(eligible)} chain(s) in {protein.id}")

    texts = _search_unique_chains(unique, search, config, skip_failed_chains)

    collector = _ReportCollector(structure)
    for chain in unique:
        if chain.chain_id not in texts:
            continue
        parsed = read_stockholm(io.StringIO(texts[chain.chain_id]))
        collector.add_chain(parsed.alignment, chain, databank)

    return collector.report(protein, len(eligible), _databank_version(databank, config), config)


def resolve_chain_alignments(
    chain_alignments: Union[str, SequenceType[str], Mapping[str, AlignmentSource]],
    data_dir: Optional[Union[str, Path]] = None,
) -> List[Tuple[str, AlignmentSource]]:
    """Turn chain/alignment pairs into (chain id, source) tuples.

    ``"A=1abc_A,B=1abc_B"`` style pairs name Stockholm files in
    ``data_dir``; a mapping is used as given.

    Raises:
        FormatError: If a pair is malformed
        FileNotFoundError: If a named alignment is not in ``data_dir``
    """
    if isinstance(chain_alignments, dict):
        return list(chain_alignments.items())

    data_dir = Path(data_dir) if data_dir else Path(".")
    pairs = []
    for chain_id, name in parse_chain_alignment_mapping(chain_alignments).items():
        path = find_alignment_file(data_dir, name)
        if path is None:
            raise FileNotFoundError(f"Stockholm file '{data_dir / name}.sto.bz2' not found")
        pairs.append((chain_id, path))
    return pairs


def build_hssp_from_alignments(
    protein: Protein,
    chain_alignments: Union[str, SequenceType[str], Mapping[str, AlignmentSource]],
    metadata: Any = None,
    config: Optional[Config] = None,
    structure: Any = None,
    data_dir: Optional[Union[str, Path]] = None,
) -> HsspReport:
    """Build a report from precomputed Stockholm alignments, one per chain.

    Each alignment is trimmed to its chain when its query was a few
    residues longer than the chain.

    Args:
        protein: The protein and its chains
        chain_alignments: Chain id to alignment (path, stream or text), or
            ``"A=name"`` pairs resolved in ``data_dir``
        metadata: MetadataLookup collaborator, optional
        config: Configuration, the global one by default
        structure: StructureAnnotator (or callable), blank by default
        data_dir: Directory holding ``<name>.sto[.bz2|.gz]`` files

    Returns:
        HsspReport over the listed chains, in the listed order

    Raises:
        FormatError: On malformed pairs or Stockholm input
        AlignmentMismatchError: If an alignment does not fit its chain
        KeyError: If the protein has no such chain
    """
    config = config or get_config()

    collector = _ReportCollector(structure)
    for chain_id, source in resolve_chain_alignments(chain_alignments, data_dir):
        chain = protein.get_chain(chain_id)
        parsed = parse_stockholm(source)
        alignment = adjust_alignment_for_chain(parsed.alignment, chain.sequence)
        collector.add_chain(alignment, chain, metadata)

    return collector.report(protein, len(protein.chains), _databank_version(metadata, config), config)
