"""
HSSP Profile Module: homology-derived residue profiles from Stockholm MSAs.

This module turns the alignment produced by a homology search into the
contents of an HSSP file.

Key Features:
- Parse Stockholm alignments and filter hits by length-dependent identity
- Summarize each hit (identity, similarity, gaps, insertions)
- Profile each query residue (distribution, entropy, conservation)
- Deduplicate chains so each unique sequence is searched once
- Write the fixed-column HSSP report, or TSV tables via pandas

Example Usage:
    >>> from hssp.profile import build_hssp_from_alignments, write_hssp
    >>> from hssp.profile import Protein
    >>> protein = Protein.from_sequence("MKTAYIAKQRQISFVKSHFSRQ", protein_id="1ABC")
    >>> report = build_hssp_from_alignments(protein, {"A": "1abc_A.sto"})
    >>> with open("1abc.hssp", "w") as f:
    ...     write_hssp(report, f)

    # Or with a search:
    >>> from hssp.external import JackhmmerSearch
    >>> from hssp.profile import build_hssp_from_sequence
    >>> report = build_hssp_from_sequence("MKTAYIAKQRQISFVKSHFSRQ", JackhmmerSearch.from_config(get_config()))
"""

# Data models
from .models import (
    Alignment,
    AlignmentValidationResult,
    Chain,
    ColumnTag,
    DroppedSequence,
    Hit,
    HitMetadata,
    HsspReport,
    Insertion,
    ParsedAlignment,
    Protein,
    Residue,
    ResidueProfile,
    Sequence,
)

# Alphabet
from .alphabet import AminoAcid, PROFILE_ORDER, aa_index, blosum62, dayhoff, is_gap

# Stockholm parsing
from .stockholm import (
    adjust_alignment_for_chain,
    filter_homologs,
    homology_score,
    homology_threshold,
    parse_chain_alignment_mapping,
    parse_stockholm,
    read_stockholm,
    validate_alignment,
)

# Score calculations
from .scores import (
    WeightMatrix,
    calculate_all_conservation,
    calculate_conservation,
    percent_distribution,
    relative_entropy,
    shannon_entropy,
)

# Hits and residue profiles
from .hits import build_hit, parse_hit_id, rank_hits
from .residues import blank_structure_line, build_chain_profiles, build_residue_profile
from .cluster import cluster_sequences, select_unique_chains, unique_representatives

# Output
from .report import format_hssp, save_hssp, write_hssp
from .export import HIT_COLUMNS, hits_to_dataframe, profiles_to_dataframe, write_profile_tsv

# High-level assembly
from .builder import (
    build_hssp_for_protein,
    build_hssp_from_alignments,
    build_hssp_from_sequence,
    chain_to_hits,
)


__all__ = [
    # Models
    "Alignment",
    "AlignmentValidationResult",
    "Chain",
    "ColumnTag",
    "DroppedSequence",
    "Hit",
    "HitMetadata",
    "HsspReport",
    "Insertion",
    "ParsedAlignment",
    "Protein",
    "Residue",
    "ResidueProfile",
    "Sequence",
    # Alphabet
    "AminoAcid",
    "PROFILE_ORDER",
    "aa_index",
    "blosum62",
    "dayhoff",
    "is_gap",
    # Parsing
    "adjust_alignment_for_chain",
    "filter_homologs",
    "homology_score",
    "homology_threshold",
    "parse_chain_alignment_mapping",
    "parse_stockholm",
    "read_stockholm",
    "validate_alignment",
    # Scores
    "WeightMatrix",
    "calculate_all_conservation",
    "calculate_conservation",
    "percent_distribution",
    "relative_entropy",
    "shannon_entropy",
    # Hits and profiles
    "build_hit",
    "parse_hit_id",
    "rank_hits",
    "blank_structure_line",
    "build_chain_profiles",
    "build_residue_profile",
    "cluster_sequences",
    "select_unique_chains",
    "unique_representatives",
    # Output
    "format_hssp",
    "save_hssp",
    "write_hssp",
    "HIT_COLUMNS",
    "hits_to_dataframe",
    "profiles_to_dataframe",
    "write_profile_tsv",
    # Assembly
    "build_hssp_for_protein",
    "build_hssp_from_alignments",
    "build_hssp_from_sequence",
    "chain_to_hits",
]
