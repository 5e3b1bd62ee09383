"""
Tabular export of hits and residue profiles.

The HSSP text format is fixed-width and awkward to load elsewhere; these
helpers give the same numbers as pandas DataFrames and TSV files.
"""

import logging
from pathlib import Path
from typing import Iterable, Tuple, Union

import pandas as pd

from .alphabet import PROFILE_ORDER
from .models import Hit, HsspReport, ResidueProfile

logger = logging.getLogger(__name__)

HIT_COLUMNS = [
    "nr", "id", "chain", "ide", "wsim", "ifir", "ilas", "jfir", "jlas",
    "lali", "ngap", "lgap", "lseq2", "accession", "description",
]


def hits_to_dataframe(hits: Iterable[Hit]) -> pd.DataFrame:
    """One row per hit, in rank order."""
    rows = [
        {
            "nr": hit.rank,
            "id": hit.source_id,
            "chain": hit.chain_id,
            "ide": round(hit.ide, 4),
            "wsim": round(hit.wsim, 4),
            "ifir": hit.ifir,
            "ilas": hit.ilas,
            "jfir": hit.jfir,
            "jlas": hit.jlas,
            "lali": hit.lali,
            "ngap": hit.ngap,
            "lgap": hit.lgap,
            "lseq2": hit.lseq2,
            "accession": hit.accession,
            "description": hit.description,
        }
        for hit in hits
    ]
    return pd.DataFrame(rows, columns=HIT_COLUMNS)


def profiles_to_dataframe(profiles: Iterable[ResidueProfile]) -> pd.DataFrame:
    """One row per residue; chain-break sentinels are skipped.

    Distribution columns are named by one-letter amino acid code and hold
    percentages.
    """
    columns = ["seq_no", "pdb_no", "chain", "aa"] + list(PROFILE_ORDER) + [
        "nocc", "ndel", "nins", "entropy", "relent", "weight", "var",
    ]

    rows = []
    for res in profiles:
        if res.is_chain_break:
            continue
        row = {
            "seq_no": res.seq_no,
            "pdb_no": res.pdb_no,
            "chain": res.chain_id,
            "aa": res.letter,
        }
        row.update(zip(PROFILE_ORDER, res.distribution))
        row.update({
            "nocc": res.occupancy,
            "ndel": res.deletions,
            "nins": res.insertions,
            "entropy": round(res.entropy, 3),
            "relent": res.relative_entropy,
            "weight": round(res.conservation_weight, 2),
            "var": res.variability,
        })
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)


def write_profile_tsv(report: HsspReport, path_prefix: Union[str, Path]) -> Tuple[Path, Path]:
    """Write ``<prefix>.hits.tsv`` and ``<prefix>.profile.tsv``.

    Returns:
        Tuple of (hits_path, profile_path)
    """
    prefix = Path(path_prefix)
    prefix.parent.mkdir(parents=True, exist_ok=True)

    hits_path = prefix.with_name(prefix.name + ".hits.tsv")
    profile_path = prefix.with_name(prefix.name + ".profile.tsv")

    hits_to_dataframe(report.hits).to_csv(hits_path, sep="\t", index=False)
    profiles_to_dataframe(report.residues).to_csv(profile_path, sep="\t", index=False)

    logger.info(f"Saved {len(report.hits)} hits to: {hits_path}")
    logger.info(f"Saved residue profile to: {profile_path}")

    return hits_path, profile_path
