"""
HSSP: homology-derived secondary structure of proteins

Builds HSSP profiles for proteins from multiple sequence alignments:
jackhmmer hits are filtered for homology, summarized per hit and per
residue, and written in the fixed-column HSSP 2.0 format.
"""

__version__ = "2.0.0"

from hssp.config import Config, get_config
from hssp.exceptions import (
    AlignmentMismatchError,
    EmptySequenceError,
    FormatError,
    HsspError,
    ProcessError,
    SearchTimeoutError,
)
from hssp.logging import setup_logging, get_logger

__all__ = [
    "Config",
    "get_config",
    "HsspError",
    "FormatError",
    "EmptySequenceError",
    "AlignmentMismatchError",
    "SearchTimeoutError",
    "ProcessError",
    "setup_logging",
    "get_logger",
    "__version__",
]
