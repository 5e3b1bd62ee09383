"""
Exception hierarchy for HSSP profile generation.

All errors raised by the pipeline derive from HsspError so callers can
abort the current protein with a single except clause. The format has no
notion of a partial report: any of these errors means no output is written
for the protein being processed.
"""

from typing import List, Optional


class HsspError(Exception):
    """Base class for all HSSP pipeline errors."""
    pass


class FormatError(HsspError, ValueError):
    """Malformed Stockholm input, malformed hit id or too few sequences."""
    pass


class EmptySequenceError(FormatError):
    """A zero-length query or hit sequence was passed to the hit builder."""
    pass


class AlignmentMismatchError(HsspError, ValueError):
    """The query of an alignment cannot be reconciled with the chain sequence."""
    pass


class SearchTimeoutError(HsspError, TimeoutError):
    """The external homology search exceeded its run time limit."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class ProcessError(HsspError, RuntimeError):
    """The external homology search failed.

    Attributes:
        status: Exit status of the tool, if it ran at all
        log_tail: The last lines written to the tool log
    """

    def __init__(self, message: str, status: Optional[int] = None, log_tail: Optional[List[str]] = None):
        super().__init__(message)
        self.status = status
        self.log_tail = log_tail or []
