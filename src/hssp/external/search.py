"""
Homology search collaborators.

The pipeline only needs something that turns a query sequence into
Stockholm text. JackhmmerSearch runs jackhmmer from HMMER against a FASTA
databank, one scratch directory per run.
"""

import logging
import shutil
import subprocess
import uuid
from collections import deque
from pathlib import Path
from typing import List, Optional, Protocol, Union

from Bio.Seq import Seq
from Bio.SeqIO.FastaIO import FastaWriter
from Bio.SeqRecord import SeqRecord

from ..config import Config
from ..exceptions import ProcessError, SearchTimeoutError

logger = logging.getLogger(__name__)

FASTA_LINE_WIDTH = 72
LOG_TAIL_LINES = 10


class HomologySearch(Protocol):
    """Anything that can produce a Stockholm alignment for a query."""

    def run_search(self, sequence: str, database: str, iterations: int, timeout: float) -> str:
        ...


def write_query_fasta(sequence: str, path: Path, name: str = "input") -> None:
    """Write a single-sequence FASTA file with 72 residues per line."""
    record = SeqRecord(Seq(sequence), id=name, description="")
    with open(path, "w") as f:
        FastaWriter(f, wrap=FASTA_LINE_WIDTH).write_file([record])


def read_log_tail(path: Path, lines: int = LOG_TAIL_LINES) -> List[str]:
    """Return the last lines of a log file, empty if it does not exist."""
    if not path.exists():
        return []
    with open(path, errors="replace") as f:
        return [line.rstrip("\n") for line in deque(f, maxlen=lines)]


class JackhmmerSearch:
    """Run jackhmmer and return the Stockholm alignment it writes.

    Each run gets its own directory under ``scratch_dir`` holding
    ``input.fa``, ``output.sto`` and ``jackhmmer.log``. The directory is
    removed afterwards unless ``keep_run_dirs`` is set.
    """

    def __init__(
        self,
        jackhmmer: Union[str, Path] = "jackhmmer",
        fasta_dir: Optional[Union[str, Path]] = None,
        threads: int = 2,
        scratch_dir: Optional[Union[str, Path]] = None,
        keep_run_dirs: bool = False,
    ):
        """Initialize the search.

        Args:
            jackhmmer: Path to the jackhmmer executable
            fasta_dir: Directory holding ``<database>.fa``
            threads: Value for ``--cpu``
            scratch_dir: Parent directory for run directories
            keep_run_dirs: Keep run directories for inspection
        """
        self.jackhmmer = str(jackhmmer)
        self.fasta_dir = Path(fasta_dir) if fasta_dir else Path(".")
        self.threads = threads
        self.scratch_dir = Path(scratch_dir) if scratch_dir else Path("/tmp")
        self.keep_run_dirs = keep_run_dirs

    @classmethod
    def from_config(cls, config: Config) -> "JackhmmerSearch":
        return cls(
            jackhmmer=config.jackhmmer or "jackhmmer",
            fasta_dir=config.fasta_dir,
            threads=config.threads,
            scratch_dir=config.scratch_dir,
            keep_run_dirs=config.keep_run_dirs,
        )

    def build_command(self, database: str, iterations: int) -> List[str]:
        """Command line, relative to the run directory."""
        return [
            self.jackhmmer,
            "-N", str(iterations),
            "--noali",
            "--cpu", str(self.threads),
            "-A", "output.sto",
            "input.fa",
            str(self.fasta_dir / f"{database}.fa"),
        ]

    def run_search(self, sequence: str, database: str, iterations: int, timeout: float) -> str:
        """Search the databank with a query sequence.

        Args:
            sequence: Query sequence, one-letter codes
            database: Databank name
            iterations: Number of jackhmmer iterations
            timeout: Seconds before the run is killed

        Returns:
            The Stockholm alignment text

        Raises:
            ValueError: If the sequence is empty
            SearchTimeoutError: If jackhmmer did not finish in time
            ProcessError: If jackhmmer failed or wrote no alignment
        """
        if not sequence:
            raise ValueError("Empty sequence passed to homology search")

        run_dir = self.scratch_dir / "hssp" / str(uuid.uuid4())
        run_dir.mkdir(parents=True)

        try:
            write_query_fasta(sequence, run_dir / "input.fa")
            cmd = self.build_command(database, iterations)
            logger.info(f"Running jackhmmer in {run_dir}")
            logger.debug(" ".join(cmd))

            log_path = run_dir / "jackhmmer.log"
            try:
                with open(log_path, "w") as log:
                    result = subprocess.run(
                        cmd,
                        cwd=run_dir,
                        stdout=log,
                        stderr=subprocess.STDOUT,
                        timeout=timeout,
                    )
            except subprocess.TimeoutExpired:
                raise SearchTimeoutError("Timeout waiting for jackhmmer result", timeout=timeout)
            except OSError as e:
                raise ProcessError(f"Failed to run {self.jackhmmer}: {e}")

            if result.returncode != 0:
                tail = read_log_tail(log_path)
                for line in tail:
                    logger.error(line)
                raise ProcessError(
                    f"jackhmmer exited with status {result.returncode}",
                    status=result.returncode,
                    log_tail=tail,
                )

            output = run_dir / "output.sto"
            if not output.exists():
                raise ProcessError("jackhmmer wrote no output.sto", status=0, log_tail=read_log_tail(log_path))

            return output.read_text()

        finally:
            if not self.keep_run_dirs:
                shutil.rmtree(run_dir, ignore_errors=True)
