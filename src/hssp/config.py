"""
HSSP Configuration Module

Centralized configuration management for HSSP profile generation.
Supports environment variables and sensible defaults.

Configuration Priority (highest to lowest):
1. Explicit function arguments
2. Environment variables
3. Auto-detected defaults

Environment Variables:
    HSSP_JACKHMMER      - Path to the jackhmmer executable
    HSSP_FASTA_DIR      - Directory holding <databank>.fa files
    HSSP_DATABANK       - Name of the databank to search (default: uniref100)
    HSSP_ITERATIONS     - Number of jackhmmer iterations (default: 5)
    HSSP_MAX_RUN_TIME   - Search timeout in seconds (default: 300)
    HSSP_MIN_SEQ_LENGTH - Minimum chain length to include (default: 25)
    HSSP_THREADS        - CPUs handed to jackhmmer (default: 2)
    HSSP_MAX_WORKERS    - Concurrent searches (default: 1)
    HSSP_SCRATCH        - Scratch directory for search runs
    HSSP_KEEP_RUN_DIRS  - Keep search run directories (default: false)
"""

import os
import shutil
import logging
import tempfile
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

# Singleton config instance
_config_instance: Optional["Config"] = None

DEFAULT_CONTACT = "This version: Maarten L. Hekkelman <m.hekkelman@cmbi.ru.nl>"


@dataclass
class Config:
    """
    HSSP configuration container.

    Attributes:
        jackhmmer: Path to the jackhmmer executable
        fasta_dir: Directory containing the FASTA databanks
        databank: Databank name, the search runs against <fasta_dir>/<databank>.fa
        iterations: Number of jackhmmer iterations (-N)
        max_run_time: Search timeout in seconds
        min_seq_length: Chains shorter than this are not profiled
        max_hits: Maximum number of hits kept in a report
        threads: CPUs handed to each jackhmmer run (--cpu)
        max_workers: Number of searches run concurrently
        scratch_dir: Directory in which per-run working directories are made
        keep_run_dirs: Keep search working directories after a run
        contact: Text of the CONTACT header line
    """

    jackhmmer: Optional[Path] = None
    fasta_dir: Optional[Path] = None
    databank: str = "uniref100"

    # Search
    iterations: int = 5
    max_run_time: int = 300
    threads: int = 2
    max_workers: int = 1

    # Report
    min_seq_length: int = 25
    max_hits: int = 9999
    contact: str = DEFAULT_CONTACT

    # Working directories
    scratch_dir: Optional[Path] = None
    keep_run_dirs: bool = False

    # Internal state
    _initialized: bool = field(default=False, repr=False)

    def __post_init__(self):
        """Initialize configuration from environment and auto-detection."""
        if not self._initialized:
            self._load_from_environment()
            self._auto_detect_paths()
            self._initialized = True

    def _load_from_environment(self) -> None:
        """Load configuration from environment variables."""

        if os.environ.get("HSSP_JACKHMMER"):
            self.jackhmmer = Path(os.environ["HSSP_JACKHMMER"])
        if os.environ.get("HSSP_FASTA_DIR"):
            self.fasta_dir = Path(os.environ["HSSP_FASTA_DIR"])
        if os.environ.get("HSSP_DATABANK"):
            self.databank = os.environ["HSSP_DATABANK"]

        for attr, var in (
            ("iterations", "HSSP_ITERATIONS"),
            ("max_run_time", "HSSP_MAX_RUN_TIME"),
            ("min_seq_length", "HSSP_MIN_SEQ_LENGTH"),
            ("threads", "HSSP_THREADS"),
            ("max_workers", "HSSP_MAX_WORKERS"),
        ):
            value = os.environ.get(var)
            if not value:
                continue
            try:
                setattr(self, attr, int(value))
            except ValueError:
                logger.warning(f"Ignoring invalid {var}={value!r}, using {getattr(self, attr)}")

        if os.environ.get("HSSP_SCRATCH"):
            self.scratch_dir = Path(os.environ["HSSP_SCRATCH"])
        elif os.environ.get("TMPDIR"):
            self.scratch_dir = Path(os.environ["TMPDIR"])

        if os.environ.get("HSSP_KEEP_RUN_DIRS"):
            self.keep_run_dirs = os.environ["HSSP_KEEP_RUN_DIRS"].lower() in ("1", "true", "yes")

    def _auto_detect_paths(self) -> None:
        """Auto-detect paths for tools if not explicitly configured."""

        if not self.jackhmmer:
            jackhmmer_cmd = shutil.which("jackhmmer")
            if jackhmmer_cmd:
                self.jackhmmer = Path(jackhmmer_cmd)

        if not self.scratch_dir:
            self.scratch_dir = Path(tempfile.gettempdir())

    @property
    def databank_path(self) -> Optional[Path]:
        """Path of the FASTA file searched by jackhmmer."""
        if not self.fasta_dir:
            return None
        return self.fasta_dir / f"{self.databank}.fa"

    def validate(self, require_search: bool = True) -> tuple[bool, list[str]]:
        """
        Validate configuration.

        Args:
            require_search: Whether the jackhmmer search must be runnable

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []

        if require_search:
            if not self.jackhmmer:
                errors.append("jackhmmer not found. Set HSSP_JACKHMMER or ensure jackhmmer is in PATH.")
            elif not self.jackhmmer.exists():
                errors.append(f"jackhmmer executable not found: {self.jackhmmer}")

            if not self.fasta_dir:
                errors.append("HSSP_FASTA_DIR not configured.")
            elif not self.databank_path.exists():
                errors.append(f"Databank not found: {self.databank_path}")

        if self.max_run_time <= 0:
            errors.append(f"max_run_time must be positive, got {self.max_run_time}")
        if self.iterations <= 0:
            errors.append(f"iterations must be positive, got {self.iterations}")
        if not 0 < self.max_hits <= 9999:
            errors.append(f"max_hits must be between 1 and 9999, got {self.max_hits}")

        return len(errors) == 0, errors

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "jackhmmer": str(self.jackhmmer) if self.jackhmmer else None,
            "fasta_dir": str(self.fasta_dir) if self.fasta_dir else None,
            "databank": self.databank,
            "iterations": self.iterations,
            "max_run_time": self.max_run_time,
            "min_seq_length": self.min_seq_length,
            "max_hits": self.max_hits,
            "threads": self.threads,
            "max_workers": self.max_workers,
            "scratch_dir": str(self.scratch_dir) if self.scratch_dir else None,
            "keep_run_dirs": self.keep_run_dirs,
        }

    def print_status(self) -> None:
        """Print configuration status to stdout."""
        print("HSSP Configuration Status")
        print("=" * 50)

        def status_icon(path: Optional[Path]) -> str:
            if path is None:
                return "[ ] Not configured"
            elif path.exists():
                return f"[✓] {path}"
            else:
                return f"[✗] {path} (NOT FOUND)"

        print(f"jackhmmer:   {status_icon(self.jackhmmer)}")
        print(f"Databank:    {status_icon(self.databank_path)}")
        print(f"Scratch:     {status_icon(self.scratch_dir)}")
        print(f"Iterations:  {self.iterations}")
        print(f"Run time:    {self.max_run_time}s")
        print(f"Min length:  {self.min_seq_length}")
        print("=" * 50)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: The singleton configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Reset the global configuration instance (useful for testing)."""
    global _config_instance
    _config_instance = None


if __name__ == "__main__":
    config = get_config()
    config.print_status()

    is_valid, errors = config.validate()
    if not is_valid:
        print("\nConfiguration Errors:")
        for error in errors:
            print(f"  - {error}")
