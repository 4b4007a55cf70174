"""DIAMOND wrapper – version check, database building and blastx searches."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from packaging import version

from patchwork.config import DiamondConfig
from patchwork.exceptions import ExternalToolError
from patchwork.hits import OUTFMT_FIELDS
from patchwork.io import is_fasta
from patchwork.log import get_logger

DATABASE_EXTENSION = ".dmnd"
_VERSION_RE = re.compile(r"(\d+\.\d+(?:\.\d+)*)")


class Diamond:
    """Runs the ``diamond`` executable with settings from a ``DiamondConfig``."""

    tool_name = "diamond"

    def __init__(
        self,
        config: Optional[DiamondConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or DiamondConfig()
        self.logger = logger or get_logger(f"external.{self.tool_name}")

    @property
    def executable(self) -> str:
        return self.config.executable

    def get_version(self) -> Optional[str]:
        """Version reported by ``diamond --version``, or None if not runnable."""
        if shutil.which(self.executable) is None:
            return None
        try:
            result = subprocess.run(
                [self.executable, "--version"],
                capture_output=True, text=True, check=False, timeout=30,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            self.logger.debug(f"Could not get version for {self.executable}: {e}")
            return None
        match = _VERSION_RE.search(result.stdout + result.stderr)
        return match.group(1) if match else None

    def meets_min_version(self, min_version: Optional[str] = None) -> bool:
        """True when DIAMOND is installed at *min_version* or newer."""
        required = min_version or self.config.min_version
        current = self.get_version()
        if current is None:
            return False
        return version.parse(current) >= version.parse(required)

    def check_installation(self) -> str:
        """Return the installed version or raise ``ExternalToolError``."""
        current = self.get_version()
        if current is None:
            raise ExternalToolError(
                f"{self.executable} not found in PATH. "
                f"Please install it via: conda install -c bioconda diamond"
            )
        if version.parse(current) < version.parse(self.config.min_version):
            raise ExternalToolError(
                f"{self.tool_name} version {current} is below "
                f"required version {self.config.min_version}"
            )
        self.logger.debug(f"{self.tool_name} version: {current}")
        return current

    def run(self, cmd: Sequence[str]) -> str:
        """Execute *cmd*, returning stdout; failures raise ``ExternalToolError``."""
        cmd = [str(c) for c in cmd]
        self.logger.info(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise ExternalToolError(
                f"{self.tool_name} failed with exit code {e.returncode}",
                command=cmd,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e
        except OSError as e:
            raise ExternalToolError(
                f"Could not run {self.executable}: {e}", command=cmd
            ) from e
        if result.stderr:
            self.logger.debug(f"Command stderr: {result.stderr[:500]}")
        return result.stdout

    def makedb_command(self, reference: Path, database: Path) -> List[str]:
        cmd = [
            self.executable, "makedb",
            "--in", str(reference),
            "--db", str(database),
        ]
        if self.config.threads:
            cmd += ["--threads", str(self.config.threads)]
        return cmd + list(self.config.makedb_flags)

    def makedb(self, reference, output_dir) -> Path:
        """Build a ``.dmnd`` database from a FASTA reference.

        A reference that already is a DIAMOND database is returned as is.
        """
        reference = Path(reference)
        if reference.suffix == DATABASE_EXTENSION:
            return reference
        if not is_fasta(reference):
            raise ExternalToolError(f"Reference is neither FASTA nor a DIAMOND database: {reference}")
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        database = output_dir / (reference.name.split(".")[0] + DATABASE_EXTENSION)
        self.run(self.makedb_command(reference, database))
        return database

    def blastx_command(self, query: Path, database: Path, output: Path) -> List[str]:
        cfg = self.config
        cmd = [
            self.executable, "blastx",
            "--query", str(query),
            "--db", str(database),
            "--out", str(output),
            "--outfmt", "6", *OUTFMT_FIELDS,
            "--frameshift", str(cfg.frameshift),
        ]
        if cfg.sensitivity:
            cmd.append(cfg.sensitivity)
        if cfg.custom_matrix is not None:
            cmd += ["--custom-matrix", str(cfg.custom_matrix)]
        elif cfg.matrix:
            cmd += ["--matrix", cfg.matrix]
        if cfg.gapopen is not None:
            cmd += ["--gapopen", str(cfg.gapopen)]
        if cfg.gapextend is not None:
            cmd += ["--gapextend", str(cfg.gapextend)]
        if cfg.threads:
            cmd += ["--threads", str(cfg.threads)]
        return cmd + list(cfg.blastx_flags)

    def blastx(self, query, database, output) -> Path:
        """Search *query* contigs against *database*; returns the TSV path."""
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        self.run(self.blastx_command(Path(query), Path(database), output))
        if not output.exists():
            raise ExternalToolError(f"{self.tool_name} produced no output at {output}")
        return output
