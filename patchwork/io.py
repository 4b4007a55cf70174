"""Sequence I/O – FASTA files, the reference, and alignment text output."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Generator, Iterable, Optional, Tuple, Union

from patchwork.concatenate import Concatenation
from patchwork.exceptions import PatchworkError
from patchwork.log import get_logger
from patchwork.masking import OccupancyReport
from patchwork.region import ReferenceSequence

logger = get_logger(__name__)

FASTA_EXTENSIONS = ("aln", "fa", "fn", "fna", "faa", "fasta", "FASTA")


def is_fasta(filepath: Union[str, Path]) -> bool:
    """True when the file name carries a FASTA extension (optionally gzipped)."""
    filepath = Path(filepath)
    suffixes = [s.lstrip(".") for s in filepath.suffixes]
    if suffixes and suffixes[-1] == "gz":
        suffixes = suffixes[:-1]
    return bool(suffixes) and suffixes[-1] in FASTA_EXTENSIONS


def _opener(filepath: Path):
    return gzip.open if filepath.suffix == ".gz" else open


def read_fasta(filepath: Union[str, Path]) -> Generator[Tuple[str, str], None, None]:
    """Yield (name, sequence) tuples from a FASTA file.

    Supports plain-text and gzip-compressed files (.gz).
    """
    filepath = Path(filepath)

    name: Optional[str] = None
    parts: list[str] = []

    with _opener(filepath)(filepath, "rt") as fh:  # type: ignore[operator]
        for line in fh:
            line = line.rstrip("\n").rstrip("\r")
            if line.startswith(">"):
                if name is not None:
                    yield name, "".join(parts)
                name = line[1:].split()[0] if line[1:].split() else ""
                parts = []
            elif line.strip():
                parts.append(line.strip())
        if name is not None:
            yield name, "".join(parts)


def read_reference(filepath: Union[str, Path]) -> ReferenceSequence:
    """Load the first record of a FASTA file as the reference."""
    for name, seq in read_fasta(filepath):
        if not name:
            raise PatchworkError(f"Reference record without a name in {filepath}")
        logger.info(f"Loaded reference {name} ({len(seq)} residues) from {filepath}")
        return ReferenceSequence(name, seq)
    raise PatchworkError(f"No sequences found in {filepath}")


def write_fasta(
    filepath: Union[str, Path],
    sequences: Iterable[Tuple[str, str]],
    line_width: int = 0,
) -> None:
    """Write ``(name, seq)`` pairs to a FASTA file.

    *line_width* 0 writes each sequence on one line. Supports gzip when
    *filepath* ends with ``.gz``.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with _opener(filepath)(filepath, "wt") as fh:  # type: ignore[operator]
        for name, seq in sequences:
            fh.write(f">{name}\n")
            if not seq:
                fh.write("\n")
            elif line_width > 0:
                for i in range(0, len(seq), line_width):
                    fh.write(seq[i : i + line_width] + "\n")
            else:
                fh.write(seq + "\n")


def write_query_fasta(
    filepath: Union[str, Path],
    concatenation: Concatenation,
    line_width: int = 0,
) -> None:
    """Write the query rows of *concatenation* as FASTA."""
    write_fasta(filepath, concatenation.query_rows.items(), line_width=line_width)


def format_alignment(
    concatenation: Concatenation,
    block_width: int = 60,
) -> str:
    """Render the alignment as blocks of *block_width* columns.

    Each block shows the reference row, then every query row, prefixed by
    the row id and the 1-based column of the block start.
    """
    rows = concatenation.rows
    label_width = max((len(row_id) for row_id in rows), default=0)
    lines = []
    for start in range(0, concatenation.width, block_width):
        for row_id, row in rows.items():
            lines.append(f"{row_id:<{label_width}}  {start + 1:>7}  {row[start:start + block_width]}")
        lines.append("")
    return "\n".join(lines)


def write_alignment_file(
    filepath: Union[str, Path],
    concatenation: Concatenation,
    regions_count: int,
    report: Optional[OccupancyReport] = None,
    block_width: int = 60,
) -> None:
    """Write a plain-text alignment with a short summary header."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    header = [
        f"# reference: {concatenation.reference_id}",
        f"# reference length: {concatenation.reference_length}",
        f"# aligned regions: {regions_count}",
        f"# columns: {concatenation.width}",
    ]
    if report is not None:
        header.append(f"# {report.describe()}")
    with open(filepath, "w") as fh:
        fh.write("\n".join(header) + "\n\n")
        fh.write(format_alignment(concatenation, block_width=block_width))
