"""DIAMOND tabular hits – fixed-shape records and TSV reading/writing."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Generator, Iterable, List, Union

from patchwork.exceptions import MalformedRegion
from patchwork.log import get_logger
from patchwork.region import AlignedRegion

logger = get_logger(__name__)


# Column order passed to ``diamond blastx --outfmt 6``
OUTFMT_FIELDS = (
    "qseqid", "qseq", "full_qseq", "qstart", "qend", "qframe",
    "sseqid", "sseq", "sstart", "send", "cigar", "pident", "bitscore",
)


@dataclass(frozen=True)
class DiamondHit:
    """One DIAMOND blastx row with typed fields."""

    qseqid: str
    qseq: str
    full_qseq: str
    qstart: int
    qend: int
    qframe: int
    sseqid: str
    sseq: str
    sstart: int
    send: int
    cigar: str
    pident: float
    bitscore: float

    @classmethod
    def from_row(cls, row: List[str], line_number: int = 0) -> "DiamondHit":
        """Convert split TSV columns, failing on missing or non-numeric values."""
        where = f"line {line_number}" if line_number else "row"
        if len(row) != len(OUTFMT_FIELDS):
            raise MalformedRegion(
                f"{where}: expected {len(OUTFMT_FIELDS)} columns, got {len(row)}"
            )
        values = {}
        for f, raw in zip(fields(cls), row):
            if f.type == "int":
                values[f.name] = _convert(int, raw, f.name, where)
            elif f.type == "float":
                values[f.name] = _convert(float, raw, f.name, where)
            else:
                values[f.name] = raw
        if not values["qseqid"] or not values["sseqid"]:
            raise MalformedRegion(f"{where}: empty sequence identifier")
        return cls(**values)

    def to_row(self) -> List[str]:
        return [_format(getattr(self, name)) for name in OUTFMT_FIELDS]

    def to_region(self) -> AlignedRegion:
        return AlignedRegion.from_hit(self)


def _convert(kind, raw: str, name: str, where: str):
    try:
        return kind(raw)
    except ValueError:
        raise MalformedRegion(f"{where}: {name} is not a number: {raw!r}") from None


def _format(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_hits(lines: Iterable[str]) -> Generator[DiamondHit, None, None]:
    """Yield hits from TSV lines, skipping blanks and a header line."""
    for number, line in enumerate(lines, start=1):
        line = line.rstrip("\n").rstrip("\r")
        if not line.strip():
            continue
        row = line.split("\t")
        if row[0] == OUTFMT_FIELDS[0]:
            continue
        yield DiamondHit.from_row(row, line_number=number)


def read_hits(filepath: Union[str, Path]) -> List[DiamondHit]:
    """Read all hits from a DIAMOND ``--outfmt 6`` table."""
    filepath = Path(filepath)
    with open(filepath) as fh:
        hits = list(parse_hits(fh))
    logger.info(f"Loaded {len(hits):,} hits from {filepath}")
    return hits


def write_hits(
    filepath: Union[str, Path],
    hits: Iterable[DiamondHit],
    header: bool = True,
) -> None:
    """Write hits as a TSV table, optionally with a header line."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as fh:
        if header:
            fh.write("\t".join(OUTFMT_FIELDS) + "\n")
        for hit in hits:
            fh.write("\t".join(hit.to_row()) + "\n")
