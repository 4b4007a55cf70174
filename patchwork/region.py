"""Aligned regions – one local hit of a query contig against the reference."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, TYPE_CHECKING

from patchwork.exceptions import MalformedRegion

if TYPE_CHECKING:
    from patchwork.hits import DiamondHit


GAP_CHAR = "-"
# DIAMOND marks frameshifts inside the aligned query with these symbols
FRAMESHIFT_CHARS = "/\\"
NON_RESIDUE_CHARS = GAP_CHAR + FRAMESHIFT_CHARS

VALID_FRAMES = (-3, -2, -1, 1, 2, 3)

_CIGAR_RE = re.compile(r"(\d+)([MIDNSHP=X])")
_REFERENCE_OPS = "MDN=X"
_QUERY_OPS = "MIS=X"


def parse_cigar(cigar: str) -> List[Tuple[int, str]]:
    """Parse a CIGAR string into (length, operation) tuples.

    Raises ``MalformedRegion`` if anything but operations is left over.
    """
    ops = [(int(m.group(1)), m.group(2)) for m in _CIGAR_RE.finditer(cigar)]
    if _CIGAR_RE.sub("", cigar):
        raise MalformedRegion(f"Invalid CIGAR string: {cigar!r}")
    return ops


def ungapped_length(aligned: str) -> int:
    """Number of residues in an aligned sequence (gaps and frameshifts removed)."""
    return sum(1 for ch in aligned if ch not in NON_RESIDUE_CHARS)


@dataclass(frozen=True)
class ReferenceSequence:
    """The subject sequence every output coordinate refers to."""

    id: str
    sequence: str

    def __post_init__(self):
        if not self.id:
            raise ValueError("Reference sequence needs an identifier")

    def __len__(self) -> int:
        return len(self.sequence)

    def residues(self, start: int, end: int) -> str:
        """Residues at 1-based inclusive positions *start*..*end*."""
        if start < 1 or end > len(self.sequence):
            raise IndexError(
                f"{start}-{end} outside reference {self.id} (1-{len(self.sequence)})"
            )
        return self.sequence[start - 1 : end]


@dataclass(frozen=True)
class AlignedRegion:
    """One local hit between a query contig and the reference.

    Coordinates are 1-based and inclusive. Query coordinates are in the
    contig's nucleotide space, reference coordinates in the reference's own
    space; both are stored with ``start <= end`` regardless of ``frame``.
    """

    query_id: str
    reference_id: str
    query_start: int
    query_end: int
    reference_start: int
    reference_end: int
    frame: int
    aligned_query_seq: str
    aligned_reference_seq: str
    identity: float
    score: float
    cigar: str = ""

    def __post_init__(self):
        if self.reference_start < 1 or self.query_start < 1:
            raise MalformedRegion(
                f"{self._label()}: coordinates are 1-based, got "
                f"query_start={self.query_start}, reference_start={self.reference_start}"
            )
        if self.reference_end < self.reference_start:
            raise MalformedRegion(
                f"{self._label()}: reference end {self.reference_end} "
                f"before start {self.reference_start}"
            )
        if self.query_end < self.query_start:
            raise MalformedRegion(
                f"{self._label()}: query end {self.query_end} "
                f"before start {self.query_start}"
            )
        if len(self.aligned_query_seq) != len(self.aligned_reference_seq):
            raise MalformedRegion(
                f"{self._label()}: aligned query ({len(self.aligned_query_seq)}) and "
                f"reference ({len(self.aligned_reference_seq)}) lengths differ"
            )
        if self.frame not in VALID_FRAMES:
            raise MalformedRegion(f"{self._label()}: invalid reading frame {self.frame}")
        if not 0.0 <= self.identity <= 100.0:
            raise MalformedRegion(f"{self._label()}: identity {self.identity} outside 0-100")
        residues = ungapped_length(self.aligned_reference_seq)
        if residues != self.length:
            raise MalformedRegion(
                f"{self._label()}: {residues} aligned reference residues for a "
                f"{self.length}-residue span"
            )
        if self.cigar:
            consumed = sum(n for n, op in parse_cigar(self.cigar) if op in _REFERENCE_OPS)
            if consumed != self.length:
                raise MalformedRegion(
                    f"{self._label()}: CIGAR {self.cigar} consumes {consumed} reference "
                    f"positions for a {self.length}-residue span"
                )

    def _label(self) -> str:
        return f"{self.query_id} vs {self.reference_id}"

    @classmethod
    def from_hit(cls, hit: "DiamondHit") -> "AlignedRegion":
        """Build a region from a DIAMOND hit, normalising orientation."""
        return cls(
            query_id=hit.qseqid,
            reference_id=hit.sseqid,
            query_start=min(hit.qstart, hit.qend),
            query_end=max(hit.qstart, hit.qend),
            reference_start=min(hit.sstart, hit.send),
            reference_end=max(hit.sstart, hit.send),
            frame=hit.qframe,
            aligned_query_seq=hit.qseq,
            aligned_reference_seq=hit.sseq,
            identity=hit.pident,
            score=hit.bitscore,
            cigar=hit.cigar,
        )

    @property
    def length(self) -> int:
        """Number of reference positions covered."""
        return self.reference_end - self.reference_start + 1

    @property
    def query_length(self) -> int:
        return self.query_end - self.query_start + 1

    @property
    def reference_span(self) -> Tuple[int, int]:
        return self.reference_start, self.reference_end

    @property
    def query_span(self) -> Tuple[int, int]:
        return self.query_start, self.query_end

    @property
    def is_reverse(self) -> bool:
        return self.frame < 0

    @property
    def has_frameshift(self) -> bool:
        return any(ch in FRAMESHIFT_CHARS for ch in self.aligned_query_seq)

    @property
    def insertion_count(self) -> int:
        """Aligned columns with no reference residue."""
        return len(self.aligned_reference_seq) - self.length

    @property
    def cigar_operations(self) -> List[Tuple[int, str]]:
        return parse_cigar(self.cigar) if self.cigar else []

    @property
    def reference_consumed(self) -> int:
        """Reference positions consumed according to the CIGAR."""
        return sum(n for n, op in self.cigar_operations if op in _REFERENCE_OPS)

    @property
    def query_consumed(self) -> int:
        """Query residues consumed according to the CIGAR."""
        return sum(n for n, op in self.cigar_operations if op in _QUERY_OPS)

    def overlaps(self, other: "AlignedRegion") -> bool:
        """True when the reference intervals intersect."""
        return (
            self.reference_start <= other.reference_end
            and other.reference_start <= self.reference_end
        )

    def columns(self) -> Iterator[Tuple[Optional[int], str]]:
        """Yield ``(reference_position, query_char)`` per aligned column.

        Columns without a reference residue (insertions and frameshift
        markers) carry ``None`` as position.
        """
        position = self.reference_start - 1
        for q_char, r_char in zip(self.aligned_query_seq, self.aligned_reference_seq):
            if r_char in NON_RESIDUE_CHARS:
                yield None, q_char
            else:
                position += 1
                yield position, q_char
