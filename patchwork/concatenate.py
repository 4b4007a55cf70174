"""Concatenation engine – stitch merged regions into one reference-wide alignment."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from patchwork.collection import MergedRegionSet
from patchwork.log import get_logger
from patchwork.region import GAP_CHAR, AlignedRegion, ReferenceSequence

logger = get_logger(__name__)

# (reference position or None for an insertion column, query character)
Column = Tuple[Optional[int], str]

DEFAULT_QUERY_LABEL = "query"


@dataclass(frozen=True)
class Concatenation:
    """Reference row plus one query row per label, all the same width.

    ``positions[i]`` is the 1-based reference position shown in column *i*,
    or ``None`` when the column is an insertion relative to the reference.
    """

    reference_id: str
    reference_row: str
    query_rows: Mapping[str, str] = field(default_factory=dict)
    positions: Tuple[Optional[int], ...] = ()
    reference_length: int = 0
    gap_char: str = GAP_CHAR

    def __post_init__(self):
        if self.reference_id in self.query_rows:
            raise ValueError(
                f"Query row id '{self.reference_id}' collides with the reference row"
            )
        object.__setattr__(self, "query_rows", MappingProxyType(dict(self.query_rows)))
        width = len(self.reference_row)
        if len(self.positions) != width:
            raise ValueError(
                f"{len(self.positions)} column positions for {width} columns"
            )
        for row_id, row in self.query_rows.items():
            if len(row) != width:
                raise ValueError(
                    f"Row '{row_id}' has {len(row)} columns, reference row has {width}"
                )

    @property
    def width(self) -> int:
        return len(self.reference_row)

    def __len__(self) -> int:
        return self.width

    @property
    def row_ids(self) -> List[str]:
        return list(self.query_rows)

    @property
    def rows(self) -> Dict[str, str]:
        """All rows, reference first."""
        rows = {self.reference_id: self.reference_row}
        rows.update(self.query_rows)
        return rows

    @property
    def insertion_columns(self) -> List[int]:
        """Indices of columns without a reference residue."""
        return [i for i, pos in enumerate(self.positions) if pos is None]

    def column(self, index: int) -> Dict[str, str]:
        return {row_id: row[index] for row_id, row in self.rows.items()}

    def select_columns(self, indices: Iterable[int]) -> "Concatenation":
        """New concatenation keeping only the given column indices, in order."""
        indices = list(indices)
        return Concatenation(
            reference_id=self.reference_id,
            reference_row="".join(self.reference_row[i] for i in indices),
            query_rows={
                row_id: "".join(row[i] for i in indices)
                for row_id, row in self.query_rows.items()
            },
            positions=tuple(self.positions[i] for i in indices),
            reference_length=self.reference_length,
            gap_char=self.gap_char,
        )


def place_regions(
    regions: Iterable[AlignedRegion],
    reference: ReferenceSequence,
    gap_char: str = GAP_CHAR,
) -> List[Column]:
    """Lay one row of regions out over reference positions 1..len(reference).

    Uncovered stretches become gap columns; each region's aligned columns
    are copied verbatim, insertions included. Abutting regions are joined
    without any extra column.
    """
    columns: List[Column] = []
    cursor = 0
    for region in sorted(regions, key=lambda r: r.reference_start):
        if region.reference_start <= cursor:
            raise ValueError(
                f"Region {region.reference_span} of {region.query_id} overlaps "
                f"a region ending at {cursor}; merge overlaps first"
            )
        if region.reference_end > len(reference):
            raise ValueError(
                f"Region {region.reference_span} of {region.query_id} extends past "
                f"reference '{reference.id}' of length {len(reference)}"
            )
        columns.extend((pos, gap_char) for pos in range(cursor + 1, region.reference_start))
        for pos, q_char in region.columns():
            columns.append((pos, gap_char if q_char == GAP_CHAR else q_char))
        cursor = region.reference_end
    columns.extend((pos, gap_char) for pos in range(cursor + 1, len(reference) + 1))
    return columns


def _split_insertions(columns: List[Column]) -> Tuple[Dict[int, str], Dict[int, List[str]]]:
    """Residue per reference position and insertions keyed by preceding position."""
    residues: Dict[int, str] = {}
    insertions: Dict[int, List[str]] = {}
    anchor = 0
    for pos, ch in columns:
        if pos is None:
            insertions.setdefault(anchor, []).append(ch)
        else:
            residues[pos] = ch
            anchor = pos
    return residues, insertions


def join_rows(
    placed: Dict[str, List[Column]],
    reference: ReferenceSequence,
    gap_char: str = GAP_CHAR,
) -> Concatenation:
    """Join independently placed rows on a shared column layout.

    Insertion blocks following a reference position are widened to the
    longest insertion any row has there; shorter rows are gap-padded.
    """
    layouts = {row_id: _split_insertions(cols) for row_id, cols in placed.items()}
    positions: List[Optional[int]] = []
    ref_chars: List[str] = []
    row_chars: Dict[str, List[str]] = {row_id: [] for row_id in placed}

    for pos in range(0, len(reference) + 1):
        if pos:
            positions.append(pos)
            ref_chars.append(reference.sequence[pos - 1])
            for row_id, (residues, _) in layouts.items():
                row_chars[row_id].append(residues.get(pos, gap_char))
        width = max(
            (len(insertions.get(pos, ())) for _, insertions in layouts.values()),
            default=0,
        )
        for k in range(width):
            positions.append(None)
            ref_chars.append(gap_char)
            for row_id, (_, insertions) in layouts.items():
                inserted = insertions.get(pos, [])
                row_chars[row_id].append(inserted[k] if k < len(inserted) else gap_char)

    return Concatenation(
        reference_id=reference.id,
        reference_row="".join(ref_chars),
        query_rows={row_id: "".join(chars) for row_id, chars in row_chars.items()},
        positions=tuple(positions),
        reference_length=len(reference),
        gap_char=gap_char,
    )


def concatenate(
    merged: MergedRegionSet,
    reference: ReferenceSequence,
    gap_char: str = GAP_CHAR,
    per_contig: bool = False,
    query_label: Optional[str] = None,
) -> Concatenation:
    """Assemble merged regions into one alignment over the whole reference.

    By default all regions go into a single query row named *query_label*
    (or the first region's query id). With *per_contig* every query contig
    gets its own row.
    """
    if per_contig and len(merged):
        groups = {qid: group.regions for qid, group in merged.by_query().items()}
    else:
        label = query_label or (merged[0].query_id if len(merged) else DEFAULT_QUERY_LABEL)
        groups = {label: merged.regions}

    if reference.id in groups:
        raise ValueError(
            f"Query row '{reference.id}' would hide the reference row; "
            "set a different query label"
        )

    placed = {
        row_id: place_regions(regions, reference, gap_char=gap_char)
        for row_id, regions in groups.items()
    }
    concatenation = join_rows(placed, reference, gap_char=gap_char)
    logger.debug(
        f"Concatenated {len(merged)} regions into {len(concatenation.query_rows)} "
        f"rows of {concatenation.width} columns"
    )
    return concatenation
