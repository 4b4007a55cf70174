"""Gap masking and occupancy of a finished concatenation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from patchwork.concatenate import Concatenation
from patchwork.config import MaskingPolicy
from patchwork.log import get_logger
from patchwork.region import NON_RESIDUE_CHARS

logger = get_logger(__name__)


@dataclass(frozen=True)
class OccupancyReport:
    """Occupancy together with the column policy it was computed under."""

    ratio: float
    covered_columns: int
    counted_columns: int
    insertion_columns_counted: bool

    def describe(self) -> str:
        policy = "included" if self.insertion_columns_counted else "excluded"
        return (
            f"occupancy {self.ratio:.4f} ({self.covered_columns}/{self.counted_columns} "
            f"columns; insertion columns {policy})"
        )

    def to_dict(self) -> Dict:
        return {
            "ratio": self.ratio,
            "covered_columns": self.covered_columns,
            "counted_columns": self.counted_columns,
            "insertion_columns_counted": self.insertion_columns_counted,
        }


@dataclass(frozen=True)
class MaskedAlignment:
    """Result of ``mask_gaps``."""

    alignment: Concatenation
    uncovered: List[Tuple[int, int]] = field(default_factory=list)
    insertion_columns: int = 0
    dropped_columns: int = 0
    trimmed_leading: int = 0
    trimmed_trailing: int = 0
    policy: MaskingPolicy = field(default_factory=MaskingPolicy)
    report: Optional[OccupancyReport] = None

    @property
    def uncovered_positions(self) -> int:
        return sum(end - start + 1 for start, end in self.uncovered)


def _gap_symbols(concatenation: Concatenation) -> List[str]:
    return sorted(set(NON_RESIDUE_CHARS + concatenation.gap_char))


def _query_matrix(concatenation: Concatenation) -> np.ndarray:
    """Character matrix of the query rows, shape (rows, columns)."""
    rows = list(concatenation.query_rows.values())
    if not rows or not concatenation.width:
        return np.empty((len(rows), concatenation.width), dtype="U1")
    return np.array([list(row) for row in rows], dtype="U1")


def _residue_mask(concatenation: Concatenation) -> np.ndarray:
    """Boolean matrix, True where a query row holds a residue."""
    matrix = _query_matrix(concatenation)
    return ~np.isin(matrix, _gap_symbols(concatenation))


def covered_columns(concatenation: Concatenation) -> np.ndarray:
    """Per column: does any query row hold a residue there."""
    mask = _residue_mask(concatenation)
    if mask.shape[0] == 0:
        return np.zeros(concatenation.width, dtype=bool)
    return mask.any(axis=0)


def _reference_columns(concatenation: Concatenation) -> np.ndarray:
    return np.array([pos is not None for pos in concatenation.positions], dtype=bool)


def occupancy_report(
    concatenation: Concatenation,
    count_insertions: bool = False,
) -> OccupancyReport:
    """Fraction of counted columns holding at least one query residue.

    Insertion columns are left out of numerator and denominator unless
    *count_insertions* is set.
    """
    covered = covered_columns(concatenation)
    if count_insertions:
        counted = np.ones(concatenation.width, dtype=bool)
    else:
        counted = _reference_columns(concatenation)
    n_counted = int(counted.sum())
    n_covered = int((covered & counted).sum())
    ratio = n_covered / n_counted if n_counted else 0.0
    return OccupancyReport(
        ratio=ratio,
        covered_columns=n_covered,
        counted_columns=n_counted,
        insertion_columns_counted=count_insertions,
    )


def occupancy(concatenation: Concatenation, count_insertions: bool = False) -> float:
    """Occupancy ratio in [0, 1]."""
    return occupancy_report(concatenation, count_insertions).ratio


def row_occupancy(
    concatenation: Concatenation,
    count_insertions: bool = False,
) -> Dict[str, float]:
    """Occupancy of each query row on its own."""
    mask = _residue_mask(concatenation)
    if count_insertions:
        counted = np.ones(concatenation.width, dtype=bool)
    else:
        counted = _reference_columns(concatenation)
    n_counted = int(counted.sum())
    result = {}
    for row_id, row_mask in zip(concatenation.query_rows, mask):
        covered = int((row_mask & counted).sum())
        result[row_id] = covered / n_counted if n_counted else 0.0
    return result


def uncovered_runs(concatenation: Concatenation) -> List[Tuple[int, int]]:
    """Reference runs (1-based, inclusive) with no residue on any query row."""
    covered = covered_columns(concatenation)
    runs: List[Tuple[int, int]] = []
    for index, pos in enumerate(concatenation.positions):
        if pos is None or covered[index]:
            continue
        if runs and runs[-1][1] == pos - 1:
            runs[-1] = (runs[-1][0], pos)
        else:
            runs.append((pos, pos))
    return runs


def mask_gaps(
    concatenation: Concatenation,
    policy: Optional[MaskingPolicy] = None,
) -> MaskedAlignment:
    """Flag uncovered stretches and apply the masking policy.

    Residues are never altered: uncovered query columns already hold gaps.
    The occupancy report describes the alignment before any column is
    dropped or trimmed.
    """
    policy = policy or MaskingPolicy()
    uncovered = uncovered_runs(concatenation)
    report = occupancy_report(concatenation, policy.count_insertions)
    insertions = concatenation.insertion_columns

    keep = list(range(concatenation.width))
    if policy.drop_insertions:
        keep = [i for i in keep if concatenation.positions[i] is not None]
    dropped = concatenation.width - len(keep)

    leading = trailing = 0
    if policy.trim_ends:
        covered = covered_columns(concatenation)
        kept_covered = [j for j, i in enumerate(keep) if covered[i]]
        if kept_covered:
            leading = kept_covered[0]
            trailing = len(keep) - kept_covered[-1] - 1
            keep = keep[leading: len(keep) - trailing]
        else:
            logger.warning("Alignment has no query residues; trimming removes every column")
            leading = len(keep)
            keep = []

    alignment = concatenation
    if len(keep) != concatenation.width:
        alignment = concatenation.select_columns(keep)

    if uncovered:
        logger.info(
            f"{len(uncovered)} uncovered reference runs "
            f"({sum(e - s + 1 for s, e in uncovered)} positions) in {concatenation.reference_id}"
        )
    return MaskedAlignment(
        alignment=alignment,
        uncovered=uncovered,
        insertion_columns=len(insertions),
        dropped_columns=dropped,
        trimmed_leading=leading,
        trimmed_trailing=trailing,
        policy=policy,
        report=report,
    )
