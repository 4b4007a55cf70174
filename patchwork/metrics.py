"""Summary statistics for a Patchwork run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from patchwork.masking import row_occupancy

if TYPE_CHECKING:
    from patchwork.pipeline import PatchworkResult


@dataclass
class RunMetrics:
    """Counts and coverage figures for one reference."""

    reference_id: str = ""
    reference_length: int = 0

    # Input and merge
    hits: int = 0
    regions: int = 0
    merged_regions: int = 0
    discarded_regions: int = 0
    query_ids: List[str] = field(default_factory=list)

    # Alignment shape
    alignment_columns: int = 0
    insertion_columns: int = 0
    uncovered_runs: List[Tuple[int, int]] = field(default_factory=list)
    uncovered_positions: int = 0

    # Coverage
    occupancy: float = 0.0
    insertion_columns_counted: bool = False
    row_occupancy: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """Convert metrics to dictionary."""
        return {
            "reference_id": self.reference_id,
            "reference_length": self.reference_length,
            "hits": self.hits,
            "regions": self.regions,
            "merged_regions": self.merged_regions,
            "discarded_regions": self.discarded_regions,
            "query_ids": list(self.query_ids),
            "alignment_columns": self.alignment_columns,
            "insertion_columns": self.insertion_columns,
            "uncovered_runs": [list(run) for run in self.uncovered_runs],
            "uncovered_positions": self.uncovered_positions,
            "occupancy": self.occupancy,
            "insertion_columns_counted": self.insertion_columns_counted,
            "row_occupancy": dict(self.row_occupancy),
        }

    def to_json(self, filepath: Optional[str] = None) -> str:
        """Export metrics to JSON."""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filepath:
            Path(filepath).write_text(json_str)
        return json_str

    def summary(self) -> str:
        lines = [
            f"Reference:        {self.reference_id} ({self.reference_length} residues)",
            f"Hits / regions:   {self.hits} / {self.regions}",
            f"Merged regions:   {self.merged_regions} ({self.discarded_regions} discarded)",
            f"Columns:          {self.alignment_columns} ({self.insertion_columns} insertion)",
            f"Uncovered:        {self.uncovered_positions} positions in {len(self.uncovered_runs)} runs",
            f"Occupancy:        {self.occupancy:.4f}",
        ]
        return "\n".join(lines)


def compute_metrics(result: "PatchworkResult") -> RunMetrics:
    """Collect ``RunMetrics`` from a finished pipeline result."""
    masked = result.masked
    concatenation = result.concatenation
    report = masked.report
    return RunMetrics(
        reference_id=result.reference.id,
        reference_length=len(result.reference),
        hits=len(result.hits),
        regions=result.input_regions,
        merged_regions=len(result.merged),
        discarded_regions=len(result.merged.discarded),
        query_ids=result.merged.query_ids,
        alignment_columns=concatenation.width,
        insertion_columns=masked.insertion_columns,
        uncovered_runs=list(masked.uncovered),
        uncovered_positions=masked.uncovered_positions,
        occupancy=report.ratio if report else 0.0,
        insertion_columns_counted=report.insertion_columns_counted if report else False,
        row_occupancy=row_occupancy(
            concatenation, count_insertions=masked.policy.count_insertions
        ),
    )
