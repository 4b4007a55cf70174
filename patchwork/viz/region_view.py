"""Region layout view – merged and discarded regions along the reference."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from patchwork.collection import MergedRegionSet

try:
    import plotly.graph_objects as go
    HAS_PLOTLY = True
except ImportError:
    HAS_PLOTLY = False


TRACK_COLORS = {"merged": "#4CAF50", "discarded": "#9E9E9E", "uncovered": "#F44336"}


@dataclass
class RegionBar:
    """One region drawn as a bar over reference positions."""

    track: str
    label: str
    start: int
    end: int
    score: float = 0.0
    identity: float = 0.0

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass
class RegionView:
    """Container for region layout data."""

    reference_id: str
    reference_length: int
    bars: List[RegionBar] = field(default_factory=list)

    def track(self, name: str) -> List[RegionBar]:
        return [b for b in self.bars if b.track == name]

    def to_figure(self, width: int = 1000, height: int = 300) -> "go.Figure":
        """Create a Plotly figure with one row per track."""
        if not HAS_PLOTLY:
            raise ImportError("plotly is required")

        fig = go.Figure()
        for bar in self.bars:
            fig.add_trace(go.Bar(
                x=[bar.length], y=[bar.track], base=bar.start - 1,
                orientation="h",
                marker=dict(color=TRACK_COLORS.get(bar.track, "#CCCCCC")),
                name=bar.label,
                hovertext=f"{bar.label}: {bar.start}-{bar.end} "
                          f"(score {bar.score:g}, identity {bar.identity:g}%)",
                showlegend=False,
            ))
        fig.update_layout(
            title=f"Regions on {self.reference_id} ({self.reference_length} residues)",
            barmode="overlay", width=width, height=height,
        )
        fig.update_xaxes(title_text="Reference position", range=[0, self.reference_length])
        return fig

    def to_text(self, width: int = 60) -> str:
        """Text rendering: one scaled line per track."""
        scale = max(self.reference_length, 1) / width
        lines = [f"Reference: {self.reference_id} ({self.reference_length})", ""]
        for name, symbol in (("merged", "#"), ("discarded", "="), ("uncovered", ".")):
            cells = [" "] * width
            for bar in self.track(name):
                first = int((bar.start - 1) / scale)
                last = min(int((bar.end - 1) / scale), width - 1)
                for i in range(first, last + 1):
                    cells[i] = symbol
            lines.append(f"{name:<10} |{''.join(cells)}|")
        return "\n".join(lines)


def create_region_view(
    merged: "MergedRegionSet",
    reference_id: str,
    reference_length: int,
    uncovered: Optional[List[Tuple[int, int]]] = None,
) -> RegionView:
    """Collect bars for merged, discarded and uncovered stretches."""
    bars = []
    for track, regions in (("merged", merged.regions), ("discarded", merged.discarded)):
        for region in regions:
            bars.append(RegionBar(
                track, region.query_id, region.reference_start, region.reference_end,
                score=region.score, identity=region.identity,
            ))
    for start, end in uncovered or []:
        bars.append(RegionBar("uncovered", "uncovered", start, end))
    return RegionView(reference_id, reference_length, bars)
