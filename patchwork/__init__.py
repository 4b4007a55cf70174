"""
Patchwork: stitch fragmentary translated alignments into one reference-wide alignment.

DIAMOND blastx hits of query contigs against a reference protein are turned
into aligned regions, overlaps are resolved by alignment quality, and the
winners are concatenated over the full reference length with uncovered
positions left as gaps.
"""

__version__ = "0.1.0"

from patchwork.exceptions import (
    PatchworkError,
    MalformedRegion,
    ReferenceMismatch,
    ConfigurationError,
    ExternalToolError,
    EmptyInput,
)
from patchwork.config import PatchworkConfig, DiamondConfig, MaskingPolicy, OutputConfig
from patchwork.region import AlignedRegion, ReferenceSequence
from patchwork.hits import DiamondHit, read_hits, write_hits
from patchwork.collection import AlignedRegionCollection, MergedRegionSet, merge_overlaps
from patchwork.concatenate import Concatenation, concatenate
from patchwork.masking import MaskedAlignment, OccupancyReport, mask_gaps, occupancy
from patchwork.pipeline import PatchworkResult, align_hits, run_pipeline

__all__ = [
    "PatchworkError",
    "MalformedRegion",
    "ReferenceMismatch",
    "ConfigurationError",
    "ExternalToolError",
    "EmptyInput",
    "PatchworkConfig",
    "DiamondConfig",
    "MaskingPolicy",
    "OutputConfig",
    "AlignedRegion",
    "ReferenceSequence",
    "DiamondHit",
    "read_hits",
    "write_hits",
    "AlignedRegionCollection",
    "MergedRegionSet",
    "merge_overlaps",
    "Concatenation",
    "concatenate",
    "MaskedAlignment",
    "OccupancyReport",
    "mask_gaps",
    "occupancy",
    "PatchworkResult",
    "align_hits",
    "run_pipeline",
]
