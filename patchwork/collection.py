"""Region collections for one reference and the overlap-merge sweep."""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from patchwork.exceptions import EmptyInput, MalformedRegion, ReferenceMismatch
from patchwork.log import get_logger
from patchwork.region import AlignedRegion, ReferenceSequence

logger = get_logger(__name__)

QualityKey = Callable[[AlignedRegion], tuple]


def quality_key(region: AlignedRegion) -> tuple:
    """Default tie-break: score, then identity, then reference span."""
    return (region.score, region.identity, region.length)


def identity_key(region: AlignedRegion) -> tuple:
    """Prefer identity over score."""
    return (region.identity, region.score, region.length)


def span_key(region: AlignedRegion) -> tuple:
    """Prefer the longest region, then score."""
    return (region.length, region.score, region.identity)


TIE_BREAKS: Dict[str, QualityKey] = {
    "score": quality_key,
    "identity": identity_key,
    "span": span_key,
}


@dataclass
class MergedRegionSet:
    """Pairwise non-overlapping regions sorted by reference start."""

    regions: List[AlignedRegion] = field(default_factory=list)
    discarded: List[AlignedRegion] = field(default_factory=list)

    def __post_init__(self):
        for prev, cur in zip(self.regions, self.regions[1:]):
            if cur.reference_start <= prev.reference_end:
                raise ValueError(
                    f"Merged regions overlap or are unsorted: "
                    f"{prev.reference_span} and {cur.reference_span}"
                )

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self) -> Iterator[AlignedRegion]:
        return iter(self.regions)

    def __getitem__(self, index):
        return self.regions[index]

    @property
    def query_ids(self) -> List[str]:
        """Distinct query ids in reference order."""
        seen: List[str] = []
        for region in self.regions:
            if region.query_id not in seen:
                seen.append(region.query_id)
        return seen

    def covered_positions(self) -> Set[int]:
        return covered_positions(self.regions)

    def by_query(self) -> Dict[str, "MergedRegionSet"]:
        """Split into one set per query contig, keeping reference order."""
        groups: Dict[str, List[AlignedRegion]] = {}
        for region in self.regions:
            groups.setdefault(region.query_id, []).append(region)
        return {qid: MergedRegionSet(regions) for qid, regions in groups.items()}


def covered_positions(regions: Iterable[AlignedRegion]) -> Set[int]:
    """Union of reference positions touched by *regions*."""
    positions: Set[int] = set()
    for region in regions:
        positions.update(range(region.reference_start, region.reference_end + 1))
    return positions


def merge_overlaps(
    regions: Iterable[AlignedRegion],
    key: QualityKey = quality_key,
) -> MergedRegionSet:
    """Resolve reference overlaps winner-take-all.

    Regions are visited by reference start, best *key* first among equal
    starts. A challenger overlapping the current best replaces it only when
    its key is strictly greater; the loser is dropped whole.
    """
    ordered = sorted(regions, key=key, reverse=True)
    ordered.sort(key=lambda r: r.reference_start)

    merged: List[AlignedRegion] = []
    discarded: List[AlignedRegion] = []
    current: Optional[AlignedRegion] = None

    for region in ordered:
        if current is None:
            current = region
        elif not current.overlaps(region):
            merged.append(current)
            current = region
        elif key(region) > key(current):
            discarded.append(current)
            current = region
        else:
            discarded.append(region)

    if current is not None:
        merged.append(current)

    return MergedRegionSet(regions=merged, discarded=discarded)


class AlignedRegionCollection:
    """All aligned regions of the query contigs against one reference."""

    def __init__(
        self,
        reference: ReferenceSequence,
        regions: Iterable[AlignedRegion] = (),
    ):
        self.reference = reference
        self.regions: List[AlignedRegion] = []
        seen: Set[AlignedRegion] = set()
        duplicates = 0
        for region in regions:
            self._check_reference(region)
            if region in seen:
                duplicates += 1
                continue
            seen.add(region)
            self.regions.append(region)
        if duplicates:
            logger.debug(f"Dropped {duplicates} duplicate regions for {reference.id}")

    @classmethod
    def from_hits(
        cls,
        reference: ReferenceSequence,
        hits: Iterable,
        skip_malformed: bool = False,
    ) -> "AlignedRegionCollection":
        """Build a collection from DIAMOND hits.

        With *skip_malformed* a hit failing validation is logged and
        skipped; otherwise ``MalformedRegion`` propagates.
        """
        regions = []
        skipped = 0
        for hit in hits:
            try:
                regions.append(AlignedRegion.from_hit(hit))
            except MalformedRegion as e:
                if not skip_malformed:
                    raise
                skipped += 1
                logger.warning(f"Skipping malformed hit: {e}")
        if skipped:
            logger.warning(f"Skipped {skipped} malformed hits")
        return cls(reference, regions)

    def _check_reference(self, region: AlignedRegion) -> None:
        if region.reference_id != self.reference.id:
            raise ReferenceMismatch(
                f"Region of {region.query_id} is aligned to '{region.reference_id}', "
                f"not '{self.reference.id}'",
                expected=self.reference.id,
                found=region.reference_id,
            )
        if region.reference_end > len(self.reference):
            raise ReferenceMismatch(
                f"Region of {region.query_id} ends at {region.reference_end}, beyond "
                f"reference '{self.reference.id}' of length {len(self.reference)}",
                expected=self.reference.id,
                found=region.reference_id,
            )

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self) -> Iterator[AlignedRegion]:
        return iter(self.regions)

    def __getitem__(self, index):
        return self.regions[index]

    @property
    def query_ids(self) -> List[str]:
        """Distinct query ids in input order."""
        return list(dict.fromkeys(r.query_id for r in self.regions))

    @property
    def reference_length(self) -> int:
        return len(self.reference)

    def overlapping_pairs(self) -> List[Tuple[AlignedRegion, AlignedRegion]]:
        """All pairs of regions whose reference intervals intersect."""
        ordered = sorted(self.regions, key=lambda r: r.reference_start)
        pairs = []
        for i, region in enumerate(ordered):
            for other in ordered[i + 1:]:
                if other.reference_start > region.reference_end:
                    break
                pairs.append((region, other))
        return pairs

    def merge_overlaps(self, key: QualityKey = quality_key) -> MergedRegionSet:
        """Merge overlapping regions and keep only the winners.

        The collection's regions are replaced by the merged set.
        """
        if not self.regions:
            warnings.warn(
                f"No aligned regions for reference '{self.reference.id}'; "
                "the concatenation will be all gaps",
                EmptyInput,
                stacklevel=2,
            )
        merged = merge_overlaps(self.regions, key=key)
        logger.info(
            f"Merged {len(self.regions)} regions into {len(merged)} "
            f"({len(merged.discarded)} discarded) for {self.reference.id}"
        )
        self.regions = list(merged.regions)
        return merged
