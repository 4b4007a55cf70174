"""End-to-end pipeline: hits → regions → merge → concatenate → mask."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from patchwork.collection import TIE_BREAKS, AlignedRegionCollection, MergedRegionSet
from patchwork.concatenate import Concatenation, concatenate
from patchwork.config import PatchworkConfig
from patchwork.diamond import Diamond
from patchwork.exceptions import ConfigurationError
from patchwork.hits import DiamondHit, read_hits, write_hits
from patchwork.io import is_fasta, read_reference, write_alignment_file, write_query_fasta
from patchwork.log import get_logger
from patchwork.masking import MaskedAlignment, mask_gaps
from patchwork.region import ReferenceSequence

logger = get_logger(__name__)


@dataclass
class PatchworkResult:
    """Everything produced for one reference."""

    reference: ReferenceSequence
    collection: AlignedRegionCollection
    merged: MergedRegionSet
    concatenation: Concatenation
    masked: MaskedAlignment
    input_regions: int = 0
    hits: List[DiamondHit] = field(default_factory=list)

    @property
    def alignment(self) -> Concatenation:
        """The final (masked) alignment."""
        return self.masked.alignment

    @property
    def occupancy(self) -> float:
        return self.masked.report.ratio if self.masked.report else 0.0


def align_hits(
    reference: ReferenceSequence,
    hits: Iterable[DiamondHit],
    config: Optional[PatchworkConfig] = None,
) -> PatchworkResult:
    """Run the in-memory core on already parsed hits."""
    config = config or PatchworkConfig()
    config.validate()
    hits = list(hits)

    collection = AlignedRegionCollection.from_hits(
        reference, hits, skip_malformed=config.skip_malformed
    )
    input_regions = len(collection)
    if not input_regions:
        logger.warning(f"No usable hits against {reference.id}; alignment will be all gaps")
    merged = collection.merge_overlaps(key=TIE_BREAKS[config.tie_break])
    try:
        concatenation = concatenate(
            merged,
            reference,
            gap_char=config.gap_char,
            per_contig=config.per_contig,
            query_label=config.query_label,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    masked = mask_gaps(concatenation, config.masking)
    logger.info(f"{reference.id}: {masked.report.describe()}")
    return PatchworkResult(
        reference=reference,
        collection=collection,
        merged=merged,
        concatenation=concatenation,
        masked=masked,
        input_regions=input_regions,
        hits=hits,
    )


def write_outputs(result: PatchworkResult, config: PatchworkConfig) -> List[Path]:
    """Write the hit table, alignment text and query FASTA; return their paths."""
    out = config.output
    outdir = Path(out.output_dir)
    outdir.mkdir(parents=True, exist_ok=True)

    hits_path = outdir / out.hits_file
    alignment_path = outdir / out.alignment_file
    fasta_path = outdir / out.fasta_file

    write_hits(hits_path, result.hits, header=True)
    write_alignment_file(
        alignment_path,
        result.alignment,
        result.input_regions,
        report=result.masked.report,
    )
    write_query_fasta(fasta_path, result.alignment, line_width=out.wrap_column)
    for path in (hits_path, alignment_path, fasta_path):
        logger.info(f"Created output file: {path} ({path.stat().st_size:,} bytes)")
    return [hits_path, alignment_path, fasta_path]


def run_pipeline(
    contigs,
    reference,
    config: Optional[PatchworkConfig] = None,
    hits_file=None,
    reference_fasta=None,
) -> PatchworkResult:
    """Search *contigs* against *reference* with DIAMOND and stitch the hits.

    With *hits_file* an existing DIAMOND table is used and DIAMOND is not
    run. *reference_fasta* supplies the reference residues when *reference*
    is a DIAMOND database.
    """
    config = config or PatchworkConfig()
    config.validate()
    outdir = Path(config.output.output_dir)
    if reference_fasta is None and not is_fasta(reference):
        raise ConfigurationError(
            f"Reference residues are needed in FASTA format; got {reference}"
        )
    for path in (reference_fasta or reference, hits_file or contigs):
        if not Path(path).exists():
            raise ConfigurationError(f"File not found: {path}")

    if hits_file is None:
        diamond = Diamond(config.diamond)
        diamond.check_installation()
        database = diamond.makedb(reference, outdir)
        hits_file = diamond.blastx(contigs, database, outdir / "diamond_raw.tsv")
    hits = read_hits(hits_file)

    reference_sequence = read_reference(reference_fasta or reference)
    result = align_hits(reference_sequence, hits, config)
    write_outputs(result, config)
    return result
