"""CLI entry point for Patchwork."""

from __future__ import annotations

import argparse
import logging
import shlex
import sys
from pathlib import Path

from patchwork import __version__
from patchwork.collection import TIE_BREAKS
from patchwork.config import PatchworkConfig
from patchwork.exceptions import PatchworkError
from patchwork.io import format_alignment
from patchwork.log import setup_logging
from patchwork.metrics import compute_metrics
from patchwork.pipeline import run_pipeline

ABOUT = """\
P A T C H W O R K
Alignment-based exon retrieval and concatenation with phylogenomic applications
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchwork",
        description="Patchwork – stitch DIAMOND blastx hits into one reference-wide alignment",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--contigs", required=True, metavar="PATH",
                        help="Query contigs in FASTA format")
    parser.add_argument("--reference", required=True, metavar="PATH",
                        help="Reference sequence in FASTA format, or a DIAMOND database")
    parser.add_argument("--reference-fasta", metavar="PATH",
                        help="Reference residues when --reference is a DIAMOND database")
    parser.add_argument("--hits", metavar="PATH",
                        help="Existing DIAMOND table; skips running DIAMOND")
    parser.add_argument("--output-dir", metavar="PATH",
                        help="Write output files to this directory (default: patchwork_output)")
    parser.add_argument("--config", metavar="PATH", help="YAML configuration file")

    diamond = parser.add_argument_group("DIAMOND")
    diamond.add_argument("--diamond-flags", metavar="FLAGS",
                         help='Extra flags for diamond blastx, e.g. --diamond-flags="--evalue 1e-5"')
    diamond.add_argument("--makedb-flags", metavar="FLAGS",
                         help="Extra flags for diamond makedb")
    diamond.add_argument("--matrix", metavar="NAME", help="Scoring matrix")
    diamond.add_argument("--custom-matrix", metavar="PATH", help="Custom scoring matrix")
    diamond.add_argument("--gapopen", type=int, metavar="NUMBER",
                         help="Gap open penalty (positive integer)")
    diamond.add_argument("--gapextend", type=int, metavar="NUMBER",
                         help="Gap extension penalty (positive integer)")
    diamond.add_argument("--frameshift", type=int, metavar="NUMBER",
                         help="Frameshift penalty (default: 15)")
    diamond.add_argument("--threads", type=int, metavar="NUMBER",
                         help="Number of threads (default: all available)")

    aln = parser.add_argument_group("alignment")
    aln.add_argument("--tie-break", choices=sorted(TIE_BREAKS),
                     help="How overlapping regions are ranked (default: score)")
    aln.add_argument("--per-contig", action="store_true",
                     help="One alignment row per query contig")
    aln.add_argument("--query-label", metavar="NAME",
                     help="Name of the single query row (default: first contig id)")
    aln.add_argument("--trim-ends", action="store_true",
                     help="Trim leading/trailing columns without query residues")
    aln.add_argument("--drop-insertions", action="store_true",
                     help="Remove insertion columns so rows have reference length")
    aln.add_argument("--skip-malformed", action="store_true",
                     help="Skip malformed hits instead of aborting")
    aln.add_argument("--wrap-column", type=int, metavar="NUMBER",
                     help="Wrap output sequences at this column (default: no wrap)")

    out = parser.add_argument_group("reporting")
    out.add_argument("--json", action="store_true", help="Print run metrics as JSON")
    out.add_argument("--plot", metavar="PATH",
                     help="Write an HTML figure of the region layout (needs plotly)")
    out.add_argument("--log-file", metavar="PATH", help="Also write a debug log here")
    out.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    out.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    return parser


def build_config(args: argparse.Namespace) -> PatchworkConfig:
    """Merge the YAML config (if any) with command line overrides."""
    cfg = PatchworkConfig.from_yaml(args.config) if args.config else PatchworkConfig()

    if args.output_dir:
        cfg.output.output_dir = Path(args.output_dir)
    if args.wrap_column is not None:
        cfg.output.wrap_column = args.wrap_column

    dmd = cfg.diamond
    if args.diamond_flags:
        dmd.blastx_flags = shlex.split(args.diamond_flags)
    if args.makedb_flags:
        dmd.makedb_flags = shlex.split(args.makedb_flags)
    if args.matrix:
        dmd.matrix = args.matrix
    if args.custom_matrix:
        dmd.custom_matrix = Path(args.custom_matrix)
    if args.gapopen is not None:
        dmd.gapopen = args.gapopen
    if args.gapextend is not None:
        dmd.gapextend = args.gapextend
    if args.frameshift is not None:
        dmd.frameshift = args.frameshift
    if args.threads is not None:
        dmd.threads = args.threads

    if args.tie_break:
        cfg.tie_break = args.tie_break
    if args.per_contig:
        cfg.per_contig = True
    if args.query_label:
        cfg.query_label = args.query_label
    if args.skip_malformed:
        cfg.skip_malformed = True
    if args.trim_ends:
        cfg.masking.trim_ends = True
    if args.drop_insertions:
        cfg.masking.drop_insertions = True

    cfg.validate()
    return cfg


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger = setup_logging(level, Path(args.log_file) if args.log_file else None)

    try:
        cfg = build_config(args)
        if not args.json:
            print(ABOUT)
        result = run_pipeline(
            args.contigs,
            args.reference,
            cfg,
            hits_file=args.hits,
            reference_fasta=args.reference_fasta,
        )
    except PatchworkError as e:
        logger.error(str(e))
        return 1

    if args.json:
        print(compute_metrics(result).to_json())
    else:
        print(format_alignment(result.alignment))
        print(result.masked.report.describe())

    if args.plot:
        from patchwork.viz import create_region_view

        view = create_region_view(
            result.merged, result.reference.id, len(result.reference), result.masked.uncovered
        )
        try:
            view.to_figure().write_html(args.plot)
        except ImportError as e:
            logger.error(f"{e}. Install visualization dependencies with: pip install patchwork[viz]")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
